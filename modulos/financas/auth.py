from functools import wraps

from flask import jsonify, session

SESSION_USER_KEY = "finance_user_id"


def current_user_id() -> int | None:
    """Usuário da sessão; nunca aceita ``user_id`` vindo da requisição."""
    user_id = session.get(SESSION_USER_KEY)
    try:
        return int(user_id) if user_id is not None else None
    except (TypeError, ValueError):
        return None


def login_required(f):
    """Decorator para proteger endpoints da API que precisam de autenticação"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user_id() is None:
            return jsonify({"success": False, "message": "Não autenticado"}), 401
        return f(*args, **kwargs)
    return decorated_function
