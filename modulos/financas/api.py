"""
API REST do Economize
=====================

Endpoints JSON de autenticação, dashboard, carteiras, movimentações,
caixinhas e metas. Todas as respostas trazem ``success`` e, em caso de
erro, ``message``.
"""

from flask import Blueprint, current_app, jsonify, request, session, url_for
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import User
from . import auth_backend, dashboard_backend, rules
from .auth import SESSION_USER_KEY, current_user_id, login_required
from .helpers import json_payload

financas_bp = Blueprint("financas", __name__)


def _log_debug(msg: str) -> None:
    if current_app and getattr(current_app, "debug", False):
        current_app.logger.info(msg)


def _log_exception(msg: str) -> None:
    current_app.logger.exception(msg)


def _from_result(result: dict, success_status: int = 200, **extra):
    status = success_status if result["success"] else 400
    body = {"success": result["success"], "message": result["message"], **extra}
    return jsonify(body), status


@financas_bp.errorhandler(rules.ValidationError)
def _validation_error(e):
    db.session.rollback()
    return jsonify({"success": False, "message": str(e)}), 400


@financas_bp.errorhandler(rules.NotFoundError)
def _not_found_error(e):
    db.session.rollback()
    return jsonify({"success": False, "message": str(e)}), 404


@financas_bp.errorhandler(SQLAlchemyError)
def _database_error(e):
    db.session.rollback()
    _log_exception(f"[API] Erro de banco em {request.method} {request.path}: {e}")
    return jsonify({"success": False, "message": "Não foi possível salvar os dados agora. Tente novamente."}), 500


# ============================================================================
# AUTENTICAÇÃO
# ============================================================================

@financas_bp.route("/api/register", methods=["POST"])
def api_register():
    """Cadastro: nome completo, email, senha e confirmação"""
    data = json_payload()
    result = auth_backend.process_registration(
        data.get("full_name"),
        data.get("email"),
        data.get("password"),
        data.get("confirm_password"),
    )
    if not result["success"]:
        return _from_result(result)

    _log_debug(f"[AUTH] Nova conta {result['user'].email}")
    return _from_result(result, 201, user=result["user"].to_dict())


@financas_bp.route("/api/verify-email", methods=["POST"])
def api_verify_email():
    data = json_payload()
    return _from_result(auth_backend.verify_email(data.get("email"), data.get("code")))


@financas_bp.route("/api/login", methods=["POST"])
def api_login():
    data = json_payload()
    result = auth_backend.process_login(data.get("email"), data.get("password"), request)
    if not result["success"]:
        status = 403 if result["category"] == "warning" else 401
        return jsonify({"success": False, "message": result["message"]}), status

    user = result["user"]
    session.clear()
    session[SESSION_USER_KEY] = user.id
    session["finance_user_email"] = user.email
    return jsonify({"success": True, "message": result["message"], "user": user.to_dict()}), 200


@financas_bp.route("/api/logout", methods=["POST"])
def api_logout():
    session.clear()
    return jsonify({"success": True, "message": "Logout realizado com sucesso"}), 200


@financas_bp.route("/api/me", methods=["GET"])
@login_required
def api_me():
    """Retorna dados do usuário logado"""
    user = db.session.get(User, current_user_id())
    if not user:
        session.clear()
        return jsonify({"success": False, "message": "Usuário não encontrado"}), 404
    return jsonify({"success": True, "user": user.to_dict()}), 200


def _reset_link(token: str) -> str:
    base_url = current_app.config.get("APP_BASE_URL") or request.host_url.rstrip("/")
    return f"{base_url}{url_for('financas.api_reset_password', token=token)}"


@financas_bp.route("/api/forgot-password", methods=["POST"])
def api_forgot_password():
    data = json_payload()
    return _from_result(auth_backend.request_password_reset(data.get("email"), _reset_link))


@financas_bp.route("/api/reset-password/<token>", methods=["GET", "POST"])
def api_reset_password(token):
    """GET valida o link; POST grava a nova senha"""
    if request.method == "GET":
        if auth_backend.find_valid_reset(token):
            return jsonify({"success": True, "valid": True}), 200
        return jsonify({
            "success": False,
            "valid": False,
            "message": "Link inválido ou expirado. Solicite um novo link de recuperação.",
        }), 400

    data = json_payload()
    return _from_result(auth_backend.reset_password(
        token,
        data.get("password"),
        data.get("confirm_password"),
    ))


# ============================================================================
# DASHBOARD
# ============================================================================

@financas_bp.route("/api/dashboard", methods=["GET"])
@login_required
def api_dashboard():
    summary = dashboard_backend.build_summary(current_user_id())
    return jsonify({"success": True, **summary}), 200


# Registrar rotas de cada recurso
from .wallets_endpoints import register_wallet_routes
from .transactions_endpoints import register_transaction_routes
from .jars_endpoints import register_jar_routes
from .goals_endpoints import register_goal_routes

register_wallet_routes(financas_bp)
register_transaction_routes(financas_bp)
register_jar_routes(financas_bp)
register_goal_routes(financas_bp)
