"""
Cadastro, login, verificação de email e recuperação de senha.

Cada função devolve um dict ``{"success", "category", "message", ...}``
que os endpoints convertem direto em JSON.
"""

import logging
import secrets
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func, or_
from werkzeug.security import check_password_hash, generate_password_hash

from email_service import send_password_reset, send_verification_code
from extensions import db
from models import EmailVerification, LoginAudit, PasswordReset, User, UserProfile

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
VERIFICATION_TTL = timedelta(minutes=15)
PASSWORD_RESET_TTL = timedelta(hours=1)

GENERIC_RESET_MESSAGE = "Se este email estiver cadastrado, você receberá um link de recuperação."


def _fail(message: str, category: str = "danger", **extra) -> dict:
    return {"success": False, "category": category, "message": message, **extra}


def _check_new_password(password: str, confirm: str) -> str | None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return "Use uma senha com pelo menos 6 caracteres."
    if password != confirm:
        return "As senhas não coincidem."
    return None


def _find_user(email: str) -> User | None:
    return User.query.filter(func.lower(User.email) == email).first()


def _new_verification_code() -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(6))


def process_registration(full_name: str | None, email: str | None,
                         password: str | None, confirm: str | None) -> dict:
    full_name = (full_name or "").strip()
    email = (email or "").strip().lower()
    password = password or ""
    confirm = confirm or ""

    if not full_name or not email or not password or not confirm:
        return _fail("Preencha todos os campos.")

    if "@" not in email:
        return _fail("E-mail inválido.")

    password_error = _check_new_password(password, confirm)
    if password_error:
        return _fail(password_error)

    if _find_user(email):
        return _fail("Este e-mail já está cadastrado.", category="warning")

    user = User(email=email, password_hash=generate_password_hash(password))
    user.profile = UserProfile(full_name=full_name)
    db.session.add(user)

    code = _new_verification_code()
    db.session.add(EmailVerification(
        email=email,
        code=code,
        expires_at=datetime.utcnow() + VERIFICATION_TTL,
    ))
    db.session.flush()

    app = current_app._get_current_object()
    email_ok = send_verification_code(email, code, app)
    if not email_ok:
        if app.config.get("REQUIRE_EMAIL_VERIFICATION"):
            db.session.rollback()
            return _fail("Não foi possível enviar o código de verificação por e-mail. Tente novamente mais tarde.")
        logger.warning("Código de verificação não enviado para %s", email)

    db.session.commit()

    return {
        "success": True,
        "category": "success",
        "message": "Conta criada! Verifique seu email e insira o código de 6 dígitos.",
        "user": user,
    }


def verify_email(email: str | None, code: str | None) -> dict:
    email = (email or "").strip().lower()
    code = (code or "").strip()

    if not email or not code:
        return _fail("Informe email e código.")

    verification = EmailVerification.query.filter_by(
        email=email,
        code=code,
        is_used=False,
    ).filter(EmailVerification.expires_at > datetime.utcnow()).first()

    user = _find_user(email)
    if not verification or not user:
        return _fail("Código inválido ou expirado.")

    verification.is_used = True
    user.is_email_verified = True
    db.session.commit()

    return {"success": True, "category": "success", "message": "Email verificado com sucesso! Faça login para continuar."}


def _log_attempt(email: str, succeeded: bool, message: str, request, user_id: int | None = None) -> None:
    audit = LoginAudit(
        email=email,
        succeeded=succeeded,
        message=message,
        user_id=user_id,
        ip_address=request.remote_addr,
        user_agent=(request.headers.get("User-Agent") or "")[:255] or None,
    )
    db.session.add(audit)
    db.session.commit()


def process_login(email: str | None, password: str | None, request) -> dict:
    email = (email or "").strip().lower()
    password = password or ""

    if not email or not password:
        return _fail("Informe e-mail e senha.", user=None)

    user = _find_user(email)

    if not user or not check_password_hash(user.password_hash, password):
        _log_attempt(email, False, "Credenciais inválidas", request)
        return _fail("E-mail ou senha inválidos.", user=None)

    if current_app.config.get("REQUIRE_EMAIL_VERIFICATION") and not user.is_email_verified:
        _log_attempt(email, False, "Email não verificado", request, user_id=user.id)
        return _fail("Verifique seu email antes de entrar.", category="warning", user=None)

    _log_attempt(email, True, "Login bem-sucedido", request, user_id=user.id)
    return {
        "success": True,
        "category": "success",
        "message": "Bem-vindo ao Economize!",
        "user": user,
    }


def request_password_reset(email: str | None, build_link) -> dict:
    """Gera token de recuperação e envia o link por email.

    ``build_link(token)`` devolve a URL absoluta da tela de redefinição.
    A resposta é a mesma para emails cadastrados ou não.
    """
    email = (email or "").strip().lower()
    if not email:
        return _fail("Informe seu email.")

    user = _find_user(email)
    if not user:
        return {"success": True, "category": "info", "message": GENERIC_RESET_MESSAGE}

    # Um link novo invalida os anteriores
    PasswordReset.query.filter_by(user_id=user.id, is_used=False).update({"is_used": True})

    token = secrets.token_urlsafe(32)
    db.session.add(PasswordReset(
        user_id=user.id,
        token=token,
        expires_at=datetime.utcnow() + PASSWORD_RESET_TTL,
    ))
    db.session.flush()

    email_ok = send_password_reset(email, build_link(token), current_app._get_current_object())
    if not email_ok:
        db.session.rollback()
        logger.error("Link de recuperação não enviado para %s", email)
        return {"success": True, "category": "info", "message": GENERIC_RESET_MESSAGE}

    db.session.commit()
    return {"success": True, "category": "info", "message": GENERIC_RESET_MESSAGE}


def find_valid_reset(token: str) -> PasswordReset | None:
    return PasswordReset.query.filter_by(
        token=token,
        is_used=False,
    ).filter(PasswordReset.expires_at > datetime.utcnow()).first()


def reset_password(token: str, password: str | None, confirm: str | None) -> dict:
    reset = find_valid_reset(token)
    if not reset:
        return _fail("Link inválido ou expirado. Solicite um novo link de recuperação.")

    password_error = _check_new_password(password or "", confirm or "")
    if password_error:
        return _fail(password_error)

    reset.user.password_hash = generate_password_hash(password)
    reset.is_used = True
    db.session.commit()

    return {"success": True, "category": "success", "message": "Senha redefinida com sucesso! Faça login com sua nova senha."}


def purge_expired_tokens(now: datetime | None = None) -> int:
    """Remove tokens de recuperação e códigos de verificação vencidos ou usados."""
    now = now or datetime.utcnow()

    removed = PasswordReset.query.filter(
        or_(PasswordReset.is_used.is_(True), PasswordReset.expires_at <= now)
    ).delete(synchronize_session=False)
    removed += EmailVerification.query.filter(
        or_(EmailVerification.is_used.is_(True), EmailVerification.expires_at <= now)
    ).delete(synchronize_session=False)
    db.session.commit()

    if removed:
        logger.info("Limpeza de tokens: %s registro(s) removido(s)", removed)
    return removed
