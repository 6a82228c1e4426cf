#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Serviço de envio de emails do Economize (Brevo com fallback SMTP)"""

from flask import Flask, render_template_string
from flask_mail import Mail, Message
import os
from dotenv import load_dotenv
from threading import Thread
import logging
import requests
from email.utils import parseaddr

load_dotenv()

mail = Mail()
logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"


def _env_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    v = str(value).strip().lower()
    return v in ("1", "true", "t", "yes", "y", "on", "sim")


def init_mail(app: Flask):
    """Inicializa o serviço de email.

    Valores já presentes em ``app.config`` (ex.: configuração de testes)
    têm prioridade sobre as variáveis de ambiente.
    """
    app.config.setdefault('MAIL_SERVER', os.getenv('MAIL_SERVER', 'smtp-relay.brevo.com'))
    app.config.setdefault('MAIL_PORT', int(os.getenv('MAIL_PORT', 587)))
    app.config.setdefault('MAIL_USE_TLS', _env_bool(os.getenv('MAIL_USE_TLS', 'true'), default=True))
    app.config.setdefault('MAIL_USE_SSL', _env_bool(os.getenv('MAIL_USE_SSL', 'false'), default=False))

    raw_sender = os.getenv('MAIL_DEFAULT_SENDER')
    if raw_sender:
        _, parsed_email = parseaddr(raw_sender)
        app.config.setdefault('MAIL_DEFAULT_SENDER', parsed_email or raw_sender)
    else:
        app.config.setdefault('MAIL_DEFAULT_SENDER', None)
    app.config.setdefault('MAIL_USERNAME', os.getenv('MAIL_USERNAME') or raw_sender)
    app.config.setdefault('MAIL_PASSWORD', os.getenv('MAIL_PASSWORD') or os.getenv('MAIL_DEFAULT_SENDER_SENHA'))

    app.config.setdefault('MAIL_TIMEOUT', int(os.getenv('MAIL_TIMEOUT', 30)))

    # Base da URL pública para montar links enviados por email
    # Ex.: APP_BASE_URL=http://localhost:5000
    app.config.setdefault('APP_BASE_URL', os.getenv('APP_BASE_URL', '').rstrip('/'))

    app.config.setdefault('BREVO_API_KEY', os.getenv('BREVO_API_KEY'))
    app.config.setdefault('BREVO_SENDER_NAME', os.getenv('BREVO_SENDER_NAME', 'Economize'))
    app.config.setdefault('BREVO_SENDER_EMAIL', os.getenv('BREVO_SENDER_EMAIL'))

    mail.init_app(app)


def _send_brevo_email(app: Flask, subject: str, recipients: list[str], html: str) -> bool:
    api_key = app.config.get('BREVO_API_KEY')
    if not api_key:
        return False

    sender_email = app.config.get('BREVO_SENDER_EMAIL') or app.config.get('MAIL_DEFAULT_SENDER')
    sender_name = app.config.get('BREVO_SENDER_NAME')
    if not sender_email:
        logger.error("[BREVO] Remetente ausente. Defina BREVO_SENDER_EMAIL (ou MAIL_DEFAULT_SENDER).")
        return False

    payload = {
        "sender": {"email": sender_email},
        "to": [{"email": r} for r in recipients],
        "subject": subject,
        "htmlContent": html,
    }
    if sender_name:
        payload["sender"]["name"] = sender_name

    headers = {
        "accept": "application/json",
        "api-key": api_key,
        "content-type": "application/json",
    }

    try:
        resp = requests.post(
            BREVO_API_URL,
            headers=headers,
            json=payload,
            timeout=int(app.config.get('MAIL_TIMEOUT', 30)),
        )
    except requests.RequestException:
        logger.exception("[BREVO] Erro ao enviar email para %s", recipients)
        return False

    if 200 <= resp.status_code < 300:
        logger.info("[BREVO] Email enviado para %s", recipients)
        return True

    logger.error("[BREVO] Falha ao enviar email (status=%s): %s", resp.status_code, resp.text)
    return False


def _brevo_enabled(app: Flask) -> bool:
    return bool(app.config.get('BREVO_API_KEY'))


def _send_async_email(app: Flask, msg: Message):
    """Envia email em thread separada (não bloqueia a requisição)"""
    try:
        with app.app_context():
            mail.send(msg)
            logger.info("Email enviado para %s", msg.recipients)
    except Exception:
        logger.exception("Erro ao enviar email para %s", msg.recipients)


def _send_email_background(app: Flask, msg: Message):
    """Envia email em background thread"""
    thread = Thread(target=_send_async_email, args=(app, msg))
    thread.daemon = True
    thread.start()


def _deliver(app: Flask, subject: str, recipient: str, html_body: str) -> bool:
    """Tenta Brevo; sem chave Brevo, enfileira via SMTP (Flask-Mail)."""
    if _send_brevo_email(app=app, subject=subject, recipients=[recipient], html=html_body):
        return True

    if _brevo_enabled(app):
        return False

    if not app.config.get('MAIL_USERNAME') or not app.config.get('MAIL_PASSWORD'):
        logger.error("[SMTP] Credenciais SMTP ausentes. Defina MAIL_USERNAME e MAIL_PASSWORD no .env")
        return False

    msg = Message(subject=subject, recipients=[recipient], html=html_body)
    _send_email_background(app, msg)
    logger.info("Email '%s' enfileirado para %s", subject, recipient)
    return True


_BASE_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: linear-gradient(135deg, #16a34a, #15803d); color: white; padding: 20px; border-radius: 8px; text-align: center; }
    .content { background: #f8fafc; padding: 30px; border-radius: 8px; margin: 20px 0; text-align: center; }
    .code { font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #16a34a; background: white; padding: 15px; border-radius: 8px; margin: 20px 0; }
    .button { display: inline-block; background: #16a34a; color: white; padding: 12px 24px; border-radius: 6px; text-decoration: none; margin: 10px 0; }
    .footer { text-align: center; color: #999; font-size: 12px; margin-top: 20px; }
"""


def send_verification_code(recipient_email: str, code: str, app: Flask) -> bool:
    """Envia código de verificação de email"""
    email_template = """
    <html>
        <head><style>{{ style }}</style></head>
        <body>
            <div class="container">
                <div class="header"><h1>Código de Verificação</h1></div>
                <div class="content">
                    <p>Use o código abaixo para verificar seu email:</p>
                    <div class="code">{{ code }}</div>
                    <p><small>Este código expira em 15 minutos.</small></p>
                </div>
                <div class="footer"><p>Economize - Controle Financeiro Pessoal</p></div>
            </div>
        </body>
    </html>
    """
    with app.app_context():
        html_body = render_template_string(email_template, code=code, style=_BASE_STYLE)
        return _deliver(app, 'Código de Verificação - Economize', recipient_email, html_body)


def send_password_reset(recipient_email: str, reset_link: str, app: Flask) -> bool:
    """Envia link de recuperação de senha"""
    email_template = """
    <html>
        <head><style>{{ style }}</style></head>
        <body>
            <div class="container">
                <div class="header"><h1>Recuperação de Senha</h1></div>
                <div class="content">
                    <p>Clique no botão abaixo para redefinir sua senha:</p>
                    <a href="{{ reset_link }}" class="button">Redefinir Senha</a>
                    <p>Ou copie e cole este link no seu navegador:</p>
                    <p><small>{{ reset_link }}</small></p>
                    <p><small>Este link expira em 1 hora.</small></p>
                </div>
                <div class="footer"><p>Economize - Controle Financeiro Pessoal</p></div>
            </div>
        </body>
    </html>
    """
    with app.app_context():
        html_body = render_template_string(email_template, reset_link=reset_link, style=_BASE_STYLE)
        return _deliver(app, 'Recuperação de Senha - Economize', recipient_email, html_body)
