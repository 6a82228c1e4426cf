# application.py
"""
Fábrica da aplicação Flask do Economize.

A instância usada pelo servidor WSGI fica em ``run.py``; os testes chamam
``create_app`` com uma configuração própria.
"""

import os
import logging

import click
from flask import Flask, jsonify, request
from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv

from global_blueprints import register_blueprints, API_PREFIX
from extensions import db, migrate, cors, get_current_db_url, init_database, get_db_stats
from email_service import init_mail, _env_bool

# Carregar variáveis de ambiente
load_dotenv()

logger = logging.getLogger(__name__)


def _cors_origins():
    raw = (os.getenv("CORS_ORIGINS") or "*").strip()
    if raw == "*":
        return "*"
    return [o.strip() for o in raw.split(",") if o.strip()]


def _iniciar_scheduler_limpeza(app: Flask):
    """Inicia o job em background que apaga tokens de senha e códigos vencidos.

    Se CLEANUP_JOB_ENABLED estiver desligado, o scheduler NÃO é iniciado.
    """
    if not app.config.get("CLEANUP_JOB_ENABLED"):
        return None

    # Com o reloader do Flask ativo só o processo filho sobe o scheduler
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return None

    from modulos.financas.auth_backend import purge_expired_tokens

    try:
        intervalo_min = int(str(app.config.get("CLEANUP_INTERVAL_MIN", 60)).strip())
        if intervalo_min <= 0:
            intervalo_min = 60
    except ValueError:
        intervalo_min = 60

    def _job_limpeza():
        """Garante contexto da aplicação ao rodar a limpeza."""
        with app.app_context():
            try:
                purge_expired_tokens()
            except Exception:
                db.session.rollback()
                logger.exception("[cleanup] Falha ao limpar tokens vencidos")

    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        _job_limpeza,
        "interval",
        minutes=intervalo_min,
        id="token_cleanup_job",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("[cleanup] Scheduler iniciado (a cada %s min)", intervalo_min)
    return scheduler


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config.from_mapping(
        SECRET_KEY=os.getenv("SECRET_KEY", "chave_padrao_insegura"),
        SQLALCHEMY_DATABASE_URI=get_current_db_url(),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SQLALCHEMY_ENGINE_OPTIONS={
            "pool_pre_ping": True,
            "pool_recycle": 300,
        },
        REQUIRE_EMAIL_VERIFICATION=_env_bool(os.getenv("REQUIRE_EMAIL_VERIFICATION"), default=False),
        CLEANUP_JOB_ENABLED=_env_bool(os.getenv("CLEANUP_JOB_ENABLED"), default=False),
        CLEANUP_INTERVAL_MIN=os.getenv("CLEANUP_INTERVAL_MIN", "60"),
        CORS_ORIGINS=_cors_origins(),
    )
    if test_config:
        app.config.update(test_config)

    # Inicializar extensões
    db.init_app(app)
    migrate.init_app(app, db)
    init_mail(app)

    # Cookie de sessão só vai junto quando as origens são explícitas
    origins = app.config["CORS_ORIGINS"]
    cors.init_app(app, resources={
        rf"{API_PREFIX}/api/*": {
            "origins": origins,
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
            "supports_credentials": origins != "*",
        }
    })

    # Registrar todos os blueprints da aplicação
    register_blueprints(app)

    def _is_api_request() -> bool:
        return request.path.startswith(f"{API_PREFIX}/api/")

    @app.errorhandler(404)
    def api_404(e):
        if _is_api_request():
            return jsonify({"success": False, "message": "Endpoint não encontrado", "path": request.path}), 404
        return e, 404

    @app.errorhandler(405)
    def api_405(e):
        if _is_api_request():
            return jsonify({"success": False, "message": "Método não permitido", "path": request.path}), 405
        return e, 405

    @app.errorhandler(500)
    def api_500(e):
        if _is_api_request():
            return jsonify({"success": False, "message": "Erro interno no servidor", "path": request.path}), 500
        return e, 500

    @app.cli.command("init-db")
    def init_db_command():
        """Cria as tabelas no banco configurado."""
        init_database()
        click.echo("✅ Banco inicializado com sucesso!")

    @app.cli.command("db-stats")
    def db_stats_command():
        """Mostra estatísticas do banco de dados."""
        stats = get_db_stats()
        click.echo(f"📊 Estatísticas do Banco: {stats['type']}")
        click.echo(f"🔗 URL: {stats['url']}")
        click.echo(f"🔗 Status: {stats['status']}")
        if stats.get("tables"):
            click.echo(f"📋 Tabelas: {', '.join(stats['tables'])}")
        if stats.get("connections"):
            click.echo(f"🔗 Conexões: {stats['connections']}")

    @app.cli.command("purge-tokens")
    def purge_tokens_command():
        """Remove tokens de recuperação e códigos de verificação vencidos."""
        from modulos.financas.auth_backend import purge_expired_tokens
        removed = purge_expired_tokens()
        click.echo(f"🧹 {removed} registro(s) removido(s)")

    _iniciar_scheduler_limpeza(app)

    return app

