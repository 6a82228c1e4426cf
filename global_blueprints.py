from flask import Blueprint

from modulos.financas.api import financas_bp

main_bp = Blueprint("main", __name__)

API_PREFIX = "/financas"


@main_bp.route("/health")
def health():
    return "OK", 200


def register_blueprints(app):
    """Registra todos os blueprints globais da aplicação."""
    # Health check
    app.register_blueprint(main_bp)

    # Economize (API JSON)
    app.register_blueprint(financas_bp, url_prefix=API_PREFIX)
