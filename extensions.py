"""
Extensões Flask - Configuração Centralizada
==========================================

Instâncias compartilhadas das extensões usadas pelo Economize.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_cors import CORS

# Instância global do SQLAlchemy
db = SQLAlchemy()

# Instância global do Flask-Migrate
migrate = Migrate()

# CORS para o front-end (origens configuradas em create_app)
cors = CORS()

from config_db import get_database_url, init_database, get_db_stats


def get_current_db_url():
    """Retorna URL atual do banco"""
    return get_database_url('auto')


__all__ = [
    'db',
    'migrate',
    'cors',
    'get_current_db_url',
    'init_database',
    'get_db_stats',
]
