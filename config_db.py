"""
Configuração Centralizada do Banco de Dados - ECONOMIZE
=====================================================

Este arquivo centraliza a resolução da URL do banco, a criação das
tabelas e as estatísticas exibidas pelo comando ``flask db-stats``.

Suporte a múltiplos bancos:
- PostgreSQL (produção, via DATABASE_URL)
- SQLite (desenvolvimento/local)

Uso:
    from config_db import get_database_url, init_database

    url = get_database_url()

    # Dentro de um app context
    init_database()
"""

import os
import logging
from pathlib import Path
from typing import Dict, Any
from urllib.parse import urlparse

from sqlalchemy import inspect, text
from dotenv import load_dotenv

# Carregar variáveis de ambiente
load_dotenv()

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

# Configurações padrão
DEFAULT_CONFIG = {
    # PostgreSQL (Produção)
    'postgresql': {
        'host': 'localhost',
        'port': 5432,
        'database': 'economize',
        'username': 'postgres',
        'password': '',
    },

    # SQLite (Desenvolvimento)
    'sqlite': {
        'database': 'economize.db',
        'path': str(BASE_DIR / 'instance' / 'economize.db'),
    },
}


def _detect_db_type(database_url: str | None) -> str:
    if not database_url:
        return 'sqlite'
    scheme = urlparse(database_url).scheme
    if scheme.startswith('sqlite'):
        return 'sqlite'
    # Qualquer outro esquema é tratado como PostgreSQL
    return 'postgresql'


def _normalize_url(database_url: str) -> str:
    # Provedores como Render/Heroku ainda entregam "postgres://"
    if database_url.startswith('postgres://'):
        return 'postgresql://' + database_url[len('postgres://'):]
    return database_url


def get_db_config(db_type: str = 'auto') -> Dict[str, Any]:
    """
    Retorna configuração completa do banco de dados.

    Args:
        db_type: Tipo de banco ('postgresql', 'sqlite', 'auto')

    Returns:
        Dicionário com configurações do banco
    """
    if db_type == 'auto':
        actual_db_type = _detect_db_type(os.getenv('DATABASE_URL'))
    else:
        actual_db_type = db_type

    config = DEFAULT_CONFIG.get(actual_db_type, {}).copy()

    # Sobrescrever com variáveis de ambiente
    if actual_db_type == 'postgresql':
        config.update({
            'host': os.getenv('DB_HOST', config.get('host')),
            'port': int(os.getenv('DB_PORT', config.get('port'))),
            'database': os.getenv('DB_NAME', config.get('database')),
            'username': os.getenv('DB_USER', config.get('username')),
            'password': os.getenv('DB_PASSWORD', config.get('password')),
        })

    elif actual_db_type == 'sqlite':
        config.update({
            'database': os.getenv('SQLITE_DB', config.get('database')),
            'path': os.getenv('SQLITE_PATH', config.get('path')),
        })

    config['type'] = actual_db_type
    return config


def get_database_url(db_type: str = 'auto') -> str:
    """
    Retorna a URL de conexão SQLAlchemy.

    DATABASE_URL sempre vence quando definida e ``db_type`` é 'auto'.
    """
    if db_type == 'auto':
        database_url = os.getenv('DATABASE_URL')
        if database_url:
            return _normalize_url(database_url)

    config = get_db_config(db_type)

    if config['type'] == 'postgresql':
        return (
            f"postgresql://{config['username']}:{config['password']}"
            f"@{config['host']}:{config['port']}/{config['database']}"
        )

    db_path = Path(config['path'])
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{db_path}"


def _mask_url(database_url: str) -> str:
    parsed = urlparse(database_url)
    if parsed.password:
        return database_url.replace(f":{parsed.password}@", ":***@")
    return database_url


def init_database(create_tables: bool = True) -> None:
    """
    Cria as tabelas de todos os modelos e testa a conexão.

    Precisa ser chamada dentro de um app context.
    """
    from extensions import db
    import models  # noqa: F401  (registra os modelos no metadata)

    if create_tables:
        db.create_all()
        logger.info("Tabelas criadas/atualizadas com sucesso")

    db.session.execute(text("SELECT 1"))
    logger.info("Conexão com banco estabelecida com sucesso")


def get_db_stats() -> Dict[str, Any]:
    """
    Retorna estatísticas do banco de dados do app atual.

    Returns:
        Dicionário com type, url (senha mascarada), tables, connections e status
    """
    from extensions import db

    database_url = db.engine.url.render_as_string(hide_password=False)
    actual_db_type = _detect_db_type(database_url)

    stats = {
        'type': actual_db_type,
        'url': _mask_url(database_url),
        'tables': [],
        'connections': 0,
    }

    try:
        stats['tables'] = sorted(inspect(db.engine).get_table_names())

        if actual_db_type == 'postgresql':
            result = db.session.execute(text("SELECT count(*) FROM pg_stat_activity"))
            stats['connections'] = result.scalar() or 0

        stats['status'] = 'connected'

    except Exception as e:
        logger.exception("Erro ao coletar estatísticas do banco")
        stats['status'] = f'error: {e}'

    return stats
