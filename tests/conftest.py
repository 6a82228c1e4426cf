"""
Fixtures compartilhadas dos testes do Economize.

Cada teste recebe uma aplicação nova com SQLite em memória. O envio de
emails é substituído por funções que só registram o que seria enviado.
"""

import pytest
from werkzeug.security import generate_password_hash

from application import create_app
from extensions import db
from models import User, UserProfile

API = "/financas/api"
DEFAULT_PASSWORD = "segredo123"


@pytest.fixture
def outbox(monkeypatch):
    """Lista de emails 'enviados' durante o teste."""
    sent = []

    def _fake_verification(email, code, app):
        sent.append({"kind": "verification", "to": email, "code": code})
        return True

    def _fake_reset(email, link, app):
        sent.append({"kind": "reset", "to": email, "link": link})
        return True

    monkeypatch.setattr("modulos.financas.auth_backend.send_verification_code", _fake_verification)
    monkeypatch.setattr("modulos.financas.auth_backend.send_password_reset", _fake_reset)
    return sent


@pytest.fixture
def app(outbox):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "MAIL_SUPPRESS_SEND": True,
        "APP_BASE_URL": "http://economize.test",
        "CLEANUP_JOB_ENABLED": False,
        "REQUIRE_EMAIL_VERIFICATION": False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Cria um usuário direto no banco e devolve o objeto."""
    def _make(email="ana@example.com", password=DEFAULT_PASSWORD, full_name="Ana Souza", verified=True):
        user = User(
            email=email,
            password_hash=generate_password_hash(password),
            is_email_verified=verified,
        )
        user.profile = UserProfile(full_name=full_name)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


def login(client, email="ana@example.com", password=DEFAULT_PASSWORD):
    return client.post(f"{API}/login", json={"email": email, "password": password})


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def auth_client(client, user):
    """Cliente já autenticado como ``user``."""
    resp = login(client)
    assert resp.status_code == 200
    return client


@pytest.fixture
def other_client(app, make_user):
    """Segundo usuário, em outro cliente, para testar isolamento."""
    make_user(email="bruno@example.com", full_name="Bruno Lima")
    other = app.test_client()
    resp = login(other, email="bruno@example.com")
    assert resp.status_code == 200
    return other
