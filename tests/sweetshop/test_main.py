import pytest

from sweetshop.core import config
from sweetshop.main import app


def test_health_check(make_client) -> None:
    response = make_client().get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Sweet Shop API Running'}


def test_expected_routes_are_mounted() -> None:
    paths = {route.path for route in app.routes}

    assert {
        '/auth/register',
        '/auth/login',
        '/auth/me',
        '/auth/logout',
        '/sweets',
        '/sweets/search',
        '/sweets/{sweet_id}',
        '/sweets/{sweet_id}/purchase',
        '/sweets/{sweet_id}/restock',
        '/category',
    } <= paths


def test_validate_runtime_config_rejects_default_secret_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'change-me')

    with pytest.raises(RuntimeError):
        config.validate_runtime_config()


def test_validate_runtime_config_accepts_configured_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'APP_ENV', 'production')
    monkeypatch.setattr(config, 'JWT_SECRET_KEY', 'a-real-secret')

    config.validate_runtime_config()
