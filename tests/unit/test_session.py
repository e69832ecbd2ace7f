"""Unit tests for database engine configuration"""

from finhealth_gateway.config import settings
from finhealth_gateway.infrastructure.database.session import build_engine


def test_engine_pool_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "db_pool_size", 3)
    monkeypatch.setattr(settings, "db_pool_recycle_seconds", 120)

    engine = build_engine("sqlite:///./test_pool.db")
    try:
        assert engine.pool.size() == 3
        assert engine.pool._recycle == 120
    finally:
        engine.dispose()


def test_engine_defaults_to_configured_url():
    engine = build_engine()
    try:
        assert engine.url.render_as_string(hide_password=False) == settings.database_url
    finally:
        engine.dispose()
