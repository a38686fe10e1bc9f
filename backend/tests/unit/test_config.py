from pathlib import Path

import pytest

from backend.src.services import config as config_module


@pytest.fixture(autouse=True)
def restore_config_cache():
    """
    Ensure configuration cache is cleared between tests.
    """
    config_module.reload_config()
    yield
    config_module.reload_config()


def test_get_config_allows_missing_jwt_secret(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "data" / "notes.db"))

    cfg = config_module.reload_config()

    assert cfg.jwt_secret_key is None
    assert cfg.database_path == (tmp_path / "data" / "notes.db").resolve()
    assert cfg.database_path.parent.is_dir()


def test_get_config_rejects_short_jwt_secret(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "notes.db"))
    monkeypatch.setenv("JWT_SECRET_KEY", "short")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_cors_origins_are_split_on_commas(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "notes.db"))
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")

    cfg = config_module.reload_config()

    assert cfg.cors_origins == ("http://a.test", "http://b.test")


def test_local_mode_can_be_disabled(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "notes.db"))
    monkeypatch.setenv("ENABLE_LOCAL_MODE", "false")

    cfg = config_module.reload_config()

    assert cfg.enable_local_mode is False
    assert cfg.graph_default_color == config_module.DEFAULT_NODE_COLOR
