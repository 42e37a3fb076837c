"""Tests for hiring_ledger.config loading, overrides and logging setup."""

import configparser
import json
import logging

import pytest

from hiring_ledger import config as config_module
from hiring_ledger.config import (
    LedgerConfig,
    LoggingSettings,
    _JsonFormatter,
    _load_from_ini,
    _parse_list,
    configure_logging,
    get_config_status,
    load_config,
    print_config_summary,
    use_test_database,
)


@pytest.mark.unit
def test_defaults():
    """Built-in defaults apply when nothing else is set."""
    cfg = LedgerConfig()

    assert cfg.server.port == 8000
    assert cfg.database.backend == "sqlite"
    assert cfg.ledger.owner == "ledger-admin"
    assert cfg.database.absolute_path == config_module.PROJECT_ROOT / "data" / "ledger.db"


@pytest.mark.unit
def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LEDGER_HOST", "0.0.0.0")
    monkeypatch.setenv("LEDGER_PORT", "9100")
    monkeypatch.setenv("LEDGER_DB_BACKEND", "MEMORY")
    monkeypatch.setenv("LEDGER_DB_PATH", "/var/lib/ledger/ledger.db")
    monkeypatch.setenv("LEDGER_OWNER", "  hr-admin ")
    monkeypatch.setenv("LEDGER_LOG_LEVEL", "debug")
    monkeypatch.setenv("LEDGER_LOG_FORMAT", "json")
    monkeypatch.setenv("LEDGER_CORS_ORIGINS", "https://a.example, https://b.example")

    cfg = load_config()

    assert cfg.server.host == "0.0.0.0"
    assert cfg.server.port == 9100
    assert cfg.database.backend == "memory"
    assert str(cfg.database.absolute_path) == "/var/lib/ledger/ledger.db"
    assert cfg.ledger.owner == "hr-admin"
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.format == "json"
    assert cfg.security.cors_origins == ["https://a.example", "https://b.example"]


@pytest.mark.unit
def test_unknown_backend_env_is_ignored(monkeypatch):
    monkeypatch.setenv("LEDGER_DB_BACKEND", "postgres")

    assert load_config().database.backend in ("sqlite", "memory")


@pytest.mark.unit
def test_ini_overrides():
    """Settings load from every INI section."""
    parser = configparser.ConfigParser()
    parser.read_dict(
        {
            "server": {"host": "10.0.0.5", "port": "8443"},
            "security": {"cors_origins": "", "docs_enabled": "false"},
            "database": {"backend": "memory", "path": "state/ledger.db"},
            "ledger": {"owner": "talent-team"},
            "logging": {"level": "warning", "format": "simple"},
        }
    )

    cfg = LedgerConfig()
    _load_from_ini(parser, cfg)

    assert cfg.server.host == "10.0.0.5"
    assert cfg.server.port == 8443
    assert cfg.security.cors_origins == []
    assert cfg.security.docs_enabled is False
    assert cfg.database.backend == "memory"
    assert cfg.database.path == "state/ledger.db"
    assert cfg.ledger.owner == "talent-team"
    assert cfg.logging.level == "WARNING"
    assert cfg.logging.format == "simple"


@pytest.mark.unit
@pytest.mark.parametrize(
    ("raw", "expected"),
    [("", []), (" , ", []), ("a", ["a"]), ("a, b ,c", ["a", "b", "c"])],
)
def test_parse_list(raw, expected):
    assert _parse_list(raw) == expected


@pytest.mark.unit
def test_use_test_database_restores_settings(tmp_path):
    """use_test_database points at a temp file and restores on exit."""
    original_path = config_module.config.database.path
    original_backend = config_module.config.database.backend

    with use_test_database(tmp_path / "t.db") as db_path:
        assert config_module.config.database.absolute_path == db_path
        assert config_module.config.database.backend == "sqlite"
        assert get_config_status()["database_path"] == str(db_path)

    assert config_module.config.database.path == original_path
    assert config_module.config.database.backend == original_backend


@pytest.mark.unit
def test_print_config_summary(capsys):
    print_config_summary()

    output = capsys.readouterr().out
    assert "LEDGER CONFIGURATION" in output
    assert "Owner seed:" in output


@pytest.mark.unit
def test_configure_logging_does_not_stack_handlers():
    """Repeated calls replace the ledger handler instead of adding another."""
    logger = logging.getLogger("hiring_ledger")
    before = [h for h in logger.handlers if h.get_name() != "hiring_ledger"]

    configure_logging(LoggingSettings(level="DEBUG", format="simple"))
    configure_logging(LoggingSettings(level="WARNING", format="json"))

    ours = [h for h in logger.handlers if h.get_name() == "hiring_ledger"]
    assert len(ours) == 1
    assert isinstance(ours[0].formatter, _JsonFormatter)
    assert logger.level == logging.WARNING

    logger.removeHandler(ours[0])
    logger.setLevel(logging.NOTSET)
    assert [h for h in logger.handlers if h.get_name() != "hiring_ledger"] == before


@pytest.mark.unit
def test_json_formatter_renders_one_object():
    record = logging.LogRecord("hiring_ledger.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)

    payload = json.loads(_JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "hiring_ledger.test"
    assert payload["message"] == "hello x"


@pytest.mark.unit
def test_reload_config_rebinds_module_config(monkeypatch):
    """reload_config replaces the module-level config with fresh values."""
    original = config_module.config
    monkeypatch.setenv("LEDGER_OWNER", "reloaded-owner")

    try:
        reloaded = config_module.reload_config()

        assert reloaded is config_module.config
        assert reloaded.ledger.owner == "reloaded-owner"
    finally:
        config_module.config = original
