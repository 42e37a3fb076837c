"""
Ledger configuration management.

This module loads configuration from multiple sources with a clear priority
order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/ledger.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The
LedgerConfig dataclass provides typed access to all settings.

Usage:
    from hiring_ledger.config import config

    print(config.server.port)
    print(config.database.backend)
    print(config.ledger.owner)

Environment Variable Mapping:
    LEDGER_HOST          -> server.host
    LEDGER_PORT          -> server.port
    LEDGER_DB_BACKEND    -> database.backend
    LEDGER_DB_PATH       -> database.path
    LEDGER_OWNER         -> ledger.owner
    LEDGER_LOG_LEVEL     -> logging.level
    LEDGER_LOG_FORMAT    -> logging.format
    LEDGER_CORS_ORIGINS  -> security.cors_origins
"""

import configparser
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "ledger.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "ledger.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class SecuritySettings:
    """HTTP security configuration."""

    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    docs_enabled: bool = True


@dataclass
class DatabaseSettings:
    """Storage backend configuration."""

    backend: Literal["sqlite", "memory"] = "sqlite"
    path: str = "data/ledger.db"

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to database file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class LedgerSettings:
    """Ledger state configuration."""

    # Seeded as owner only when the ledger has no persisted state yet.
    owner: str = "ledger-admin"


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed", "json"] = "detailed"


@dataclass
class LedgerConfig:
    """
    Complete ledger configuration.

    Aggregates all settings sections. Access via the module-level `config`
    singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to list, stripping whitespace."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_from_ini(parser: configparser.ConfigParser, cfg: LedgerConfig) -> None:
    """Load configuration from parsed INI file into LedgerConfig."""
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    if parser.has_section("security"):
        if parser.has_option("security", "cors_origins"):
            cfg.security.cors_origins = _parse_list(parser.get("security", "cors_origins"))
        if parser.has_option("security", "docs_enabled"):
            cfg.security.docs_enabled = _parse_bool(parser.get("security", "docs_enabled"))

    if parser.has_section("database"):
        if parser.has_option("database", "backend"):
            val = parser.get("database", "backend").lower()
            if val in ("sqlite", "memory"):
                cfg.database.backend = val  # type: ignore[assignment]
        if parser.has_option("database", "path"):
            cfg.database.path = parser.get("database", "path")

    if parser.has_section("ledger"):
        if parser.has_option("ledger", "owner"):
            cfg.ledger.owner = parser.get("ledger", "owner").strip()

    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed", "json"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: LedgerConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if env_host := os.getenv("LEDGER_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("LEDGER_PORT"):
        cfg.server.port = int(env_port)

    if env_cors := os.getenv("LEDGER_CORS_ORIGINS"):
        cfg.security.cors_origins = _parse_list(env_cors)

    if env_backend := os.getenv("LEDGER_DB_BACKEND"):
        if env_backend.lower() in ("sqlite", "memory"):
            cfg.database.backend = env_backend.lower()  # type: ignore[assignment]
    if env_db := os.getenv("LEDGER_DB_PATH"):
        cfg.database.path = env_db

    if env_owner := os.getenv("LEDGER_OWNER"):
        cfg.ledger.owner = env_owner.strip()

    if env_log := os.getenv("LEDGER_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()
    if env_log_format := os.getenv("LEDGER_LOG_FORMAT"):
        if env_log_format.lower() in ("simple", "detailed", "json"):
            cfg.logging.format = env_log_format.lower()  # type: ignore[assignment]


def load_config() -> LedgerConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. config/ledger.ini
        3. config/ledger.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        LedgerConfig: Fully populated configuration object.
    """
    cfg = LedgerConfig()

    config_file = None
    if CONFIG_FILE.exists():
        config_file = CONFIG_FILE
    elif CONFIG_EXAMPLE.exists():
        config_file = CONFIG_EXAMPLE

    if config_file:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "LedgerConfig":
    """
    Reload configuration from disk and environment.

    Updates the module-level `config` singleton. Already-built stores and
    apps keep the settings they were created with.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# LOGGING
# =============================================================================

_LOG_FORMATS = {
    "simple": "%(levelname)s %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
}


class _JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """
    Configure the ``hiring_ledger`` logger hierarchy from settings.

    Replaces handlers previously installed by this function so repeated calls
    (CLI then server start) do not duplicate output.
    """
    settings = settings or config.logging
    handler = logging.StreamHandler()
    if settings.format == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_LOG_FORMATS[settings.format]))
    handler.set_name("hiring_ledger")

    root = logging.getLogger("hiring_ledger")
    for existing in list(root.handlers):
        if existing.get_name() == "hiring_ledger":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.level)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "database_backend": config.database.backend,
        "database_path": str(config.database.absolute_path),
        "default_owner": config.ledger.owner,
        "docs_enabled": config.security.docs_enabled,
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("LEDGER CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to ledger.ini for production)")
    print("-" * 60)
    print(f"Server:      {config.server.host}:{config.server.port}")
    print(f"Backend:     {config.database.backend}")
    print(f"Database:    {config.database.absolute_path}")
    print(f"Owner seed:  {config.ledger.owner}")
    print(f"Log level:   {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_database:
    """
    Context manager for pointing the config at a temporary SQLite file.

    Usage:
        from hiring_ledger.config import use_test_database

        def test_something(tmp_path):
            with use_test_database(tmp_path / "test.db"):
                backend = create_backend()

    Args:
        db_path: Path to the test database file
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.original_path: str | None = None
        self.original_backend: str | None = None

    def __enter__(self) -> Path:
        self.original_path = config.database.path
        self.original_backend = config.database.backend
        config.database.path = str(self.db_path)
        config.database.backend = "sqlite"
        return self.db_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.original_path is not None:
            config.database.path = self.original_path
        if self.original_backend is not None:
            config.database.backend = self.original_backend  # type: ignore[assignment]
        return None
