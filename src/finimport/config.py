"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "FinImport"
    DB_FILENAME = "finimport.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("FINIMPORT_SECRET_KEY", "replace-me")
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("FINIMPORT_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("FINIMPORT_DATABASE_URL", self._build_sqlite_url())
        self.API_URL = os.getenv("FINIMPORT_API_URL") or None

        # Import defaults
        self.DEFAULT_ENCODING = os.getenv("FINIMPORT_DEFAULT_ENCODING", "utf-8")
        self.DEFAULT_SEPARATOR = os.getenv("FINIMPORT_DEFAULT_SEPARATOR", ",")
        self.MAX_IMPORT_BYTES = _env_int("FINIMPORT_MAX_IMPORT_BYTES", 10 * 1024 * 1024)
        self.COMMIT_TIMEOUT = _env_int("FINIMPORT_COMMIT_TIMEOUT", 30)
        self.DEFAULT_CATEGORY = os.getenv("FINIMPORT_DEFAULT_CATEGORY", "Otros")
        self.DEFAULT_ACCOUNT = os.getenv("FINIMPORT_DEFAULT_ACCOUNT", "Principal")

        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("FINIMPORT_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("FINIMPORT_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for the test-suite; keeps the database in memory unless overridden."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = True
        if "FINIMPORT_DATABASE_URL" not in os.environ:
            self.DATABASE_URL = "sqlite://"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        options = super().sqlalchemy_engine_options()
        if self.DATABASE_URL == "sqlite://":
            from sqlalchemy.pool import StaticPool

            options["poolclass"] = StaticPool
        return options
