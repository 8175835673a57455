"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from finimport.config import BaseConfig, TestingConfig


def test_defaults(config):
    assert config.DEFAULT_ENCODING == "utf-8"
    assert config.DEFAULT_SEPARATOR == ","
    assert config.MAX_IMPORT_BYTES == 10 * 1024 * 1024
    assert config.DEFAULT_CATEGORY == "Otros"
    assert config.DEFAULT_ACCOUNT == "Principal"
    assert config.API_URL is None


def test_environment_overrides(config, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FINIMPORT_MAX_IMPORT_BYTES", "2048")
    monkeypatch.setenv("FINIMPORT_DEFAULT_CATEGORY", "Other")
    monkeypatch.setenv("FINIMPORT_API_URL", "http://backend.local")
    cfg = BaseConfig()
    assert cfg.MAX_IMPORT_BYTES == 2048
    assert cfg.DEFAULT_CATEGORY == "Other"
    assert cfg.API_URL == "http://backend.local"


def test_invalid_integer_setting(config, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FINIMPORT_COMMIT_TIMEOUT", "soon")
    with pytest.raises(ValueError):
        BaseConfig()


def test_non_dev_mode_requires_secret(config, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FINIMPORT_DEV_MODE", "false")
    monkeypatch.delenv("FINIMPORT_SECRET_KEY", raising=False)
    with pytest.raises(ValueError):
        BaseConfig()


def test_testing_config_uses_memory_database(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FINIMPORT_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("FINIMPORT_DATABASE_URL", raising=False)
    cfg = TestingConfig()
    assert cfg.DATABASE_URL == "sqlite://"
    assert "poolclass" in cfg.sqlalchemy_engine_options()
