"""Database wiring for the Flask app."""

from __future__ import annotations

from flask import Flask

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database


def init_db(app: Flask) -> None:
    """Create the engine from app configuration and expose a session factory."""

    config: BaseConfig = app.config["FINIMPORT_CONFIG"]
    engine = create_db_engine(config)
    init_database(engine)

    app.extensions["finimport.engine"] = engine
    app.extensions["finimport.session_factory"] = create_session_factory(engine)
