"""
Architekt configuration classes for the Flask app factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'architekt_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Production must supply a stable SECRET_KEY
_DEV_SECRET = secrets.token_hex(32)


def _database_url(default=None):
    raw = os.getenv("DATABASE_URL", "")
    # SQLAlchemy 2.0 rejects the legacy postgres:// scheme
    return raw.replace("postgres://", "postgresql://", 1) if raw else default


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Aggregate persistence: "memory" or "sqlalchemy"
    PERSISTENCE_DRIVER = os.getenv("PERSISTENCE_DRIVER", "sqlalchemy")
    PERSISTENCE_SEED = None

    # Owner resolution; the auth layer in front of the API sets the header
    USER_ID_HEADER = os.getenv("USER_ID_HEADER", "X-User-Id")
    DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "local-user")

    # Flow rules
    ALLOW_ALTERNATE_FLOW_CYCLES = _flag("ALLOW_ALTERNATE_FLOW_CYCLES")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url(_SQLITE_DEV)


class TestingConfig(Config):
    """In-memory aggregate store and SQLite; nothing touches disk."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    PERSISTENCE_DRIVER = "memory"
    ALLOW_ALTERNATE_FLOW_CYCLES = False


class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # must be set explicitly
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
