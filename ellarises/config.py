"""Configuration classes selected by ``create_app(config_name)``."""
import os
from datetime import timedelta

from sqlalchemy.engine import URL

DEV_SECRET_KEY = 'ella-rises-dev-secret-change-me'


def env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env(*names, default=None):
    """Return the first environment variable that is set among ``names``."""
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return default


def build_database_uri(production=False):
    """
    Build the SQLAlchemy URI from the environment.

    ``DATABASE_URL`` wins when present. Otherwise the URI is assembled from the
    ``DB_*`` variables (or the ``RDS_*`` ones set by Elastic Beanstalk). Local
    defaults are only used outside production.
    """
    url = os.environ.get('DATABASE_URL')
    if url:
        # Heroku style URLs use the scheme SQLAlchemy no longer accepts
        if url.startswith('postgres://'):
            url = 'postgresql://' + url[len('postgres://'):]
        return url

    user = _env('RDS_USERNAME', 'DB_USER')
    password = _env('RDS_PASSWORD', 'DB_PASSWORD')
    if production and (not user or not password):
        raise RuntimeError('Database credentials must be set in production (DB_USER / DB_PASSWORD).')

    query = {'sslmode': 'require'} if env_flag('DB_SSL') else {}
    return URL.create(
        'postgresql+psycopg2',
        username=user or 'postgres',
        password=password or None,
        host=_env('RDS_HOSTNAME', 'DB_HOST', default='localhost'),
        port=int(_env('RDS_PORT', 'DB_PORT', default='5432')),
        database=_env('RDS_DB_NAME', 'DB_NAME', default='postgres'),
        query=query,
    ).render_as_string(hide_password=False)


class Config:
    SECRET_KEY = None
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Pool of 2 connections plus up to 8 overflow, 10 at most.
    SQLALCHEMY_POOL_OPTIONS = {'pool_size': 2, 'max_overflow': 8, 'pool_pre_ping': True}

    # Session cookie
    SESSION_COOKIE_NAME = 'ellarises_session'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)
    SESSION_REFRESH_EACH_REQUEST = False

    # Passwords
    PASSWORD_HASH_METHOD = 'scrypt'
    PASSWORD_MIN_LENGTH = 6
    LEGACY_PLAINTEXT_PASSWORDS = False

    # i18n
    BABEL_DEFAULT_LOCALE = 'en'
    LANGUAGES = ['en', 'es']

    SHOW_ERROR_DETAILS = False
    LOG_LEVEL = 'INFO'
    PRODUCTION = False


class DevelopmentConfig(Config):
    DEBUG = True
    SHOW_ERROR_DETAILS = True


class ProductionConfig(Config):
    DEBUG = False
    PRODUCTION = True
    SESSION_COOKIE_SECURE = True
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_POOL_OPTIONS = {}
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    LEGACY_PLAINTEXT_PASSWORDS = False


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def apply_environment(app):
    """Fill the settings that come from the environment once ``.env`` is loaded."""
    production = app.config['PRODUCTION']

    if not app.config.get('SECRET_KEY'):
        secret = os.environ.get('SESSION_SECRET')
        if not secret and production:
            raise RuntimeError('SESSION_SECRET must be set in production.')
        app.config['SECRET_KEY'] = secret or DEV_SECRET_KEY

    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = build_database_uri(production)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgresql'):
        app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', dict(app.config['SQLALCHEMY_POOL_OPTIONS']))

    if not app.testing:
        app.config['LEGACY_PLAINTEXT_PASSWORDS'] = env_flag(
            'LEGACY_PLAINTEXT_PASSWORDS', app.config['LEGACY_PLAINTEXT_PASSWORDS'])
        app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', app.config['LOG_LEVEL'])
