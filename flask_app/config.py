"""
Flask application configuration.
"""
import os


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-please-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'instance', 'cineverso.db'))
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # TMDB settings; when TMDB_API_KEY is unset, config.ini is consulted
    TMDB_API_KEY = os.environ.get('TMDB_API_KEY')
    TMDB_LANGUAGE = os.environ.get('TMDB_LANGUAGE', 'pt-BR')
    TMDB_TIMEOUT = float(os.environ.get('TMDB_TIMEOUT', '10'))
    CONFIG_FILE = os.environ.get('CINEVERSO_CONFIG', 'config.ini')

    WATCH_HISTORY_CHUNK_SIZE = int(os.environ.get('WATCH_HISTORY_CHUNK_SIZE', '20'))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    SESSION_COOKIE_SECURE = True


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    TMDB_API_KEY = 'test-api-key'
    CONFIG_FILE = 'config-does-not-exist.ini'
