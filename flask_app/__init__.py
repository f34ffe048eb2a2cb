"""
Flask application factory.
"""
import logging
import os
from flask import Flask

from cineverso.config_loader import ConfigLoader
from cineverso.models import TmdbConfig

logger = logging.getLogger(__name__)

CONFIG_CLASSES = {
    'development': 'flask_app.config.DevelopmentConfig',
    'production': 'flask_app.config.ProductionConfig',
    'testing': 'flask_app.config.TestingConfig',
}


def create_app(config_name='development', config_overrides=None):
    """Create and configure the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_object(CONFIG_CLASSES.get(config_name, CONFIG_CLASSES['development']))
    if config_overrides:
        app.config.update(config_overrides)

    loader = ConfigLoader(app.config.get('CONFIG_FILE', 'config.ini'))
    if loader.load_from_file() and 'WATCH_HISTORY_CHUNK_SIZE' not in (config_overrides or {}):
        app.config['WATCH_HISTORY_CHUNK_SIZE'] = loader.get_settings().watch_history_chunk_size
    app.config['TMDB_CONFIG'] = _resolve_tmdb_config(app, loader)

    # Ensure instance folder exists
    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass

    # Initialize extensions
    from flask_app.models import db
    db.init_app(app)

    # Register blueprints
    from flask_app.routes.main import main_bp
    from flask_app.routes.auth import auth_bp
    from flask_app.routes.lists import lists_bp
    from flask_app.routes.watch_history import watch_history_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(lists_bp, url_prefix='/lists')
    app.register_blueprint(watch_history_bp, url_prefix='/watch-history')

    from flask_app.services.context import close_services
    app.teardown_appcontext(close_services)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


def _resolve_tmdb_config(app, loader):
    """Build the TMDB config from Flask settings, falling back to config.ini."""
    api_key = app.config.get('TMDB_API_KEY')
    if api_key:
        return TmdbConfig(
            api_key=api_key,
            language=app.config.get('TMDB_LANGUAGE', 'pt-BR'),
            timeout=app.config.get('TMDB_TIMEOUT', 10.0)
        )

    try:
        return loader.get_tmdb_config()
    except ValueError as e:
        logger.warning("Catalog disabled: %s", str(e).splitlines()[0])
        return None
