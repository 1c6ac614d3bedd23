import logging

from flask import Flask
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy

from config import Config

db = SQLAlchemy()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )

    db.init_app(app)

    # The browser extension talks to the API from its own origin
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    from giddylist.auth import AuthService
    from giddylist.services.guide_generator import GuideGenerator
    from giddylist.services.storage_service import StorageService
    from giddylist.services.suggestion_service import SuggestionService
    app.extensions['auth_service'] = AuthService(
        app.config.get('SUPABASE_URL'),
        app.config.get('SUPABASE_ANON_KEY'),
    )
    app.extensions['storage_service'] = StorageService(
        app.config.get('SUPABASE_URL'),
        app.config.get('SUPABASE_SERVICE_ROLE_KEY'),
    )
    app.extensions['guide_generator'] = GuideGenerator.from_config(app.config)
    app.extensions['suggestion_service'] = SuggestionService.from_config(app.config)

    from giddylist.errors import register_error_handlers
    register_error_handlers(app)

    from giddylist.routes import register_blueprints
    register_blueprints(app)

    # Import models so create_all sees every table
    from giddylist import models  # noqa: F401

    if not app.config.get('DATABASE_CONFIGURED'):
        with app.app_context():
            db.create_all()
        app.logger.warning("No database configured, using an in-memory store")

    return app
