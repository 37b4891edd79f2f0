"""Flask application for the bilingual reading API."""

from flask import Flask
from flask_cors import CORS
import os
import logging

from bilingual_reader.config import Config
from bilingual_reader.session.article_store import ArticleStore
from bilingual_reader.session.session_store import JsonSessionStore


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config=None):
    """
    Create and configure the Flask application.

    Args:
        config: Optional mapping of Flask config overrides. SESSION_FOLDER and
            ARTICLE_FOLDER choose the storage directories; SESSION_STORE and
            ARTICLE_STORE may be given directly.
    """
    app = Flask(__name__)

    # Configure CORS for API endpoints
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "PATCH", "DELETE"],
            "allow_headers": ["Content-Type"]
        }
    })

    app.config['SESSION_FOLDER'] = str(Config.SESSION_DIR)
    app.config['ARTICLE_FOLDER'] = str(Config.ARTICLE_DIR)
    app.json.ensure_ascii = False
    if config:
        app.config.update(config)

    # Ensure required directories exist
    os.makedirs(app.config['SESSION_FOLDER'], exist_ok=True)
    os.makedirs(app.config['ARTICLE_FOLDER'], exist_ok=True)

    if app.config.get('SESSION_STORE') is None:
        app.config['SESSION_STORE'] = JsonSessionStore(storage_dir=app.config['SESSION_FOLDER'])
    if app.config.get('ARTICLE_STORE') is None:
        app.config['ARTICLE_STORE'] = ArticleStore(storage_dir=app.config['ARTICLE_FOLDER'])

    logger.info(f"Sessions stored in {app.config['SESSION_FOLDER']}")
    logger.info(f"Articles stored in {app.config['ARTICLE_FOLDER']}")

    # Register routes
    register_routes(app)

    return app


def register_routes(app):
    """Register all application routes."""
    from bilingual_reader.web import api
    app.register_blueprint(api.bp)
