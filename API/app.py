from flask import Flask
from flask_cors import CORS
import logging
import os
from dotenv import load_dotenv

from Utils.config import ManagerConfig
from Utils.logger import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)


def create_app(config: ManagerConfig = None, manager_factory=None):
    """Create and configure the Flask application"""
    app = Flask(__name__)
    app.json.ensure_ascii = False
    app.json.sort_keys = False

    # The guild id and bearer token are replaced per request
    app.config['MANAGER_CONFIG'] = config or ManagerConfig.from_env(guild_id=os.getenv("DISCORD_GUILD_ID", "0"))
    app.config['MANAGER_FACTORY'] = manager_factory

    # Enable CORS
    CORS(app, resources={
        r"/api/*": {
            "origins": os.getenv("ALLOWED_ORIGINS", "*").split(","),
            "methods": ["GET", "POST", "PUT", "DELETE"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    # Register blueprints
    from .routes import status_bp, permissions_bp

    app.register_blueprint(status_bp, url_prefix='/api/v1')
    app.register_blueprint(permissions_bp, url_prefix='/api/v1/guild/<int:guild_id>/permissions')

    # Register error handlers
    from .utils.errors import register_error_handlers
    register_error_handlers(app)

    logger.info("Command permissions API initialized")

    return app


def run_api(host='0.0.0.0', port=None):
    """Run the API server"""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    app = create_app()
    port = port or int(os.getenv('API_PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'production') == 'development'

    logger.info(f"Starting command permissions API on {host}:{port}")
    app.run(host=host, port=port, debug=debug, use_reloader=False)


if __name__ == '__main__':
    run_api(host=os.getenv('API_HOST', '0.0.0.0'))
