"""
Acrophylia - a multiplayer party game where players invent backronyms for
random letters and vote for the best one.
Main Flask application entry point focusing on app creation, dependency injection, and service wiring.
"""

from flask import Flask
from flask_socketio import SocketIO
import os
import logging
import atexit
import sys
import yaml

from acrophylia.content_manager import ContentValidationError
from container import configure_container
from config_factory import load_config, ConfigurationFactory

# Initialize Flask app
app = Flask(__name__)

# Load and apply configuration
app_config = load_config()
config_factory = ConfigurationFactory()
app.config.update(config_factory.get_flask_config())

# Initialize Socket.IO with environment-aware CORS
# In production, restrict to explicitly allowed origins from env var SOCKETIO_CORS_ALLOWED_ORIGINS (comma-separated)
allowed_origins_env = os.environ.get('SOCKETIO_CORS_ALLOWED_ORIGINS', '')
if app_config.is_production:
    _cors_allowed = [o.strip() for o in allowed_origins_env.split(',') if o.strip()]
    socketio = SocketIO(app, cors_allowed_origins=_cors_allowed or [], async_mode=app_config.socketio_async_mode)
else:
    # Development/testing: permissive for local workflows
    socketio = SocketIO(app, cors_allowed_origins="*", async_mode=app_config.socketio_async_mode)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Configure service container with dependencies
container = configure_container(socketio=socketio, config=config_factory.to_dict())

services = {
    'registry': container.get('RoomRegistry'),
    'state_machine': container.get('RoomStateMachine'),
    'content_manager': container.get('ContentManager'),
}

# Load categories on startup
try:
    services['content_manager'].load_categories_from_yaml()
    logger.info(f"Loaded {services['content_manager'].get_category_count()} categories from YAML")
except (FileNotFoundError, yaml.YAMLError, ContentValidationError) as e:
    logger.critical(f"FATAL: Category file validation failed, which is critical for game play. Server shutting down. Error: {e}")
    sys.exit(1)

# Register REST endpoints
from acrophylia.routes.api import create_api_blueprint
api_blueprint = create_api_blueprint()
app.register_blueprint(api_blueprint)

# Register Socket.IO handlers
from acrophylia.handlers.socket_handlers import register_socket_handlers
register_socket_handlers(socketio)


def cleanup_on_exit():
    """Clean up resources on application exit."""
    logger.info("Shutting down Acrophylia server...")
    container.shutdown()


atexit.register(cleanup_on_exit)

if __name__ == '__main__':
    logger.info(f"Starting Acrophylia server on {app_config.host}:{app_config.port}")
    try:
        socketio.run(app, host=app_config.host, port=app_config.port, debug=app_config.debug)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
    finally:
        cleanup_on_exit()
