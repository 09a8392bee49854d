"""
Gunicorn configuration for Acrophylia.
Runs a single eventlet worker, since all room state lives in one process.
"""

import sys
import logging
import yaml
from acrophylia.content_manager import ContentManager, ContentValidationError
from config_factory import load_config

# Load configuration (renamed to avoid conflicts with gunicorn's internal 'config')
app_config = load_config()


def on_starting(server):
    """
    Validate the category catalogue before workers are forked, and refuse
    to start if it is broken.
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Validating {app_config.categories_file} before starting workers...")
    try:
        content_manager = ContentManager(app_config.categories_file)
        content_manager.load_categories_from_yaml()
        logger.info(f"Successfully validated {content_manager.get_category_count()} categories.")
    except (FileNotFoundError, yaml.YAMLError, ContentValidationError) as e:
        logger.critical(f"FATAL: Category file validation failed. Server shutting down. Error: {e}")
        sys.exit(1)


# Server socket
bind = f"{app_config.host}:{app_config.port}"
backlog = 2048

# Worker processes
workers = 1  # Rooms are process-scoped; more workers would split them
worker_class = "eventlet"
worker_connections = app_config.worker_connections
timeout = app_config.timeout
keepalive = app_config.keepalive

# Logging
accesslog = "-"
errorlog = "-"
loglevel = app_config.log_level

# Process naming
proc_name = "acrophylia"

# Server mechanics
preload_app = False  # Don't preload for Socket.IO
daemon = False
