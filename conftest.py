"""
Global pytest configuration and fixtures.
Provides service fixtures for proper dependency injection in tests.
"""

import pytest
import os

# Ensure testing environment before the app module is first imported
os.environ['TESTING'] = '1'
os.environ.setdefault('FLASK_ENV', 'testing')
# Background tasks become plain daemon threads under the test client
os.environ.setdefault('SOCKETIO_ASYNC_MODE', 'threading')
# Bots must never reach a real language model from the test suite
os.environ['LLM_API_KEY'] = ''
os.environ.setdefault('CATEGORIES_FILE', os.path.join(os.path.dirname(os.path.abspath(__file__)), 'categories.yaml'))


@pytest.fixture(scope="function", autouse=True)
def reset_global_container():
    """Reset the global container before each test to ensure clean state."""
    from container import reset_container, configure_container
    from config_factory import ConfigurationFactory
    from acrophylia.config.game_settings import reset_game_settings

    reset_container()
    reset_game_settings()

    # Reconfigure it against the app's own socketio instance
    from app import socketio as app_socketio
    config_factory = ConfigurationFactory()
    config_factory.load_from_environment()
    configure_container(socketio=app_socketio, config=config_factory.to_dict())

    yield

    reset_container()


@pytest.fixture(scope="session")
def app():
    """Create Flask app for testing."""
    from app import app as flask_app
    return flask_app


@pytest.fixture(scope="session")
def socketio():
    """Create SocketIO instance for testing."""
    from app import socketio as socketio_instance
    return socketio_instance


@pytest.fixture(scope="function")
def container():
    """The configured global service container."""
    from container import get_container
    return get_container()


@pytest.fixture(scope="function")
def registry(container):
    """Provide RoomRegistry through dependency injection."""
    return container.get('RoomRegistry')


@pytest.fixture(scope="function")
def state_machine(container):
    """Provide RoomStateMachine through dependency injection."""
    return container.get('RoomStateMachine')


@pytest.fixture(scope="function")
def validation_service(container):
    return container.get('ValidationService')
