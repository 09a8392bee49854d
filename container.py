"""
Service Container - Dependency Injection Container for Acrophylia
Manages service creation, dependencies, and lifecycle.

The room registry and everything it drives are process-scoped: created once
when the container is configured at start-up, handed to handlers by
reference, and torn down by ``shutdown()``.
"""

import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from config_factory import AppConfig, ConfigError, Environment, get_config

logger = logging.getLogger(__name__)


class ServiceLifecycle(Enum):
    """Service lifecycle management options"""
    SINGLETON = "singleton"  # One instance per container
    TRANSIENT = "transient"  # New instance every time


class ServiceDefinition:
    """Definition of how a service should be created"""

    def __init__(
        self,
        name: str,
        factory: Callable,
        dependencies: Optional[List[str]] = None,
        lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON,
        config: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.factory = factory
        self.dependencies = dependencies or []
        self.lifecycle = lifecycle
        self.config = config or {}


class CircularDependencyError(Exception):
    """Raised when circular dependency is detected"""
    pass


class ServiceNotFoundError(Exception):
    """Raised when requested service is not registered"""
    pass


class ServiceContainer:
    """
    Dependency Injection Container for managing services and their dependencies.

    Features:
    - Explicit dependency lists resolved by name
    - Circular dependency detection
    - Singleton and transient lifecycle management
    - External dependencies (the Flask-SocketIO instance)
    - Application configuration shared with service factories
    """

    def __init__(self):
        self._services: Dict[str, ServiceDefinition] = {}
        self._instances: Dict[str, Any] = {}
        self._creating: List[str] = []  # Services being created, in order (circular detection)
        self._config: Dict[str, Any] = {}
        self._app_config: Optional[AppConfig] = None

    def register(
        self,
        name: str,
        factory: Callable,
        dependencies: Optional[List[str]] = None,
        lifecycle: ServiceLifecycle = ServiceLifecycle.SINGLETON,
        config: Optional[Dict[str, Any]] = None
    ) -> 'ServiceContainer':
        """
        Register a service with the container.

        Args:
            name: Service name for retrieval
            factory: Class or function to create the service
            dependencies: Names of services passed positionally to the factory
            lifecycle: How the service instance should be managed
            config: Keyword arguments passed to function factories

        Returns:
            Self for method chaining
        """
        if name in self._services:
            raise ValueError(f"Service '{name}' is already registered")

        if not callable(factory):
            raise ValueError(f"Factory for '{name}' must be callable")

        self._services[name] = ServiceDefinition(
            name=name,
            factory=factory,
            dependencies=dependencies,
            lifecycle=lifecycle,
            config=config
        )
        return self

    def configure_services(self) -> 'ServiceContainer':
        """
        Register all Acrophylia services with their dependencies.
        """
        from acrophylia.state_machine import RoomStateMachine
        from acrophylia.services.concurrency_control_service import ConcurrencyControlService
        from acrophylia.services.validation_service import ValidationService
        from acrophylia.services.session_service import SessionService
        from acrophylia.services.broadcast_service import BroadcastService
        from acrophylia.services.vote_service import VoteTally
        from acrophylia.services.scoring_service import ScoreKeeper

        # Stateless helpers - no dependencies
        self.register('ValidationService', ValidationService)
        self.register('ConcurrencyControlService', ConcurrencyControlService)
        self.register('SessionService', SessionService)
        self.register('VoteTally', VoteTally)
        self.register('ScoreKeeper', ScoreKeeper)

        # Configuration-driven services
        self.register('GameSettings', self._create_game_settings)
        self.register('ContentManager', self._create_content_manager)
        self.register('LanguageModelService', self._create_language_model_service)
        self.register('SubmissionCollector', self._create_submission_collector, dependencies=['GameSettings'])

        # Transport-facing services - socketio is injected as external dependency
        self.register('BroadcastService', BroadcastService, dependencies=['socketio'])
        self.register('TimerScheduler', self._create_timer_scheduler, dependencies=['socketio', 'GameSettings'])

        self.register('BotFiller', self._create_bot_filler, dependencies=['LanguageModelService', 'GameSettings'])
        self.register('RoomRegistry', self._create_room_registry, dependencies=[
            'ConcurrencyControlService', 'SessionService', 'BroadcastService', 'TimerScheduler', 'GameSettings'
        ])
        self.register('RoomStateMachine', RoomStateMachine, dependencies=[
            'RoomRegistry', 'BroadcastService', 'TimerScheduler', 'SubmissionCollector', 'VoteTally',
            'ScoreKeeper', 'BotFiller', 'ContentManager', 'GameSettings'
        ])

        return self

    # Factories for services that take configuration values

    def _create_game_settings(self):
        from acrophylia.config.game_settings import GameSettings
        return GameSettings(self.get_app_config())

    def _create_content_manager(self):
        from acrophylia.content_manager import ContentManager
        return ContentManager(self.get_app_config().categories_file)

    def _create_language_model_service(self):
        from acrophylia.services.language_model_service import LanguageModelService
        return LanguageModelService.from_config(self.get_app_config())

    def _create_submission_collector(self, game_settings):
        from acrophylia.services.submission_service import SubmissionCollector
        return SubmissionCollector(max_entry_length=game_settings.max_entry_length)

    def _create_timer_scheduler(self, socketio, game_settings):
        from acrophylia.services.timer_service import TimerScheduler
        return TimerScheduler(socketio, tick_interval=game_settings.tick_interval)

    def _create_bot_filler(self, language_model, game_settings):
        from acrophylia.services.bot_service import BotFiller
        return BotFiller(
            language_model,
            quorum=game_settings.min_players_required,
            delay_range=game_settings.bot_delay_range,
        )

    def _create_room_registry(self, concurrency_control, session_service, broadcast_service, timers, game_settings):
        from acrophylia.room_registry import RoomRegistry
        return RoomRegistry(
            concurrency_control, session_service, broadcast_service, timers,
            reconnect_grace_seconds=game_settings.reconnect_grace_seconds,
        )

    def set_external_dependency(self, name: str, instance: Any) -> 'ServiceContainer':
        """
        Set an external dependency that's created outside the container.
        Useful for Flask-SocketIO and similar framework objects.
        """
        self._instances[name] = instance
        return self

    def set_config(self, config: Dict[str, Any]) -> 'ServiceContainer':
        """Set global configuration for the container"""
        self._config.update(config)
        self._app_config = None
        return self

    def get_app_config(self) -> AppConfig:
        """
        The AppConfig services are built from: the container's own config if
        one was set, else the loaded global configuration, else defaults.
        """
        if self._app_config is None:
            if self._config:
                values = {k: v for k, v in self._config.items() if k in AppConfig.__dataclass_fields__}
                if isinstance(values.get('environment'), str):
                    values['environment'] = Environment(values['environment'])
                self._app_config = AppConfig(**values)
            else:
                try:
                    self._app_config = get_config()
                except ConfigError:
                    logger.warning("Configuration not loaded, services use default settings")
                    self._app_config = AppConfig()
        return self._app_config

    def get(self, name: str) -> Any:
        """
        Get a service instance, creating it if necessary.

        Raises:
            ServiceNotFoundError: If service is not registered
            CircularDependencyError: If circular dependency detected
        """
        # External dependencies and singletons already built
        if name in self._instances:
            return self._instances[name]

        if name not in self._services:
            raise ServiceNotFoundError(f"Service '{name}' is not registered")

        return self._create_service(name)

    def _create_service(self, name: str) -> Any:
        if name in self._creating:
            cycle = ' -> '.join(self._creating + [name])
            raise CircularDependencyError(f"Circular dependency detected: {cycle}")

        self._creating.append(name)

        try:
            service_def = self._services[name]
            dependencies = [self.get(dep_name) for dep_name in service_def.dependencies]

            if inspect.isclass(service_def.factory):
                instance = service_def.factory(*dependencies)
            else:
                instance = service_def.factory(*dependencies, **service_def.config)

            if service_def.lifecycle == ServiceLifecycle.SINGLETON:
                self._instances[name] = instance

            return instance

        finally:
            self._creating.remove(name)

    def has_service(self, name: str) -> bool:
        """Check if a service is registered"""
        return name in self._services

    def get_service_names(self) -> List[str]:
        return list(self._services.keys())

    def validate_dependencies(self) -> Dict[str, List[str]]:
        """
        Validate all service dependencies can be resolved.

        Returns:
            Dictionary mapping service names to lists of missing dependencies
        """
        issues = {}

        for name, service_def in self._services.items():
            missing_deps = [
                dep for dep in service_def.dependencies
                if not self.has_service(dep) and dep not in self._instances
            ]
            if missing_deps:
                issues[name] = missing_deps

        return issues

    def shutdown(self) -> None:
        """Cancel every outstanding timer and tear down live rooms."""
        timers = self._instances.get('TimerScheduler')
        if timers is not None:
            cancelled = timers.cancel_all()
            logger.info(f"Cancelled {cancelled} outstanding timers")
        registry = self._instances.get('RoomRegistry')
        if registry is not None:
            destroyed = registry.clear()
            logger.info(f"Destroyed {destroyed} rooms")

    def clear(self) -> 'ServiceContainer':
        """Clear all services and instances (useful for testing)"""
        self._services.clear()
        self._instances.clear()
        self._creating.clear()
        self._config.clear()
        self._app_config = None
        return self

    def get_dependency_graph(self) -> Dict[str, List[str]]:
        """Get the dependency graph for visualization/debugging"""
        return {name: service_def.dependencies for name, service_def in self._services.items()}

    def __repr__(self) -> str:
        return f"ServiceContainer(services={len(self._services)}, instances={len(self._instances)})"


# Global container instance for the application
_app_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """Get the global application service container"""
    global _app_container
    if _app_container is None:
        _app_container = ServiceContainer()
    return _app_container


def reset_container() -> None:
    """Shut down the global container and drop every registration (for testing)"""
    if _app_container is not None:
        _app_container.shutdown()
        _app_container.clear()


def configure_container(socketio=None, config=None) -> ServiceContainer:
    """
    Configure the global service container with Acrophylia services.

    Args:
        socketio: Flask-SocketIO instance
        config: Application configuration dictionary (``ConfigurationFactory.to_dict()``)

    Returns:
        Configured service container
    """
    container = get_container()
    container.clear()

    if socketio is not None:
        container.set_external_dependency('socketio', socketio)

    if config is not None:
        container.set_config(config)

    container.configure_services()

    return container
