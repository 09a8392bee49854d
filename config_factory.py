"""
Configuration Factory - Centralized configuration management for Acrophylia
Provides type-safe configuration with validation and environment-specific settings.
"""

import os
import logging
from typing import Any, Dict, Optional, Type
from enum import Enum
from dataclasses import dataclass, field


class Environment(Enum):
    """Environment types for configuration"""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class ConfigError(Exception):
    """Configuration-related errors"""
    pass


DEFAULT_SECRET_KEY = 'dev-secret-key-change-in-production'


@dataclass
class AppConfig:
    """Application configuration with type safety and validation"""

    # Core Flask settings
    secret_key: str = field(default_factory=lambda: DEFAULT_SECRET_KEY)
    debug: bool = False
    flask_env: str = 'development'  # Default to development for safety

    # Server settings
    host: str = '0.0.0.0'
    port: int = 5000
    socketio_async_mode: str = 'eventlet'

    # Game settings
    min_players_required: int = 4  # quorum, filled with bots when short
    max_rounds: int = 5
    submission_time_limit: int = 60  # seconds
    voting_time_limit: int = 30  # seconds
    results_display_time: int = 10  # seconds
    tick_interval: int = 1  # seconds between timeUpdate broadcasts
    max_entry_length: int = 100  # characters
    max_player_name_length: int = 20  # characters
    max_chat_message_length: int = 200  # characters
    reconnect_grace_seconds: int = 30

    # Bot settings
    bot_min_delay: float = 2.0  # seconds
    bot_max_delay: float = 8.0  # seconds

    # Language model settings
    llm_api_url: str = 'https://api.x.ai/v1'
    llm_api_key: str = ''
    llm_model: str = 'grok-beta'
    llm_timeout: float = 5.0  # seconds

    # File paths
    categories_file: str = 'categories.yaml'

    # Gunicorn settings (for production deployment)
    worker_connections: int = 1000
    timeout: int = 30
    keepalive: int = 2
    log_level: str = 'info'

    # Environment
    environment: Environment = Environment.DEVELOPMENT

    def __post_init__(self):
        """Validate configuration after initialization"""
        self._validate()

    def _validate(self):
        """Validate configuration values"""
        if self.port < 1 or self.port > 65535:
            raise ConfigError(f"Invalid port number: {self.port}")

        if self.socketio_async_mode not in ('eventlet', 'threading', 'gevent'):
            raise ConfigError(f"Invalid socketio_async_mode: {self.socketio_async_mode}")

        if self.min_players_required < 2 or self.min_players_required > 20:
            raise ConfigError(f"Invalid min_players_required: {self.min_players_required}")

        if self.max_rounds < 1 or self.max_rounds > 50:
            raise ConfigError(f"Invalid max_rounds: {self.max_rounds}")

        if self.submission_time_limit < 5 or self.submission_time_limit > 1800:  # 5s to 30min
            raise ConfigError(f"Invalid submission_time_limit: {self.submission_time_limit}")

        if self.voting_time_limit < 5 or self.voting_time_limit > 1800:
            raise ConfigError(f"Invalid voting_time_limit: {self.voting_time_limit}")

        if self.results_display_time < 1 or self.results_display_time > 300:
            raise ConfigError(f"Invalid results_display_time: {self.results_display_time}")

        if self.tick_interval < 1 or self.tick_interval > 60:
            raise ConfigError(f"Invalid tick_interval: {self.tick_interval}")

        if self.max_entry_length < 10 or self.max_entry_length > 1000:
            raise ConfigError(f"Invalid max_entry_length: {self.max_entry_length}")

        if self.max_player_name_length < 1 or self.max_player_name_length > 100:
            raise ConfigError(f"Invalid max_player_name_length: {self.max_player_name_length}")

        if self.reconnect_grace_seconds < 0 or self.reconnect_grace_seconds > 3600:
            raise ConfigError(f"Invalid reconnect_grace_seconds: {self.reconnect_grace_seconds}")

        # Bot pacing validations
        if self.bot_min_delay < 0 or self.bot_max_delay < self.bot_min_delay:
            raise ConfigError(f"Invalid bot delay range: {self.bot_min_delay}-{self.bot_max_delay}")

        if self.llm_timeout <= 0 or self.llm_timeout > 60:
            raise ConfigError(f"Invalid llm_timeout: {self.llm_timeout}")

        if self.environment == Environment.PRODUCTION and self.secret_key == DEFAULT_SECRET_KEY:
            raise ConfigError("Production environment requires a secure SECRET_KEY")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode"""
        return self.environment == Environment.TESTING


class ConfigurationFactory:
    """
    Factory for creating and managing application configuration.

    Features:
    - Environment variable loading with type conversion
    - Configuration validation
    - Environment-specific defaults
    - Singleton pattern for global config access
    """

    _instance: Optional['ConfigurationFactory'] = None
    _config: Optional[AppConfig] = None

    def __new__(cls) -> 'ConfigurationFactory':
        """Singleton pattern implementation"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the configuration factory"""
        if not hasattr(self, '_initialized'):
            self._logger = logging.getLogger(__name__)
            self._env_overrides: Dict[str, Any] = {}
            self._initialized = True

    def load_from_environment(self, env_prefix: str = '') -> AppConfig:
        """
        Load configuration from environment variables.

        Args:
            env_prefix: Optional prefix for environment variables (e.g., 'ACROPHYLIA_')

        Returns:
            Configured AppConfig instance
        """
        def get_env_var(key: str, default: Any = None, var_type: Type = str) -> Any:
            """Get environment variable with type conversion"""
            env_key = f"{env_prefix}{key}" if env_prefix else key
            value = os.environ.get(env_key)

            if value is None:
                return default

            # Type conversion
            if var_type == bool:
                return value.lower() in ('true', '1', 'yes', 'on')
            elif var_type == int:
                try:
                    return int(value)
                except ValueError:
                    self._logger.warning(f"Invalid integer value for {env_key}: {value}, using default: {default}")
                    return default
            elif var_type == float:
                try:
                    return float(value)
                except ValueError:
                    self._logger.warning(f"Invalid float value for {env_key}: {value}, using default: {default}")
                    return default
            else:
                return value

        # Determine environment
        flask_env = get_env_var('FLASK_ENV', 'development')  # Default to development for safety
        if flask_env == 'development':
            environment = Environment.DEVELOPMENT
            debug = True
        elif flask_env == 'testing':
            environment = Environment.TESTING
            debug = True
        else:
            environment = Environment.PRODUCTION
            debug = False

        config = AppConfig(
            # Core Flask settings
            secret_key=get_env_var('SECRET_KEY', DEFAULT_SECRET_KEY),
            debug=get_env_var('DEBUG', debug, bool),
            flask_env=flask_env,

            # Server settings
            host=get_env_var('HOST', '0.0.0.0'),
            port=get_env_var('PORT', 5000, int),
            socketio_async_mode=get_env_var('SOCKETIO_ASYNC_MODE', 'eventlet'),

            # Game settings
            min_players_required=get_env_var('MIN_PLAYERS_REQUIRED', 4, int),
            max_rounds=get_env_var('MAX_ROUNDS', 5, int),
            submission_time_limit=get_env_var('SUBMISSION_TIME_LIMIT', 60, int),
            voting_time_limit=get_env_var('VOTING_TIME_LIMIT', 30, int),
            results_display_time=get_env_var('RESULTS_DISPLAY_TIME', 10, int),
            tick_interval=get_env_var('TICK_INTERVAL', 1, int),
            max_entry_length=get_env_var('MAX_ENTRY_LENGTH', 100, int),
            max_player_name_length=get_env_var('MAX_PLAYER_NAME_LENGTH', 20, int),
            max_chat_message_length=get_env_var('MAX_CHAT_MESSAGE_LENGTH', 200, int),
            reconnect_grace_seconds=get_env_var('RECONNECT_GRACE_SECONDS', 30, int),

            # Bot settings
            bot_min_delay=get_env_var('BOT_MIN_DELAY', 2.0, float),
            bot_max_delay=get_env_var('BOT_MAX_DELAY', 8.0, float),

            # Language model settings
            llm_api_url=get_env_var('LLM_API_URL', 'https://api.x.ai/v1'),
            llm_api_key=get_env_var('LLM_API_KEY', ''),
            llm_model=get_env_var('LLM_MODEL', 'grok-beta'),
            llm_timeout=get_env_var('LLM_TIMEOUT', 5.0, float),

            # File paths
            categories_file=get_env_var('CATEGORIES_FILE', 'categories.yaml'),

            # Gunicorn settings
            worker_connections=get_env_var('WORKER_CONNECTIONS', 1000, int),
            timeout=get_env_var('TIMEOUT', 30, int),
            keepalive=get_env_var('KEEPALIVE', 2, int),
            log_level=get_env_var('LOG_LEVEL', 'info'),

            # Environment
            environment=environment
        )

        # Apply any manual overrides
        for key, value in self._env_overrides.items():
            if hasattr(config, key):
                setattr(config, key, value)

        self._config = config
        self._logger.info(f"Configuration loaded for environment: {environment.value}")
        return config

    def load_from_dict(self, config_dict: Dict[str, Any]) -> AppConfig:
        """
        Load configuration from dictionary (useful for testing).

        Args:
            config_dict: Dictionary of configuration values

        Returns:
            Configured AppConfig instance
        """
        config_dict = dict(config_dict)
        if 'environment' in config_dict and isinstance(config_dict['environment'], str):
            config_dict['environment'] = Environment(config_dict['environment'])

        self._config = AppConfig(**config_dict)
        return self._config

    def override_setting(self, key: str, value: Any) -> 'ConfigurationFactory':
        """
        Override a specific configuration setting.

        Args:
            key: Configuration key to override
            value: New value for the setting

        Returns:
            Self for method chaining
        """
        self._env_overrides[key] = value

        if self._config and hasattr(self._config, key):
            setattr(self._config, key, value)
            self._config._validate()  # Re-validate after change

        return self

    def get_config(self) -> AppConfig:
        """
        Get the current configuration.

        Raises:
            ConfigError: If no configuration has been loaded
        """
        if self._config is None:
            raise ConfigError("Configuration not loaded. Call load_from_environment() or load_from_dict() first.")
        return self._config

    def reset(self) -> 'ConfigurationFactory':
        """Reset the factory (useful for testing)"""
        self._config = None
        self._env_overrides.clear()
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert current configuration to dictionary"""
        if self._config is None:
            raise ConfigError("Configuration not loaded")

        config_dict = {}
        for field_info in self._config.__dataclass_fields__.values():
            value = getattr(self._config, field_info.name)
            if isinstance(value, Environment):
                config_dict[field_info.name] = value.value
            else:
                config_dict[field_info.name] = value

        return config_dict

    def get_flask_config(self) -> Dict[str, Any]:
        """
        Get Flask-compatible configuration dictionary.

        Returns:
            Dictionary suitable for Flask app.config.update()
        """
        if self._config is None:
            raise ConfigError("Configuration not loaded")

        return {
            'SECRET_KEY': self._config.secret_key,
            'DEBUG': self._config.debug,
            'ENV': self._config.flask_env,
            'MIN_PLAYERS_REQUIRED': self._config.min_players_required,
            'MAX_ROUNDS': self._config.max_rounds,
            'SUBMISSION_TIME_LIMIT': self._config.submission_time_limit,
            'VOTING_TIME_LIMIT': self._config.voting_time_limit,
            'RESULTS_DISPLAY_TIME': self._config.results_display_time,
            'CATEGORIES_FILE': self._config.categories_file,
        }


# Global factory instance
_config_factory = ConfigurationFactory()


def get_config() -> AppConfig:
    """Get the global application configuration"""
    return _config_factory.get_config()


def load_config(env_prefix: str = '') -> AppConfig:
    """Load configuration from environment variables"""
    return _config_factory.load_from_environment(env_prefix)


def load_config_from_dict(config_dict: Dict[str, Any]) -> AppConfig:
    """Load configuration from dictionary"""
    return _config_factory.load_from_dict(config_dict)


def override_config(key: str, value: Any) -> ConfigurationFactory:
    """Override a configuration setting"""
    return _config_factory.override_setting(key, value)


def reset_config() -> ConfigurationFactory:
    """Reset configuration (for testing)"""
    return _config_factory.reset()
