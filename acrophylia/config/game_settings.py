"""
Game Settings Configuration Module

Provides centralized access to game-specific configuration values,
replacing hardcoded constants throughout the codebase.
"""

import logging
from typing import Dict
from acrophylia.core.game_phases import GamePhase

logger = logging.getLogger(__name__)


class GameSettings:
    """Centralized game settings management."""

    def __init__(self, app_config=None):
        """
        Initialize game settings.

        Args:
            app_config: Application configuration instance from config_factory
        """
        self._config = app_config
        if app_config is None:
            try:
                from config_factory import get_config
                self._config = get_config()
            except Exception as e:
                logger.warning(f"Could not load configuration: {e}, using defaults")
                self._config = None

    @property
    def phase_durations(self) -> Dict[GamePhase, int]:
        """
        Get phase durations in seconds.

        Returns:
            Dictionary mapping timed phases (and the results hold) to their durations
        """
        if self._config is None:
            # Fallback defaults
            return {
                GamePhase.SUBMITTING: 60,
                GamePhase.VOTING: 30,
                GamePhase.RESULTS: 10
            }

        return {
            GamePhase.SUBMITTING: self._config.submission_time_limit,
            GamePhase.VOTING: self._config.voting_time_limit,
            GamePhase.RESULTS: self._config.results_display_time
        }

    @property
    def min_players_required(self) -> int:
        """Quorum a room is filled to with bots when a game starts."""
        if self._config is None:
            return 4
        return self._config.min_players_required

    @property
    def max_rounds(self) -> int:
        if self._config is None:
            return 5
        return self._config.max_rounds

    @property
    def tick_interval(self) -> int:
        if self._config is None:
            return 1
        return self._config.tick_interval

    @property
    def max_entry_length(self) -> int:
        if self._config is None:
            return 100
        return self._config.max_entry_length

    @property
    def max_player_name_length(self) -> int:
        if self._config is None:
            return 20
        return self._config.max_player_name_length

    @property
    def max_chat_message_length(self) -> int:
        if self._config is None:
            return 200
        return self._config.max_chat_message_length

    @property
    def reconnect_grace_seconds(self) -> int:
        """
        How long a disconnected creator is kept so a reconnect can migrate it.
        """
        if self._config is None:
            return 30
        return self._config.reconnect_grace_seconds

    @property
    def bot_delay_range(self) -> tuple:
        """(min, max) seconds a bot waits before acting."""
        if self._config is None:
            return 2.0, 8.0
        return self._config.bot_min_delay, self._config.bot_max_delay


# Global instance for easy access
_game_settings_instance = None


def get_game_settings(app_config=None) -> GameSettings:
    """
    Get or create the global game settings instance.

    Args:
        app_config: Optional app config to use

    Returns:
        GameSettings instance
    """
    global _game_settings_instance

    if _game_settings_instance is None or app_config is not None:
        _game_settings_instance = GameSettings(app_config)

    return _game_settings_instance


def reset_game_settings():
    """Reset the global game settings instance (mainly for testing)."""
    global _game_settings_instance
    _game_settings_instance = None
