"""
Core error definitions for Acrophylia

Provides error codes and exceptions that don't depend on other services.
"""

from enum import Enum
from typing import Dict, Optional


class ErrorCode(Enum):
    """Standardized error codes for the application."""

    # Request shape errors
    INVALID_DATA = "INVALID_DATA"
    MISSING_ROOM_ID = "MISSING_ROOM_ID"
    INVALID_ROOM_ID = "INVALID_ROOM_ID"

    # Voting Errors
    SELF_VOTE = "SELF_VOTE"

    # System Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ValidationError(Exception):
    """Custom exception for validation errors."""

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class SelfVoteError(ValidationError):
    """Raised when a player votes for their own entry."""

    def __init__(self, player_id: str):
        super().__init__(ErrorCode.SELF_VOTE, "You cannot vote for your own acronym", {"player_id": player_id})


class RegistryError(Exception):
    """Raised when room registry bookkeeping is inconsistent."""
    pass
