"""
Validation Service for Acrophylia

Checks the shape of inbound Socket.IO payloads before they reach the room
state machine. Text content (names, entries, chat) is normalized downstream;
only structural problems are reported here.
"""

import logging
import re
from typing import Any, Dict, Optional

from acrophylia.core.errors import ErrorCode, ValidationError

logger = logging.getLogger(__name__)


class ValidationService:
    """Service responsible for inbound payload validation."""

    MAX_ROOM_ID_LENGTH = 50

    # Room ID pattern: alphanumeric, hyphens, underscores
    ROOM_ID_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')

    def validate_room_id(self, room_id: Any) -> str:
        """
        Validate and normalize a room ID.

        Args:
            room_id: Raw room ID value

        Returns:
            Lower-cased room ID

        Raises:
            ValidationError: If room ID is missing or malformed
        """
        if not room_id or not isinstance(room_id, str):
            raise ValidationError(
                ErrorCode.MISSING_ROOM_ID,
                "Room ID is required"
            )

        room_id = room_id.strip()

        if not room_id:
            raise ValidationError(
                ErrorCode.MISSING_ROOM_ID,
                "Room ID cannot be empty"
            )

        if len(room_id) > self.MAX_ROOM_ID_LENGTH:
            raise ValidationError(
                ErrorCode.INVALID_ROOM_ID,
                f"Room ID must be {self.MAX_ROOM_ID_LENGTH} characters or less",
                {"max_length": self.MAX_ROOM_ID_LENGTH, "actual_length": len(room_id)}
            )

        if not self.ROOM_ID_PATTERN.match(room_id):
            raise ValidationError(
                ErrorCode.INVALID_ROOM_ID,
                "Room ID can only contain letters, numbers, hyphens, and underscores"
            )

        return room_id.lower()

    def validate_socket_data(self, data: Any, required_fields: Optional[list] = None) -> Dict:
        """
        Validate that an event payload is a dictionary with the given fields.

        Raises:
            ValidationError: If data is not a dict or a field is missing
        """
        if not isinstance(data, dict):
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                "Invalid data format - expected dictionary"
            )

        for field in required_fields or []:
            if field not in data:
                if field == 'roomId':
                    raise ValidationError(ErrorCode.MISSING_ROOM_ID, "Room ID is required")
                raise ValidationError(
                    ErrorCode.INVALID_DATA,
                    f"Missing required field: {field}"
                )

        return data

    def extract_room_id(self, data: Any) -> str:
        """
        Pull the room ID out of an event payload.

        Room-scoped events without other arguments send the bare room ID;
        the rest send an object with a ``roomId`` key.
        """
        if isinstance(data, dict):
            data = self.validate_socket_data(data, ['roomId'])['roomId']
        return self.validate_room_id(data)

    def optional_text(self, value: Any) -> str:
        """Coerce an optional free-text field to a string."""
        if value is None:
            return ''
        if not isinstance(value, str):
            raise ValidationError(
                ErrorCode.INVALID_DATA,
                "Expected a text value"
            )
        return value
