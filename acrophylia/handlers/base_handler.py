"""
Base Handler Classes

This module provides base classes for Socket.IO handlers with common patterns
for service access, payload validation and logging.
"""

import logging
from abc import ABC
from typing import Any, Dict, Optional, Tuple

from flask import request

from container import get_container

logger = logging.getLogger(__name__)


class BaseHandler(ABC):
    """
    Abstract base class for all Socket.IO handlers.

    Services are looked up on the global container at call time, so a handler
    built before the container is reconfigured still reaches the live services.
    """

    @property
    def _container(self):
        return get_container()

    @property
    def registry(self):
        """Get the room registry."""
        return self._container.get('RoomRegistry')

    @property
    def state_machine(self):
        """Get the room state machine."""
        return self._container.get('RoomStateMachine')

    @property
    def validation_service(self):
        return self._container.get('ValidationService')

    @property
    def broadcast_service(self):
        return self._container.get('BroadcastService')

    @property
    def app_config(self):
        return self._container.get_app_config()

    @property
    def sid(self) -> str:
        """Session id of the client that sent the current event."""
        return request.sid  # type: ignore[attr-defined]

    def validate_data_dict(self, data: Any, required_fields: Optional[list] = None) -> Dict[str, Any]:
        """
        Validate that data is a dictionary and contains required fields.

        Raises:
            ValidationError: If validation fails
        """
        return self.validation_service.validate_socket_data(data, required_fields)

    def extract_room_id(self, data: Any) -> str:
        """Room id from a bare-string or ``{roomId: ...}`` payload."""
        return self.validation_service.extract_room_id(data)

    def log_handler_start(self, handler_name: str, data: Any = None) -> None:
        """Log the start of handler execution."""
        logger.info(f'{handler_name} called by client: {self.sid}')
        if data:
            logger.debug(f'{handler_name} data: {data}')

    def log_handler_success(self, handler_name: str, message: Optional[str] = None) -> None:
        """Log successful handler completion."""
        log_msg = f'{handler_name} completed successfully for client: {self.sid}'
        if message:
            log_msg += f' - {message}'
        logger.info(log_msg)


class RoomPayloadMixin:
    """
    Mixin for handlers whose events carry a room id plus one field.
    """

    validation_service: Any  # Provided by BaseHandler

    def validate_data_dict(self, data: Any, required_fields: Optional[list] = None) -> Dict[str, Any]:
        """Expected to be implemented by BaseHandler"""
        raise NotImplementedError("This method should be provided by BaseHandler")

    def room_and_field(self, data: Any, field: str) -> Tuple[str, Any]:
        """
        Extract ``(room_id, data[field])`` from a ``{roomId, <field>}`` payload.

        Raises:
            ValidationError: If the payload is malformed or the room id invalid
        """
        validated = self.validate_data_dict(data, ['roomId'])
        room_id = self.validation_service.validate_room_id(validated['roomId'])
        return room_id, validated.get(field)


class BaseRoomHandler(BaseHandler, RoomPayloadMixin):
    """Base class for handlers that deal with room membership and chat."""
    pass


class BaseGameHandler(BaseHandler, RoomPayloadMixin):
    """Base class for handlers that deal with game operations."""
    pass
