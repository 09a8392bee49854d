"""
Room Connection Handler

This module handles Socket.IO events related to room membership: creating,
joining and leaving rooms, naming yourself, and chatting.
"""

import logging

from acrophylia.services.error_response_factory import with_error_handling
from .base_handler import BaseRoomHandler

logger = logging.getLogger(__name__)


class RoomConnectionHandler(BaseRoomHandler):
    """Handler for room membership operations."""

    @with_error_handling
    def handle_create_room(self, data=None):
        """
        Handle a request to create a room.

        Expected data: the room name as a string (optional).
        """
        self.log_handler_start('handle_create_room', data)
        name = self.validation_service.optional_text(data).strip()
        room_id = self.registry.create(name, self.sid)
        self.log_handler_success('handle_create_room', f'Created room {room_id}')

    @with_error_handling
    def handle_join_room(self, data):
        """
        Handle a player joining a room.

        Expected data format:
        {
            'roomId': 'abc123xyz',
            'creatorId': 'previous-session-id'   # optional, presented on reconnect
        }
        """
        self.log_handler_start('handle_join_room', data)

        claimed_creator_id = None
        if isinstance(data, dict):
            claimed_creator_id = self.validation_service.optional_text(data.get('creatorId')) or None
        room_id = self.extract_room_id(data)

        room = self.registry.join(room_id, self.sid, claimed_creator_id)
        if room is not None:
            self.log_handler_success('handle_join_room', f'Joined room {room_id}')

    @with_error_handling
    def handle_leave_room(self, data):
        """Handle a player leaving a room. Expected data: the room id."""
        self.log_handler_start('handle_leave_room', data)
        room_id = self.extract_room_id(data)
        if self.registry.leave(room_id, self.sid):
            self.log_handler_success('handle_leave_room', f'Left room {room_id}')

    @with_error_handling
    def handle_set_name(self, data):
        """
        Handle a player setting their display name.

        Expected data format: {'roomId': ..., 'name': ...}
        """
        self.log_handler_start('handle_set_name', data)
        room_id, name = self.room_and_field(data, 'name')
        self.state_machine.set_name(room_id, self.sid, name)

    @with_error_handling
    def handle_send_message(self, data):
        """
        Handle a chat message.

        Expected data format: {'roomId': ..., 'message': ...}
        """
        self.log_handler_start('handle_send_message', data)
        room_id, message = self.room_and_field(data, 'message')
        self.state_machine.send_message(room_id, self.sid, message)
