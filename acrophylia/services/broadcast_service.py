"""
Broadcast Service - Centralized Socket.IO message broadcasting.

This service handles all Socket.IO emissions in a centralized way:
- Room-wide broadcasts
- Individual session messages
- Membership of sessions in room broadcast groups
- Game event payloads (player lists, rounds, results)

Emissions are fire-and-forget: failures are logged and never raised to the caller.
"""

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

NAMESPACE = '/'


class BroadcastService:
    """Centralized service for all Socket.IO broadcasting operations."""

    def __init__(self, socketio):
        """Initialize the broadcast service.

        Args:
            socketio: Flask-SocketIO instance for emitting messages
        """
        self.socketio = socketio

    # Core emission methods

    def emit_to_room(self, event: str, data: Any, room_id: str):
        """Emit an event to all sessions in a room."""
        try:
            if data is None:
                self.socketio.emit(event, to=room_id)
            else:
                self.socketio.emit(event, data, to=room_id)
            logger.debug(f'Emitted {event} to room {room_id}')
        except Exception as e:
            logger.error(f'Error emitting {event} to room {room_id}: {e}')

    def emit_to_player(self, event: str, data: Any, socket_id: str):
        """Emit an event to a specific session."""
        try:
            if data is None:
                self.socketio.emit(event, to=socket_id)
            else:
                self.socketio.emit(event, data, to=socket_id)
            logger.debug(f'Emitted {event} to player {socket_id}')
        except Exception as e:
            logger.error(f'Error emitting {event} to player {socket_id}: {e}')

    # Broadcast group membership

    def join_group(self, socket_id: str, room_id: str):
        """Add a session to a room's broadcast group."""
        try:
            self.socketio.server.enter_room(socket_id, room_id, namespace=NAMESPACE)
            logger.debug(f'Session {socket_id} joined broadcast group {room_id}')
        except Exception as e:
            logger.error(f'Error adding {socket_id} to group {room_id}: {e}')

    def leave_group(self, socket_id: str, room_id: str):
        """Remove a session from a room's broadcast group."""
        try:
            self.socketio.server.leave_room(socket_id, room_id, namespace=NAMESPACE)
            logger.debug(f'Session {socket_id} left broadcast group {room_id}')
        except Exception as e:
            logger.error(f'Error removing {socket_id} from group {room_id}: {e}')

    # High-level broadcast methods

    def send_room_created(self, socket_id: str, room_id: str):
        self.emit_to_player('roomCreated', room_id, socket_id)

    def send_room_joined(self, socket_id: str, room_id: str, is_creator: bool):
        self.emit_to_player('roomJoined', {'roomId': room_id, 'isCreator': is_creator}, socket_id)

    def send_room_not_found(self, socket_id: str):
        self.emit_to_player('roomNotFound', None, socket_id)

    def broadcast_player_update(self, room_id: str, players: List[Dict[str, Any]]):
        """Broadcast the full player list to the room."""
        self.emit_to_room('playerUpdate', players, room_id)

    def broadcast_creator_update(self, room_id: str, creator_id: str):
        self.emit_to_room('creatorUpdate', creator_id, room_id)

    def broadcast_game_started(self, room_id: str):
        self.emit_to_room('gameStarted', None, room_id)

    def broadcast_new_round(self, room_id: str, round_num: int, letter_set: List[str],
                            category: Optional[str], time_left: int):
        self.emit_to_room('newRound', {
            'roundNum': round_num,
            'letterSet': letter_set,
            'category': category,
            'timeLeft': time_left
        }, room_id)

    def broadcast_time_update(self, room_id: str, time_left: int):
        self.emit_to_room('timeUpdate', {'timeLeft': time_left}, room_id)

    def broadcast_submissions(self, room_id: str, entries: List[List[str]]):
        """Broadcast collected entries as ``[player_id, text]`` pairs in submission order."""
        self.emit_to_room('submissionsReceived', entries, room_id)

    def broadcast_voting_start(self, room_id: str):
        self.emit_to_room('votingStart', None, room_id)

    def broadcast_round_results(self, room_id: str, results: Dict[str, Any]):
        self.emit_to_room('roundResults', results, room_id)

    def send_round_results(self, socket_id: str, results: Dict[str, Any]):
        self.emit_to_player('roundResults', results, socket_id)

    def broadcast_game_end(self, room_id: str, winner: Optional[Dict[str, Any]]):
        self.emit_to_room('gameEnd', {'winner': winner}, room_id)

    def broadcast_game_reset(self, room_id: str):
        self.emit_to_room('gameReset', None, room_id)

    def broadcast_chat_message(self, room_id: str, sender_id: str, sender_name: str, message: str):
        self.emit_to_room('chatMessage', {
            'senderId': sender_id,
            'senderName': sender_name,
            'message': message
        }, room_id)
