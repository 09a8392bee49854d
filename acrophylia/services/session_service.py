"""
Session Service - Maps Socket.IO sessions to the rooms they play in.

This service handles:
- Session to room membership tracking
- Lookup of every room a session is part of (for disconnect handling)
- Rebinding a player record to a new session on reconnect
"""

import logging
from typing import Dict, List, Set

from acrophylia.core.models import Room

logger = logging.getLogger(__name__)


class SessionService:
    """Reconciles ephemeral connection ids with persistent player records."""

    def __init__(self):
        """Initialize the session service."""
        # socket_id -> room ids the session holds a player record in
        self._session_rooms: Dict[str, Set[str]] = {}
        logger.info("SessionService initialized")

    def bind(self, socket_id: str, room_id: str) -> None:
        """Record that ``socket_id`` owns a player in ``room_id``."""
        self._session_rooms.setdefault(socket_id, set()).add(room_id)
        logger.debug(f"Bound session {socket_id} to room {room_id}")

    def unbind(self, socket_id: str, room_id: str) -> None:
        rooms = self._session_rooms.get(socket_id)
        if not rooms:
            return
        rooms.discard(room_id)
        if not rooms:
            del self._session_rooms[socket_id]

    def get_rooms(self, socket_id: str) -> List[str]:
        """Get the ids of every room the session plays in.

        Args:
            socket_id: Socket.IO connection ID

        Returns:
            Sorted list of room ids (empty if the session is unknown)
        """
        return sorted(self._session_rooms.get(socket_id, ()))

    def forget_room(self, room_id: str) -> None:
        """Drop a destroyed room from every session's membership."""
        for socket_id in list(self._session_rooms):
            self.unbind(socket_id, room_id)

    def rebind_player(self, room: Room, old_id: str, new_id: str) -> bool:
        """Move a player record from ``old_id`` to ``new_id`` in place.

        The record keeps its name and score; the creator pointer and any
        submission or vote made under the old id in the active round follow it.
        Must be called while holding the room's lock.

        Returns:
            True if a record was rebound, False if ``old_id`` is not in the room
            or ``new_id`` already is.
        """
        player = room.get_player(old_id)
        if player is None or room.has_player(new_id):
            return False

        player.id = new_id
        player.connected = True
        if room.creator_id == old_id:
            room.creator_id = new_id

        if old_id in room.submissions:
            # Rebuild to keep first-submission order
            room.submissions = {
                (new_id if pid == old_id else pid): text
                for pid, text in room.submissions.items()
            }
        room.votes = {
            (new_id if voter == old_id else voter): (new_id if target == old_id else target)
            for voter, target in room.votes.items()
        }

        self.unbind(old_id, room.id)
        self.bind(new_id, room.id)
        logger.info(f"Rebound player {old_id} to session {new_id} in room {room.id}")
        return True
