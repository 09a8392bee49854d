"""
Room Registry for Acrophylia

Owns the live rooms and their membership: creation, joining (including
creator migration on reconnect), leaving, disconnect handling and destruction.
Every mutation of a room happens under that room's lock; different rooms
never share a lock.
"""

import logging
import random
import string
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from acrophylia.core.errors import RegistryError
from acrophylia.core.models import Player, Room

logger = logging.getLogger(__name__)

ROOM_ID_LENGTH = 9
ROOM_ID_ALPHABET = string.ascii_lowercase + string.digits


class RoomRegistry:
    """Manages game rooms and their lifecycle with per-room locking."""

    def __init__(self, concurrency_control, session_service, broadcast_service, timers,
                 reconnect_grace_seconds: int = 30):
        self.concurrency_control = concurrency_control
        self.session_service = session_service
        self.broadcast_service = broadcast_service
        self.timers = timers
        self.reconnect_grace_seconds = reconnect_grace_seconds

        self._rooms: Dict[str, Room] = {}
        self._rooms_lock = threading.Lock()
        self._removal_listeners: List[Callable[[Room, str], None]] = []

    def add_removal_listener(self, listener: Callable[[Room, str], None]) -> None:
        """Register ``listener(room, player_id)``, called under the room lock after a removal."""
        self._removal_listeners.append(listener)

    # Lookup

    @contextmanager
    def locked_room(self, room_id: str) -> Iterator[Optional[Room]]:
        """
        Hold the room's lock and yield the room, or None if it is not live.

        No lock outlives the call for an unknown or already destroyed room.
        """
        with self.concurrency_control.room_operation(room_id):
            room = self.get_room(room_id)
            try:
                yield room
            finally:
                if room is None:
                    self.concurrency_control.cleanup_room_lock(room_id)

    def get_room(self, room_id: str) -> Optional[Room]:
        with self._rooms_lock:
            return self._rooms.get(room_id)

    def get_all_rooms(self) -> List[Room]:
        with self._rooms_lock:
            return list(self._rooms.values())

    def get_room_count(self) -> int:
        with self._rooms_lock:
            return len(self._rooms)

    def _unused_room_id(self) -> str:
        """Random lowercase alphanumeric id, unique among live rooms. Caller holds _rooms_lock."""
        while True:
            room_id = ''.join(random.choices(ROOM_ID_ALPHABET, k=ROOM_ID_LENGTH))
            if room_id not in self._rooms:
                return room_id

    # Lifecycle

    def create(self, name: str, socket_id: str) -> str:
        """
        Create a room with the requesting session as its sole player and creator.

        Args:
            name: Room name (may be empty)
            socket_id: Creating session

        Returns:
            The new room id
        """
        with self._rooms_lock:
            room_id = self._unused_room_id()
            room = Room(id=room_id, name=name, creator_id=socket_id, players=[Player(id=socket_id)])
            self._rooms[room_id] = room

        with self.concurrency_control.room_operation(room_id):
            self.session_service.bind(socket_id, room_id)
            self.broadcast_service.join_group(socket_id, room_id)
            logger.info(f"Created room {room_id} ({name!r}) for creator {socket_id}")
            self.broadcast_service.send_room_created(socket_id, room_id)
            self.broadcast_service.broadcast_player_update(room_id, room.player_list())
        return room_id

    def join(self, room_id: str, socket_id: str, claimed_creator_id: Optional[str] = None) -> Optional[Room]:
        """
        Join a session to a room.

        If ``claimed_creator_id`` names the room's current creator and differs
        from the joining session, the creator's player record is rebound to
        the new session instead of adding a player.

        Returns:
            The joined room, or None if the room does not exist (the session
            is told with ``roomNotFound``)
        """
        with self.locked_room(room_id) as room:
            if room is None:
                logger.info(f"Session {socket_id} tried to join unknown room {room_id}")
                self.broadcast_service.send_room_not_found(socket_id)
                return None

            migrated = False
            if (claimed_creator_id and claimed_creator_id == room.creator_id
                    and claimed_creator_id != socket_id):
                migrated = self.session_service.rebind_player(room, claimed_creator_id, socket_id)
                if not migrated:
                    logger.warning(f"Could not migrate creator {claimed_creator_id} to {socket_id} "
                                   f"in room {room_id}")

            if not migrated and not room.has_player(socket_id):
                room.players.append(Player(id=socket_id))
                self.session_service.bind(socket_id, room_id)
                logger.info(f"Player {socket_id} joined room {room_id} ({len(room.players)} players)")

            self.broadcast_service.join_group(socket_id, room_id)
            self.broadcast_service.send_room_joined(socket_id, room_id, room.is_creator(socket_id))
            if migrated:
                self.broadcast_service.broadcast_creator_update(room_id, room.creator_id)
            self.broadcast_service.broadcast_player_update(room_id, room.player_list())
            return room

    def leave(self, room_id: str, socket_id: str) -> bool:
        """Remove the session's player from a room at its request."""
        with self.locked_room(room_id) as room:
            if room is None or not room.has_player(socket_id):
                return False
            self.broadcast_service.leave_group(socket_id, room_id)
            self._remove_player(room, socket_id)
            return True

    def disconnect(self, socket_id: str) -> List[str]:
        """
        Handle a dropped session in every room it plays in.

        The creator is kept, marked disconnected, for the reconnect grace
        period so a rejoin can migrate it; other players are removed at once.

        Returns:
            Ids of the rooms the session was in
        """
        room_ids = self.session_service.get_rooms(socket_id)
        for room_id in room_ids:
            with self.locked_room(room_id) as room:
                if room is None:
                    continue
                player = room.get_player(socket_id)
                if player is None:
                    continue
                if room.is_creator(socket_id) and self.reconnect_grace_seconds > 0:
                    player.connected = False
                    logger.info(f"Creator {socket_id} of room {room_id} disconnected, "
                                f"holding for {self.reconnect_grace_seconds}s")
                    self.broadcast_service.broadcast_player_update(room_id, room.player_list())
                    self.timers.run_later(self.reconnect_grace_seconds, self._expire_grace, room_id, socket_id)
                else:
                    self._remove_player(room, socket_id)
        return room_ids

    def _expire_grace(self, room_id: str, player_id: str) -> None:
        with self.locked_room(room_id) as room:
            if room is None:
                return
            player = room.get_player(player_id)
            # Rebinding changes the id, so a migrated creator is no longer found here
            if player is None or player.connected:
                return
            logger.info(f"Reconnect grace expired for {player_id} in room {room_id}")
            self._remove_player(room, player_id)

    def _remove_player(self, room: Room, player_id: str) -> None:
        """Remove a player; caller holds the room lock."""
        player = room.get_player(player_id)
        if player is None:
            raise RegistryError(f"Player {player_id} is not in room {room.id}")

        room.players.remove(player)
        self.session_service.unbind(player_id, room.id)
        logger.info(f"Removed player {player_id} from room {room.id} ({len(room.players)} remaining)")

        humans = room.human_players()
        if not humans:
            self.destroy(room.id)
            return

        creator_changed = False
        if room.creator_id == player_id:
            room.creator_id = humans[0].id
            creator_changed = True
            logger.info(f"Creator of room {room.id} handed to {room.creator_id}")

        self.broadcast_service.broadcast_player_update(room.id, room.player_list())
        if creator_changed:
            self.broadcast_service.broadcast_creator_update(room.id, room.creator_id)

        for listener in self._removal_listeners:
            listener(room, player_id)

    def destroy(self, room_id: str) -> bool:
        """Tear down a room and everything scheduled for it."""
        with self._rooms_lock:
            room = self._rooms.pop(room_id, None)
        if room is None:
            return False
        self.timers.cancel(room_id)
        self.session_service.forget_room(room_id)
        self.concurrency_control.cleanup_room_lock(room_id)
        logger.info(f"Destroyed room {room_id}")
        return True

    def clear(self) -> int:
        """Destroy every room (process shutdown)."""
        room_ids = [room.id for room in self.get_all_rooms()]
        for room_id in room_ids:
            self.destroy(room_id)
        return len(room_ids)
