"""
Submission Collector for Acrophylia

Gathers one acronym entry per player for the active round.
"""

import logging
from typing import List, Optional, Tuple

from acrophylia.core.game_phases import GamePhase
from acrophylia.core.models import Room

logger = logging.getLogger(__name__)


class SubmissionCollector:
    """Collects entries while a room is in the submitting phase."""

    def __init__(self, max_entry_length: int = 100):
        self.max_entry_length = max_entry_length

    def normalize(self, entry_text) -> Optional[str]:
        """Trim and truncate raw entry text; None if nothing usable remains."""
        if not isinstance(entry_text, str):
            return None
        text = ' '.join(entry_text.split())
        if not text:
            return None
        return text[:self.max_entry_length]

    def accept(self, room: Room, player_id: str, entry_text) -> bool:
        """
        Record an entry for a player.

        A later entry from the same player replaces the earlier one but keeps
        its place in submission order.

        Args:
            room: Room being played (caller holds its lock)
            player_id: Submitting player
            entry_text: Raw entry text

        Returns:
            True if the entry was recorded, False if it was ignored
        """
        if not room.started or room.phase != GamePhase.SUBMITTING:
            logger.debug(f"Ignoring entry from {player_id} in room {room.id} during {room.phase.value}")
            return False

        if not room.has_player(player_id):
            logger.debug(f"Ignoring entry from non-member {player_id} in room {room.id}")
            return False

        text = self.normalize(entry_text)
        if text is None:
            logger.debug(f"Ignoring empty entry from {player_id} in room {room.id}")
            return False

        is_update = player_id in room.submissions
        room.submissions[player_id] = text
        logger.debug(f"{'Updated' if is_update else 'Recorded'} entry for {player_id} in room {room.id} "
                     f"({len(room.submissions)}/{len(room.players)})")
        return True

    def is_complete(self, room: Room) -> bool:
        """Every player in the room, bots included, has an entry."""
        return bool(room.players) and all(p.id in room.submissions for p in room.players)

    def entries(self, room: Room) -> List[Tuple[str, str]]:
        """Entries as (player_id, text) pairs in first-submission order."""
        return list(room.submissions.items())

    def discard_player(self, room: Room, player_id: str) -> None:
        room.submissions.pop(player_id, None)
