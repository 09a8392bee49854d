"""
Vote Tally for Acrophylia

Gathers one vote per player for the active round and counts votes per entry.
"""

import logging
from typing import Dict

from acrophylia.core.errors import SelfVoteError
from acrophylia.core.game_phases import GamePhase
from acrophylia.core.models import Room

logger = logging.getLogger(__name__)


class VoteTally:
    """Collects votes while a room is in the voting phase."""

    def accept(self, room: Room, voter_id: str, target_id) -> bool:
        """
        Record a vote.

        Args:
            room: Room being played (caller holds its lock)
            voter_id: Voting player
            target_id: Player whose entry is voted for

        Returns:
            True if the vote was recorded, False if it was ignored

        Raises:
            SelfVoteError: If the voter targets their own entry
        """
        if not room.started or room.phase != GamePhase.VOTING:
            logger.debug(f"Ignoring vote from {voter_id} in room {room.id} during {room.phase.value}")
            return False

        if not room.has_player(voter_id):
            logger.debug(f"Ignoring vote from non-member {voter_id} in room {room.id}")
            return False

        if voter_id in room.votes:
            logger.debug(f"Player {voter_id} already voted in room {room.id}")
            return False

        if target_id == voter_id:
            raise SelfVoteError(voter_id)

        if target_id not in room.submissions:
            logger.debug(f"Ignoring vote from {voter_id} for unknown entry {target_id} in room {room.id}")
            return False

        room.votes[voter_id] = target_id
        logger.debug(f"Recorded vote {voter_id} -> {target_id} in room {room.id} "
                     f"({len(room.votes)}/{len(room.players)})")
        return True

    def can_vote(self, room: Room, player_id: str) -> bool:
        """A player can vote if there is at least one entry that is not their own."""
        return any(target_id != player_id for target_id in room.submissions)

    def is_complete(self, room: Room) -> bool:
        """
        Every player in the room, bots included, has voted.

        Players with nothing to vote for (the only entry is their own) are
        not waited on.
        """
        return bool(room.players) and all(
            p.id in room.votes or not self.can_vote(room, p.id) for p in room.players
        )

    def tally(self, room: Room) -> Dict[str, int]:
        """
        Count votes received by each submitting player.

        Returns:
            Dict of player id -> votes received, with an entry (possibly 0)
            for every player that submitted, in submission order
        """
        counts = {player_id: 0 for player_id in room.submissions}
        for voter_id, target_id in room.votes.items():
            if target_id in counts and target_id != voter_id:
                counts[target_id] += 1
        return counts
