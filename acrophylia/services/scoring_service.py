"""
Score Keeper for Acrophylia

Converts a round's vote tally into score deltas, keeps cumulative scores and
picks the overall winner.
"""

import logging
from typing import Any, Dict, List, Optional

from acrophylia.core.models import Room

logger = logging.getLogger(__name__)


class ScoreKeeper:
    """Manages scoring for game rounds."""

    POINTS_PER_VOTE = 1

    def calculate_round_scores(self, tally: Dict[str, int]) -> Dict[str, int]:
        """
        Calculate score deltas for the round.

        Args:
            tally: Player id -> votes received

        Returns:
            Dict mapping player id to points earned this round
        """
        return {player_id: votes * self.POINTS_PER_VOTE for player_id, votes in tally.items()}

    def apply_round(self, room: Room, tally: Dict[str, int]) -> Dict[str, Any]:
        """
        Add the round's points to each player's cumulative score and build the
        round results payload.

        Args:
            room: Room being played (caller holds its lock)
            tally: Player id -> votes received

        Returns:
            Round results with one row per submitted entry, in submission order
        """
        deltas = self.calculate_round_scores(tally)
        for player_id, points in deltas.items():
            player = room.get_player(player_id)
            # Only update score if player still exists in room
            if player is not None:
                player.score += points

        voters_by_target: Dict[str, List[str]] = {}
        for voter_id, target_id in room.votes.items():
            voters_by_target.setdefault(target_id, []).append(voter_id)

        entries = []
        for player_id, text in room.submissions.items():
            player = room.get_player(player_id)
            entries.append({
                'playerId': player_id,
                'playerName': player.display_name if player else player_id,
                'isBot': player.is_bot if player else False,
                'acronym': text,
                'votes': tally.get(player_id, 0),
                'voters': voters_by_target.get(player_id, []),
                'points': deltas.get(player_id, 0),
                'totalScore': player.score if player else 0,
            })

        results = {
            'roundNum': room.round,
            'letterSet': list(room.letter_set),
            'category': room.category,
            'results': entries,
            'totalVotes': sum(tally.values()),
            'leaderboard': self.get_leaderboard(room),
        }
        logger.info(f"Scored round {room.round} in room {room.id}: {deltas}")
        return results

    def determine_winner(self, room: Room) -> Optional[Dict[str, Any]]:
        """
        Pick the player with the highest cumulative score.

        Ties go to the player who joined the room earliest.
        """
        winner = None
        for player in room.players:
            if winner is None or player.score > winner.score:
                winner = player
        if winner is None:
            return None
        return {
            'id': winner.id,
            'name': winner.display_name,
            'score': winner.score,
            'isBot': winner.is_bot,
        }

    def reset_scores(self, room: Room) -> None:
        for player in room.players:
            player.score = 0

    def get_leaderboard(self, room: Room) -> List[Dict[str, Any]]:
        """
        Players sorted by score (highest first), ties in join order.
        """
        ordered = sorted(enumerate(room.players), key=lambda item: (-item[1].score, item[0]))
        leaderboard = []
        for rank, (_, player) in enumerate(ordered, start=1):
            entry = player.to_dict()
            entry['rank'] = rank
            leaderboard.append(entry)
        return leaderboard
