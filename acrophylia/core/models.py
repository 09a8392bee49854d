"""
Room and player records shared by the registry and the state machine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from acrophylia.core.game_phases import GamePhase


@dataclass
class Player:
    """A human participant bound to a connection session."""
    id: str
    name: str = ''
    score: int = 0
    connected: bool = True

    @property
    def is_bot(self) -> bool:
        return False

    @property
    def display_name(self) -> str:
        return self.name or self.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'isBot': self.is_bot,
            'connected': self.connected,
        }


@dataclass
class BotPlayer(Player):
    """A synthetic participant added to reach quorum."""

    @property
    def is_bot(self) -> bool:
        return True


@dataclass
class Room:
    """State of one game room. Mutated only while holding the room's lock."""
    id: str
    name: str
    creator_id: str
    players: List[Player] = field(default_factory=list)
    round: int = 0
    phase: GamePhase = GamePhase.WAITING
    category: Optional[str] = None
    letter_set: List[str] = field(default_factory=list)
    # player id -> entry text, in first-submission order
    submissions: Dict[str, str] = field(default_factory=dict)
    # voter id -> target player id
    votes: Dict[str, str] = field(default_factory=dict)
    started: bool = False
    # bumped on every start/reset so stale background work can detect it
    game_number: int = 0
    last_results: Optional[Dict[str, Any]] = None
    winner: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=datetime.now)

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def has_player(self, player_id: str) -> bool:
        return self.get_player(player_id) is not None

    def is_creator(self, player_id: str) -> bool:
        return player_id == self.creator_id

    def human_players(self) -> List[Player]:
        return [p for p in self.players if not p.is_bot]

    def bot_players(self) -> List[Player]:
        return [p for p in self.players if p.is_bot]

    def player_list(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.players]

    def clear_round(self) -> None:
        self.submissions.clear()
        self.votes.clear()

    def summary(self) -> Dict[str, Any]:
        """Public, read-only view used by the HTTP API."""
        return {
            'room_id': self.id,
            'name': self.name,
            'phase': self.phase.value,
            'round': self.round,
            'started': self.started,
            'player_count': len(self.players),
            'bot_count': len(self.bot_players()),
            'created_at': self.created_at.isoformat(),
        }
