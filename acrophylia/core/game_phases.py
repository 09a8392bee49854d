"""
Game Phase Enumeration

Defines the room phases and the table of allowed transitions between them.
"""

from enum import Enum
from typing import Dict


class GamePhase(Enum):
    """Game phase enumeration."""
    WAITING = "waiting"
    SUBMITTING = "submitting"
    VOTING = "voting"
    RESULTS = "results"
    ENDED = "ended"


class GameEvent(Enum):
    """Triggers that can move a room between phases."""
    START_GAME = "start_game"
    SUBMISSIONS_CLOSED = "submissions_closed"
    VOTING_CLOSED = "voting_closed"
    NEXT_ROUND = "next_round"
    FINISH_GAME = "finish_game"
    RESET_GAME = "reset_game"


# (phase, event) -> next phase. Anything missing from this table is rejected.
TRANSITIONS: Dict[tuple, GamePhase] = {
    (GamePhase.WAITING, GameEvent.START_GAME): GamePhase.SUBMITTING,
    (GamePhase.SUBMITTING, GameEvent.SUBMISSIONS_CLOSED): GamePhase.VOTING,
    (GamePhase.VOTING, GameEvent.VOTING_CLOSED): GamePhase.RESULTS,
    (GamePhase.RESULTS, GameEvent.NEXT_ROUND): GamePhase.SUBMITTING,
    (GamePhase.RESULTS, GameEvent.FINISH_GAME): GamePhase.ENDED,
    (GamePhase.ENDED, GameEvent.RESET_GAME): GamePhase.WAITING,
}

# The creator may abandon a game in progress as well.
for _phase in (GamePhase.WAITING, GamePhase.SUBMITTING, GamePhase.VOTING, GamePhase.RESULTS):
    TRANSITIONS[(_phase, GameEvent.RESET_GAME)] = GamePhase.WAITING


class InvalidTransitionError(Exception):
    """Raised when a transition is attempted that the table does not allow."""

    def __init__(self, phase: GamePhase, event: GameEvent):
        super().__init__(f"Cannot apply {event.value} during {phase.value} phase")
        self.phase = phase
        self.event = event


def next_phase(phase: GamePhase, event: GameEvent) -> GamePhase:
    """Look up the phase that follows ``phase`` when ``event`` fires."""
    try:
        return TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransitionError(phase, event) from None
