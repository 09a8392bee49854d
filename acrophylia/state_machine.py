"""
Room State Machine for Acrophylia

Drives one room at a time through its phases:

    waiting -> submitting -> voting -> results -> (submitting | ended)

Every public operation takes the room's lock, applies the event under the
room's current phase and pushes the resulting state out through the
broadcast service. Phase deadlines are owned by the timer scheduler; a fired
deadline is only acted on after ``TimerScheduler.release`` confirms, under
the same lock, that no natural completion has already superseded it.
"""

import logging
from typing import Optional

from acrophylia.core.game_phases import GameEvent, GamePhase, next_phase
from acrophylia.core.models import Room

logger = logging.getLogger(__name__)


class RoomStateMachine:
    """Orchestrates rounds for every live room."""

    def __init__(self, registry, broadcast_service, timers, submissions, votes, scores,
                 bots, content_manager, game_settings):
        self.registry = registry
        self.broadcast_service = broadcast_service
        self.timers = timers
        self.submissions = submissions
        self.votes = votes
        self.scores = scores
        self.bots = bots
        self.content_manager = content_manager
        self.settings = game_settings

        registry.add_removal_listener(self.handle_player_removed)

    # Creator-only operations

    def start_game(self, room_id: str, socket_id: str) -> bool:
        """
        Start the game: fill the room to quorum with bots and begin round one.

        Ignored unless the sender is the creator and the game has not started.
        """
        with self.registry.locked_room(room_id) as room:
            if room is None:
                logger.debug(f"startGame for unknown room {room_id}")
                return False
            if not room.is_creator(socket_id):
                logger.info(f"Ignoring startGame from non-creator {socket_id} in room {room_id}")
                return False
            if room.started:
                logger.debug(f"Ignoring startGame in room {room_id}: already started")
                return False

            self._transition(room, GameEvent.START_GAME)
            room.started = True
            room.game_number += 1
            room.round = 0
            room.last_results = None
            room.winner = None

            added = self.bots.fill(room)
            for bot in added:
                self.broadcast_service.broadcast_chat_message(
                    room_id, bot.id, bot.name, f"{bot.name} has joined the chat!"
                )
            self.broadcast_service.broadcast_player_update(room_id, room.player_list())
            self.broadcast_service.broadcast_game_started(room_id)
            logger.info(f"Game {room.game_number} started in room {room_id} "
                        f"with {len(room.players)} players ({len(added)} bots added)")

            self._begin_round(room)
            return True

    def reset_game(self, room_id: str, socket_id: str) -> bool:
        """
        Return the room to the waiting phase with round 0 and all scores 0.

        Bots are dropped so the next start fills to quorum afresh.
        Ignored unless the sender is the creator.
        """
        with self.registry.locked_room(room_id) as room:
            if room is None:
                return False
            if not room.is_creator(socket_id):
                logger.info(f"Ignoring resetGame from non-creator {socket_id} in room {room_id}")
                return False

            self.timers.cancel(room_id)
            self._transition(room, GameEvent.RESET_GAME)
            room.game_number += 1
            room.round = 0
            room.started = False
            room.clear_round()
            room.category = None
            room.letter_set = []
            room.last_results = None
            room.winner = None
            room.players = room.human_players()
            self.scores.reset_scores(room)

            self.broadcast_service.broadcast_player_update(room_id, room.player_list())
            self.broadcast_service.broadcast_game_reset(room_id)
            logger.info(f"Room {room_id} reset by {socket_id}")
            return True

    # Player actions

    def submit(self, room_id: str, socket_id: str, entry_text) -> bool:
        """Record an entry; closes submissions early once every player has one."""
        with self.registry.locked_room(room_id) as room:
            if room is None:
                return False
            if not self.submissions.accept(room, socket_id, entry_text):
                return False
            if self.submissions.is_complete(room):
                logger.info(f"All {len(room.players)} entries in for room {room_id}")
                self._close_submissions(room)
            return True

    def vote(self, room_id: str, socket_id: str, target_id) -> bool:
        """
        Record a vote; closes voting early once every player has voted.

        Raises:
            SelfVoteError: If the voter targets their own entry
        """
        with self.registry.locked_room(room_id) as room:
            if room is None:
                return False
            if not self.votes.accept(room, socket_id, target_id):
                return False
            if self.votes.is_complete(room):
                logger.info(f"All votes in for room {room_id}")
                self._close_voting(room)
            return True

    def set_name(self, room_id: str, socket_id: str, name) -> bool:
        with self.registry.locked_room(room_id) as room:
            if room is None or not isinstance(name, str):
                return False
            player = room.get_player(socket_id)
            if player is None or player.is_bot:
                return False
            name = name.strip()[:self.settings.max_player_name_length]
            if not name:
                return False
            player.name = name
            logger.info(f"Player {socket_id} in room {room_id} is now {name!r}")
            self.broadcast_service.broadcast_player_update(room_id, room.player_list())
            return True

    def send_message(self, room_id: str, socket_id: str, message) -> bool:
        """Relay a chat message from a room member to the whole room."""
        with self.registry.locked_room(room_id) as room:
            if room is None or not isinstance(message, str):
                return False
            player = room.get_player(socket_id)
            if player is None:
                return False
            text = message.strip()[:self.settings.max_chat_message_length]
            if not text:
                return False
            self.broadcast_service.broadcast_chat_message(room_id, socket_id, player.display_name, text)
            return True

    def request_results(self, room_id: str, socket_id: str) -> bool:
        """Re-send the last round's results to the requesting session only."""
        with self.registry.locked_room(room_id) as room:
            if room is None or room.last_results is None:
                return False
            if room.phase not in (GamePhase.RESULTS, GamePhase.ENDED):
                return False
            self.broadcast_service.send_round_results(socket_id, room.last_results)
            return True

    # Membership changes

    def handle_player_removed(self, room: Room, player_id: str) -> None:
        """
        Re-check completion after a player leaves, since they may have been
        the last one the room was waiting on.

        An entry is only withdrawn while submissions are still open. Once
        voting starts the entries are frozen, so the departed player's entry
        and every vote already cast for it stay in the round.
        """
        if room.phase == GamePhase.SUBMITTING:
            self.submissions.discard_player(room, player_id)
        if not room.started:
            return
        if room.phase == GamePhase.SUBMITTING and self.submissions.is_complete(room):
            self._close_submissions(room)
        elif room.phase == GamePhase.VOTING and self.votes.is_complete(room):
            self._close_voting(room)

    # Round lifecycle (callers hold the room lock)

    def _transition(self, room: Room, event: GameEvent) -> None:
        previous = room.phase
        room.phase = next_phase(previous, event)
        logger.info(f"[phase] room={room.id} {previous.value} -> {room.phase.value} ({event.value})")

    def _begin_round(self, room: Room) -> None:
        room.round += 1
        room.clear_round()
        room.letter_set, room.category = self.content_manager.next(room.round)
        duration = self.settings.phase_durations[GamePhase.SUBMITTING]

        logger.info(f"Round {room.round} in room {room.id}: letters={''.join(room.letter_set)} "
                    f"category={room.category!r}")
        self.broadcast_service.broadcast_new_round(
            room.id, room.round, list(room.letter_set), room.category, duration
        )
        self.timers.schedule(room.id, GamePhase.SUBMITTING, duration,
                             on_expire=self._on_submission_deadline, on_tick=self._on_tick)
        self._schedule_bot_submissions(room)

    def _close_submissions(self, room: Room) -> None:
        self.timers.cancel(room.id)
        self._transition(room, GameEvent.SUBMISSIONS_CLOSED)

        entries = self.submissions.entries(room)
        self.broadcast_service.broadcast_submissions(room.id, [[pid, text] for pid, text in entries])
        self.broadcast_service.broadcast_voting_start(room.id)

        if self.votes.is_complete(room):
            # Nobody has anything to vote for
            self._close_voting(room)
            return

        duration = self.settings.phase_durations[GamePhase.VOTING]
        self.broadcast_service.broadcast_time_update(room.id, duration)
        self.timers.schedule(room.id, GamePhase.VOTING, duration,
                             on_expire=self._on_voting_deadline, on_tick=self._on_tick)
        self._schedule_bot_votes(room)

    def _close_voting(self, room: Room) -> None:
        self.timers.cancel(room.id)
        self._transition(room, GameEvent.VOTING_CLOSED)

        tally = self.votes.tally(room)
        results = self.scores.apply_round(room, tally)
        room.last_results = results

        self.broadcast_service.broadcast_round_results(room.id, results)
        self.broadcast_service.broadcast_player_update(room.id, room.player_list())
        self.timers.schedule(room.id, GamePhase.RESULTS, self.settings.phase_durations[GamePhase.RESULTS],
                             on_expire=self._on_results_elapsed)

    def _finish_results(self, room: Room) -> None:
        if room.round < self.settings.max_rounds:
            self._transition(room, GameEvent.NEXT_ROUND)
            self._begin_round(room)
            return

        self._transition(room, GameEvent.FINISH_GAME)
        room.winner = self.scores.determine_winner(room)
        logger.info(f"Game {room.game_number} in room {room.id} ended, winner: {room.winner}")
        self.broadcast_service.broadcast_game_end(room.id, room.winner)

    # Timer callbacks (run in background tasks)

    def _on_tick(self, timer, remaining: int) -> None:
        # Phase changes cancel the deadline under this lock, so a tick that
        # lost that race is dropped here
        with self.registry.locked_room(timer.room_id) as room:
            if room is None or not self.timers.is_current(timer):
                return
            self.broadcast_service.broadcast_time_update(timer.room_id, remaining)

    def _on_submission_deadline(self, timer) -> None:
        with self.registry.locked_room(timer.room_id) as room:
            if not self.timers.release(timer) or room is None:
                return
            if room.phase != GamePhase.SUBMITTING:
                return
            logger.info(f"Submission deadline in room {room.id}: "
                        f"{len(room.submissions)}/{len(room.players)} entries")
            self._close_submissions(room)

    def _on_voting_deadline(self, timer) -> None:
        with self.registry.locked_room(timer.room_id) as room:
            if not self.timers.release(timer) or room is None:
                return
            if room.phase != GamePhase.VOTING:
                return
            logger.info(f"Voting deadline in room {room.id}: {len(room.votes)}/{len(room.players)} votes")
            self._close_voting(room)

    def _on_results_elapsed(self, timer) -> None:
        with self.registry.locked_room(timer.room_id) as room:
            if not self.timers.release(timer) or room is None:
                return
            if room.phase != GamePhase.RESULTS:
                return
            self._finish_results(room)

    # Bots

    def _schedule_bot_submissions(self, room: Room) -> None:
        for seed, bot in enumerate(room.bot_players()):
            self.timers.run_later(
                self.bots.next_delay(), self._bot_submit, room.id, bot.id, room.game_number,
                room.round, list(room.letter_set), room.category, seed + room.round
            )

    def _schedule_bot_votes(self, room: Room) -> None:
        for bot in room.bot_players():
            self.timers.run_later(
                self.bots.next_delay(), self._bot_vote, room.id, bot.id, room.game_number,
                room.round, room.category
            )

    def _bot_submit(self, room_id, bot_id, game_number, round_num, letter_set, category, seed) -> None:
        # Text generation may call out to the language model; do it outside the lock
        text = self.bots.make_entry(letter_set, category, seed)
        with self.registry.locked_room(room_id) as room:
            if not self._bot_turn_current(room, game_number, round_num, GamePhase.SUBMITTING):
                return
            self.submit(room_id, bot_id, text)

    def _bot_vote(self, room_id, bot_id, game_number, round_num, category) -> None:
        with self.registry.locked_room(room_id) as room:
            if not self._bot_turn_current(room, game_number, round_num, GamePhase.VOTING):
                return
            entries = self.submissions.entries(room)

        target_id = self.bots.choose_vote(bot_id, entries, category)
        if target_id is None:
            return

        with self.registry.locked_room(room_id) as room:
            if not self._bot_turn_current(room, game_number, round_num, GamePhase.VOTING):
                return
            if target_id not in room.submissions:
                # The entry's owner reconnected under a new session id while the
                # bot was choosing; rebinding keeps entries in the same order
                position = [pid for pid, _ in entries].index(target_id)
                current = self.submissions.entries(room)
                if position >= len(current):
                    return
                target_id = current[position][0]
            self.vote(room_id, bot_id, target_id)

    def _bot_turn_current(self, room: Optional[Room], game_number: int, round_num: int,
                          phase: GamePhase) -> bool:
        return (room is not None and room.game_number == game_number
                and room.round == round_num and room.phase == phase)
