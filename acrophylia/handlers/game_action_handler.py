"""
Game Action Handler

This module handles Socket.IO events related to game actions: starting and
resetting the game, submitting acronyms, voting and re-requesting results.

Out-of-phase or unauthorized actions are not errors; the state machine
ignores them so retransmitted or stale client events are harmless.
"""

import logging

from acrophylia.services.error_response_factory import with_error_handling
from .base_handler import BaseGameHandler

logger = logging.getLogger(__name__)


class GameActionHandler(BaseGameHandler):
    """Handler for game action operations."""

    @with_error_handling
    def handle_start_game(self, data):
        """Handle the creator starting the game. Expected data: the room id."""
        self.log_handler_start('handle_start_game', data)
        room_id = self.extract_room_id(data)
        if self.state_machine.start_game(room_id, self.sid):
            self.log_handler_success('handle_start_game', f'Game started in room {room_id}')

    @with_error_handling
    def handle_reset_game(self, data):
        """Handle the creator resetting the game. Expected data: the room id."""
        self.log_handler_start('handle_reset_game', data)
        room_id = self.extract_room_id(data)
        if self.state_machine.reset_game(room_id, self.sid):
            self.log_handler_success('handle_reset_game', f'Game reset in room {room_id}')

    @with_error_handling
    def handle_submit_acronym(self, data):
        """
        Handle an acronym submission during the submitting phase.

        Expected data format:
        {
            'roomId': 'abc123xyz',
            'acronym': 'Big Angry Tacos'
        }
        """
        self.log_handler_start('handle_submit_acronym', data)
        room_id, acronym = self.room_and_field(data, 'acronym')
        self.state_machine.submit(room_id, self.sid, acronym)

    @with_error_handling
    def handle_vote(self, data):
        """
        Handle a vote during the voting phase.

        Expected data format:
        {
            'roomId': 'abc123xyz',
            'submissionId': '<player id of the entry voted for>'
        }

        A vote for your own entry is reported back as a SELF_VOTE error.
        """
        self.log_handler_start('handle_vote', data)
        room_id, target_id = self.room_and_field(data, 'submissionId')
        self.state_machine.vote(room_id, self.sid, target_id)

    @with_error_handling
    def handle_request_results(self, data):
        """Handle a request to re-send the last round's results. Expected data: the room id."""
        self.log_handler_start('handle_request_results', data)
        room_id = self.extract_room_id(data)
        self.state_machine.request_results(room_id, self.sid)
