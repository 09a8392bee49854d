"""
Room State Machine Unit Tests
Drives rooms through full games over a fake transport.
"""

import pytest

from acrophylia.core.errors import SelfVoteError
from acrophylia.core.game_phases import GamePhase
from tests.helpers.room_helpers import (
    build_engine, create_room_with_players, start_game, submit_all, vote_all,
    finish_results, timer_task_for
)


HUMAN_ENTRIES = {'sid-a': 'Always Be Coding', 'sid-b': 'Big Brown Cats', 'sid-c': 'Can Cats Cook'}


class TestStartGame:
    """Starting a game and filling quorum"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)

    def test_start_fills_quorum_with_one_bot(self):
        room = start_game(self.engine, self.room_id)

        assert len(room.players) == 4
        assert len(room.bot_players()) == 1
        assert room.phase == GamePhase.SUBMITTING
        assert room.round == 1
        assert room.started is True

    def test_bot_addition_is_announced_in_chat(self):
        room = start_game(self.engine, self.room_id)
        bot = room.bot_players()[0]

        chats = self.engine.socketio.events('chatMessage', to=self.room_id)
        assert chats == [{
            'senderId': bot.id,
            'senderName': bot.name,
            'message': f'{bot.name} has joined the chat!'
        }]

    def test_start_broadcasts_game_started_then_new_round(self):
        start_game(self.engine, self.room_id)

        names = self.engine.socketio.event_names(to=self.room_id)
        assert names.index('gameStarted') < names.index('newRound')
        new_round = self.engine.socketio.events('newRound')[0]
        assert new_round['roundNum'] == 1
        assert len(new_round['letterSet']) == 3
        assert new_round['timeLeft'] == 60
        assert new_round['category']

    def test_start_schedules_submission_deadline(self):
        start_game(self.engine, self.room_id)

        timer = self.engine.timers.get_timer(self.room_id)
        assert timer is not None
        assert timer.phase == GamePhase.SUBMITTING
        assert timer.duration == 60

    def test_non_creator_start_is_ignored(self):
        self.engine.socketio.clear_emitted()

        assert self.engine.machine.start_game(self.room_id, 'sid-b') is False

        room = self.engine.registry.get_room(self.room_id)
        assert room.phase == GamePhase.WAITING
        assert room.started is False
        assert self.engine.socketio.emitted == []

    def test_second_start_is_ignored(self):
        start_game(self.engine, self.room_id)
        assert self.engine.machine.start_game(self.room_id, 'sid-a') is False
        assert len(self.engine.registry.get_room(self.room_id).bot_players()) == 1

    def test_full_room_gets_no_bots(self):
        self.engine.registry.join(self.room_id, 'sid-d')
        room = start_game(self.engine, self.room_id)
        assert room.bot_players() == []
        assert self.engine.socketio.events('chatMessage') == []

    def test_unknown_room_is_ignored(self):
        assert self.engine.machine.start_game('nosuchroom', 'sid-a') is False


class TestSubmissions:
    """Submitting phase behaviour"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)

    def test_submit_before_start_is_ignored(self):
        assert self.engine.machine.submit(self.room_id, 'sid-a', 'Too Early') is False
        assert self.engine.registry.get_room(self.room_id).submissions == {}

    def test_all_players_submitting_advances_immediately(self):
        room = start_game(self.engine, self.room_id)
        bot = room.bot_players()[0]

        submit_all(self.engine, self.room_id, HUMAN_ENTRIES)

        assert room.phase == GamePhase.VOTING
        received = self.engine.socketio.events('submissionsReceived', to=self.room_id)
        assert len(received) == 1
        entries = received[0]
        assert len(entries) == 4
        assert [pid for pid, _ in entries] == ['sid-a', 'sid-b', 'sid-c', bot.id]
        assert entries[0] == ['sid-a', 'Always Be Coding']
        assert 'votingStart' in self.engine.socketio.event_names(to=self.room_id)

    def test_natural_completion_replaces_submission_deadline(self):
        start_game(self.engine, self.room_id)
        submit_all(self.engine, self.room_id, HUMAN_ENTRIES)

        timer = self.engine.timers.get_timer(self.room_id)
        assert timer.phase == GamePhase.VOTING

    def test_resubmission_overwrites_and_keeps_order(self):
        room = start_game(self.engine, self.room_id)

        self.engine.machine.submit(self.room_id, 'sid-a', 'First Try Here')
        self.engine.machine.submit(self.room_id, 'sid-b', 'Bob Was Here')
        self.engine.machine.submit(self.room_id, 'sid-a', 'Second Try Here')

        assert list(room.submissions.items()) == [
            ('sid-a', 'Second Try Here'),
            ('sid-b', 'Bob Was Here'),
        ]

    def test_empty_entry_is_ignored(self):
        room = start_game(self.engine, self.room_id)
        assert self.engine.machine.submit(self.room_id, 'sid-a', '   ') is False
        assert room.submissions == {}

    def test_submission_deadline_forces_voting_with_missing_entries(self):
        room = start_game(self.engine, self.room_id)
        self.engine.machine.submit(self.room_id, 'sid-a', 'Only One Entry')

        self.engine.socketio.run_task(timer_task_for(self.engine, self.room_id))

        assert room.phase == GamePhase.VOTING
        assert self.engine.socketio.events('submissionsReceived')[0] == [['sid-a', 'Only One Entry']]

    def test_deadline_ticks_broadcast_time_remaining(self):
        start_game(self.engine, self.room_id)
        self.engine.socketio.run_task(timer_task_for(self.engine, self.room_id))

        ticks = [payload['timeLeft'] for payload in self.engine.socketio.events('timeUpdate')]
        assert ticks[:3] == [59, 58, 57]
        assert 0 in ticks

    def test_tick_after_phase_change_is_dropped(self):
        start_game(self.engine, self.room_id)
        stale_timer = self.engine.timers.get_timer(self.room_id)
        submit_all(self.engine, self.room_id, HUMAN_ENTRIES)
        self.engine.socketio.clear_emitted()

        self.engine.machine._on_tick(stale_timer, 42)

        assert self.engine.socketio.events('timeUpdate') == []

    def test_stale_deadline_does_not_fire_after_natural_completion(self):
        room = start_game(self.engine, self.room_id)
        stale_task = timer_task_for(self.engine, self.room_id)
        stale_timer = stale_task[1][0]

        submit_all(self.engine, self.room_id, HUMAN_ENTRIES)
        assert room.phase == GamePhase.VOTING

        self.engine.socketio.run_task(stale_task)
        self.engine.machine._on_submission_deadline(stale_timer)

        assert room.phase == GamePhase.VOTING
        assert len(self.engine.socketio.events('submissionsReceived')) == 1
        assert self.engine.timers.get_timer(self.room_id).phase == GamePhase.VOTING

    def test_player_leaving_completes_submissions(self):
        room = start_game(self.engine, self.room_id)
        submit_all(self.engine, self.room_id, {'sid-a': 'Apples', 'sid-b': 'Bananas'})
        assert room.phase == GamePhase.SUBMITTING

        self.engine.registry.leave(self.room_id, 'sid-c')

        assert room.phase == GamePhase.VOTING
        assert len(self.engine.socketio.events('submissionsReceived')[0]) == 3


class TestVoting:
    """Voting phase behaviour"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)
        self.room = start_game(self.engine, self.room_id)
        self.bot = self.room.bot_players()[0]
        submit_all(self.engine, self.room_id, HUMAN_ENTRIES)
        assert self.room.phase == GamePhase.VOTING

    def test_self_vote_is_rejected(self):
        with pytest.raises(SelfVoteError):
            self.engine.machine.vote(self.room_id, 'sid-a', 'sid-a')
        assert self.room.votes == {}

    def test_second_vote_is_a_no_op(self):
        assert self.engine.machine.vote(self.room_id, 'sid-a', 'sid-b') is True
        assert self.engine.machine.vote(self.room_id, 'sid-a', 'sid-c') is False
        assert self.room.votes == {'sid-a': 'sid-b'}

    def test_vote_for_unknown_entry_is_ignored(self):
        assert self.engine.machine.vote(self.room_id, 'sid-a', 'nobody') is False
        assert self.room.votes == {}

    def test_all_votes_advance_to_results(self):
        vote_all(self.engine, self.room_id, {'sid-a': 'sid-b', 'sid-b': 'sid-c', 'sid-c': 'sid-b'})

        assert self.room.phase == GamePhase.RESULTS
        results = self.engine.socketio.events('roundResults', to=self.room_id)[0]
        assert results['roundNum'] == 1
        assert results['totalVotes'] == 4
        assert [row['playerId'] for row in results['results']] == ['sid-a', 'sid-b', 'sid-c', self.bot.id]

    def test_voting_deadline_treats_missing_voter_as_abstaining(self):
        for voter_id, target_id in {'sid-a': 'sid-b', 'sid-b': 'sid-c', 'sid-c': 'sid-a'}.items():
            self.engine.machine.vote(self.room_id, voter_id, target_id)
        assert self.room.phase == GamePhase.VOTING

        self.engine.socketio.run_task(timer_task_for(self.engine, self.room_id))

        assert self.room.phase == GamePhase.RESULTS
        assert self.room.last_results['totalVotes'] == 3
        assert sum(row['votes'] for row in self.room.last_results['results']) == 3
        assert self.bot.id not in self.room.votes

    def test_scores_follow_votes_received(self):
        vote_all(self.engine, self.room_id, {'sid-a': 'sid-b', 'sid-b': 'sid-c', 'sid-c': 'sid-b'})

        scores = {p.id: p.score for p in self.room.players}
        # The bot falls back to the earliest entry that is not its own
        assert scores == {'sid-a': 1, 'sid-b': 2, 'sid-c': 1, self.bot.id: 0}

    def test_request_results_goes_to_requester_only(self):
        assert self.engine.machine.request_results(self.room_id, 'sid-b') is False

        vote_all(self.engine, self.room_id, {'sid-a': 'sid-b', 'sid-b': 'sid-c', 'sid-c': 'sid-b'})
        self.engine.socketio.clear_emitted()

        assert self.engine.machine.request_results(self.room_id, 'sid-b') is True
        assert self.engine.socketio.emitted == [('roundResults', self.room.last_results, 'sid-b')]

    def test_votes_for_departed_player_stand(self):
        assert self.engine.machine.vote(self.room_id, 'sid-b', 'sid-c') is True

        self.engine.registry.leave(self.room_id, 'sid-c')

        assert self.room.phase == GamePhase.VOTING
        assert 'sid-c' in self.room.submissions
        assert self.engine.machine.vote(self.room_id, 'sid-b', 'sid-a') is False
        assert self.room.votes == {'sid-b': 'sid-c'}

        vote_all(self.engine, self.room_id, {'sid-a': 'sid-b'})

        assert self.room.phase == GamePhase.RESULTS
        rows = {row['playerId']: row for row in self.room.last_results['results']}
        assert rows['sid-c']['votes'] == 1
        assert rows['sid-c']['totalScore'] == 0
        assert self.room.last_results['totalVotes'] == 3

    def test_bot_vote_for_departed_player_completes_voting(self):
        self.engine.machine.vote(self.room_id, 'sid-b', 'sid-c')
        self.engine.machine.vote(self.room_id, 'sid-c', 'sid-b')

        self.engine.registry.leave(self.room_id, 'sid-a')
        assert self.room.phase == GamePhase.VOTING

        self.engine.socketio.run_delayed('_bot_vote')

        assert self.room.phase == GamePhase.RESULTS
        assert self.room.votes[self.bot.id] == 'sid-a'

    def test_bot_vote_follows_entry_of_migrated_creator(self):
        choose_vote = self.engine.bots.choose_vote

        def choose_then_reconnect(*args):
            target_id = choose_vote(*args)
            self.engine.registry.join(self.room_id, 'sid-a2', 'sid-a')
            return target_id

        self.engine.bots.choose_vote = choose_then_reconnect
        self.engine.socketio.run_delayed('_bot_vote')

        assert self.room.creator_id == 'sid-a2'
        assert self.room.votes == {self.bot.id: 'sid-a2'}

    def test_votes_never_exceed_players(self):
        vote_all(self.engine, self.room_id, {'sid-a': 'sid-b', 'sid-b': 'sid-c', 'sid-c': 'sid-b'})
        assert len(self.room.votes) <= len(self.room.players)
        assert all(voter != target for voter, target in self.room.votes.items())


class TestFullGame:
    """Playing every round through to the end"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)

    def _play_round(self):
        submit_all(self.engine, self.room_id, HUMAN_ENTRIES)
        vote_all(self.engine, self.room_id, {'sid-a': 'sid-b', 'sid-b': 'sid-c', 'sid-c': 'sid-b'})

    def test_game_ends_after_max_rounds_with_top_scorer(self):
        room = start_game(self.engine, self.room_id)
        phases = [room.phase]

        for round_num in range(1, 6):
            assert room.round == round_num
            assert len(room.letter_set) == min(7, 2 + round_num)
            self._play_round()
            phases.append(room.phase)
            assert len(room.submissions) <= len(room.players)
            finish_results(self.engine, self.room_id)
            phases.append(room.phase)

        assert room.phase == GamePhase.ENDED
        assert phases[-2:] == [GamePhase.RESULTS, GamePhase.ENDED]
        game_end = self.engine.socketio.events('gameEnd', to=self.room_id)
        assert len(game_end) == 1
        assert game_end[0]['winner']['id'] == 'sid-b'
        assert game_end[0]['winner']['score'] == 10
        assert self.engine.timers.get_timer(self.room_id) is None

    def test_tied_game_goes_to_earliest_joined_player(self):
        room = start_game(self.engine, self.room_id)

        for _ in range(20):
            if room.phase == GamePhase.ENDED:
                break
            self.engine.socketio.run_task(timer_task_for(self.engine, self.room_id))

        assert room.phase == GamePhase.ENDED
        assert room.round == 5
        assert all(p.score == 0 for p in room.players)
        assert self.engine.socketio.events('gameEnd')[0]['winner']['id'] == 'sid-a'


class TestResetGame:
    """Resetting back to the waiting phase"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)
        self.room = start_game(self.engine, self.room_id)
        submit_all(self.engine, self.room_id, HUMAN_ENTRIES)
        vote_all(self.engine, self.room_id, {'sid-a': 'sid-b', 'sid-b': 'sid-c', 'sid-c': 'sid-b'})

    def test_reset_restores_initial_state(self):
        assert self.engine.machine.reset_game(self.room_id, 'sid-a') is True

        assert self.room.phase == GamePhase.WAITING
        assert self.room.round == 0
        assert self.room.started is False
        assert self.room.submissions == {}
        assert self.room.votes == {}
        assert all(p.score == 0 for p in self.room.players)
        assert self.engine.timers.get_timer(self.room_id) is None
        assert 'gameReset' in self.engine.socketio.event_names(to=self.room_id)

    def test_reset_drops_bots(self):
        self.engine.machine.reset_game(self.room_id, 'sid-a')
        assert self.room.bot_players() == []
        assert [p.id for p in self.room.players] == ['sid-a', 'sid-b', 'sid-c']

    def test_non_creator_reset_is_ignored(self):
        assert self.engine.machine.reset_game(self.room_id, 'sid-b') is False
        assert self.room.phase == GamePhase.RESULTS
        assert self.room.started is True

    def test_game_can_restart_after_reset(self):
        self.engine.machine.reset_game(self.room_id, 'sid-a')
        room = start_game(self.engine, self.room_id)
        assert room.round == 1
        assert len(room.bot_players()) == 1

    def test_stale_bot_actions_are_dropped_after_reset(self):
        self.engine.machine.reset_game(self.room_id, 'sid-a')
        room = start_game(self.engine, self.room_id)
        old_game = room.game_number - 1
        bot = room.bot_players()[0]

        self.engine.machine._bot_submit(self.room_id, bot.id, old_game, 1, ['A', 'B', 'C'], 'Food', 0)

        assert room.submissions == {}


class TestNamesAndChat:
    """Display names and chat relay"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)

    def test_set_name_trims_and_truncates(self):
        assert self.engine.machine.set_name(self.room_id, 'sid-b', '   Bartholomew The Magnificent  ')
        player = self.engine.registry.get_room(self.room_id).get_player('sid-b')
        assert player.name == 'Bartholomew The Magn'
        assert self.engine.socketio.events('playerUpdate')[-1][1]['name'] == 'Bartholomew The Magn'

    def test_set_name_ignored_for_non_member(self):
        assert self.engine.machine.set_name(self.room_id, 'stranger', 'Eve') is False

    def test_set_name_ignored_for_bots(self):
        room = start_game(self.engine, self.room_id)
        bot = room.bot_players()[0]
        assert self.engine.machine.set_name(self.room_id, bot.id, 'Hacked') is False
        assert bot.name != 'Hacked'

    def test_chat_uses_session_id_when_unnamed(self):
        self.engine.machine.send_message(self.room_id, 'sid-c', 'hello there')
        assert self.engine.socketio.events('chatMessage', to=self.room_id)[-1] == {
            'senderId': 'sid-c', 'senderName': 'sid-c', 'message': 'hello there'
        }

    def test_chat_uses_display_name(self):
        self.engine.machine.set_name(self.room_id, 'sid-c', 'Cleo')
        self.engine.machine.send_message(self.room_id, 'sid-c', 'hi')
        assert self.engine.socketio.events('chatMessage')[-1]['senderName'] == 'Cleo'

    def test_chat_from_non_member_is_ignored(self):
        assert self.engine.machine.send_message(self.room_id, 'stranger', 'spam') is False
        assert self.engine.socketio.events('chatMessage') == []

    def test_chat_message_is_truncated(self):
        self.engine.machine.send_message(self.room_id, 'sid-a', 'x' * 500)
        assert len(self.engine.socketio.events('chatMessage')[-1]['message']) == 200
