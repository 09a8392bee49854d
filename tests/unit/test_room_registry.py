"""
Room Registry Unit Tests
Tests room creation, membership, creator migration and disconnect handling.
"""

import re

import pytest

from acrophylia.core.errors import RegistryError
from acrophylia.core.game_phases import GamePhase
from tests.helpers.room_helpers import build_engine, create_room_with_players, start_game


class TestRoomCreation:
    """Test creating rooms"""

    def setup_method(self):
        self.engine = build_engine()

    def test_create_returns_lowercase_alphanumeric_id(self):
        room_id = self.engine.registry.create('Friday Night', 'sid-a')

        assert re.fullmatch(r'[a-z0-9]{9}', room_id)
        assert self.engine.registry.get_room(room_id) is not None

    def test_creator_is_sole_player(self):
        room_id = self.engine.registry.create('Friday Night', 'sid-a')
        room = self.engine.registry.get_room(room_id)

        assert room.creator_id == 'sid-a'
        assert [p.id for p in room.players] == ['sid-a']
        assert room.phase == GamePhase.WAITING
        assert room.round == 0
        assert room.started is False

    def test_create_notifies_creator(self):
        room_id = self.engine.registry.create('', 'sid-a')

        assert self.engine.socketio.events('roomCreated', to='sid-a') == [room_id]
        assert len(self.engine.socketio.events('playerUpdate', to=room_id)) == 1
        self.engine.socketio.server.enter_room.assert_called_with('sid-a', room_id, namespace='/')

    def test_room_ids_are_unique(self):
        ids = {self.engine.registry.create('r', f'sid-{i}') for i in range(50)}
        assert len(ids) == 50
        assert self.engine.registry.get_room_count() == 50

    def test_session_is_bound_to_room(self):
        room_id = self.engine.registry.create('r', 'sid-a')
        assert self.engine.sessions.get_rooms('sid-a') == [room_id]


class TestRoomJoin:
    """Test joining rooms"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = self.engine.registry.create('Room', 'sid-a')
        self.engine.socketio.clear_emitted()

    def test_join_unknown_room_sends_not_found(self):
        assert self.engine.registry.join('missing', 'sid-b') is None
        assert self.engine.socketio.emitted == [('roomNotFound', None, 'sid-b')]

    def test_unknown_room_leaves_no_lock_behind(self):
        locks = self.engine.registry.concurrency_control
        for i in range(20):
            self.engine.registry.join(f'nosuch{i}', 'sid-b')
        self.engine.machine.set_name('nosuch0', 'sid-b', 'Bob')

        assert not any(locks.has_room_lock(f'nosuch{i}') for i in range(20))
        assert locks.has_room_lock(self.room_id)

    def test_callback_after_destroy_leaves_no_lock_behind(self):
        self.engine.registry.destroy(self.room_id)

        self.engine.registry._expire_grace(self.room_id, 'sid-a')

        assert not self.engine.registry.concurrency_control.has_room_lock(self.room_id)

    def test_join_appends_player(self):
        room = self.engine.registry.join(self.room_id, 'sid-b')

        assert [p.id for p in room.players] == ['sid-a', 'sid-b']
        assert self.engine.socketio.events('roomJoined', to='sid-b') == [
            {'roomId': self.room_id, 'isCreator': False}
        ]
        players = self.engine.socketio.events('playerUpdate', to=self.room_id)[-1]
        assert [p['id'] for p in players] == ['sid-a', 'sid-b']

    def test_rejoin_does_not_duplicate_player(self):
        self.engine.registry.join(self.room_id, 'sid-b')
        room = self.engine.registry.join(self.room_id, 'sid-b')
        assert [p.id for p in room.players] == ['sid-a', 'sid-b']

    def test_creator_migration_keeps_record(self):
        self.engine.machine.set_name(self.room_id, 'sid-a', 'Alice')
        room = self.engine.registry.get_room(self.room_id)
        room.players[0].score = 7

        self.engine.registry.join(self.room_id, 'sid-a2', claimed_creator_id='sid-a')

        assert room.creator_id == 'sid-a2'
        assert [p.id for p in room.players] == ['sid-a2']
        assert room.players[0].name == 'Alice'
        assert room.players[0].score == 7
        assert self.engine.socketio.events('creatorUpdate', to=self.room_id) == ['sid-a2']
        assert self.engine.socketio.events('roomJoined', to='sid-a2') == [
            {'roomId': self.room_id, 'isCreator': True}
        ]
        assert self.engine.sessions.get_rooms('sid-a') == []
        assert self.engine.sessions.get_rooms('sid-a2') == [self.room_id]

    def test_creator_claim_for_non_creator_is_a_plain_join(self):
        self.engine.registry.join(self.room_id, 'sid-b')
        room = self.engine.registry.join(self.room_id, 'sid-c', claimed_creator_id='sid-b')

        assert room.creator_id == 'sid-a'
        assert [p.id for p in room.players] == ['sid-a', 'sid-b', 'sid-c']
        assert self.engine.socketio.events('creatorUpdate') == []

    def test_migration_carries_round_state(self):
        self.engine.registry.join(self.room_id, 'sid-b')
        self.engine.registry.join(self.room_id, 'sid-c')
        room = start_game(self.engine, self.room_id)
        self.engine.machine.submit(self.room_id, 'sid-a', 'Acorns Are Crunchy')

        self.engine.registry.join(self.room_id, 'sid-a2', claimed_creator_id='sid-a')

        assert room.submissions == {'sid-a2': 'Acorns Are Crunchy'}
        assert room.is_creator('sid-a2')


class TestRoomLeave:
    """Test leaving and room destruction"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)

    def test_leave_removes_player(self):
        assert self.engine.registry.leave(self.room_id, 'sid-c') is True

        room = self.engine.registry.get_room(self.room_id)
        assert [p.id for p in room.players] == ['sid-a', 'sid-b']
        self.engine.socketio.server.leave_room.assert_called_with('sid-c', self.room_id, namespace='/')
        assert self.engine.sessions.get_rooms('sid-c') == []

    def test_leave_by_non_member_is_ignored(self):
        assert self.engine.registry.leave(self.room_id, 'stranger') is False
        assert self.engine.registry.leave('missing', 'sid-a') is False

    def test_creator_leaving_hands_role_to_earliest_human(self):
        self.engine.registry.leave(self.room_id, 'sid-a')

        room = self.engine.registry.get_room(self.room_id)
        assert room.creator_id == 'sid-b'
        assert self.engine.socketio.events('creatorUpdate', to=self.room_id) == ['sid-b']

    def test_creator_role_skips_bots(self):
        room = start_game(self.engine, self.room_id)
        self.engine.registry.leave(self.room_id, 'sid-b')
        self.engine.registry.leave(self.room_id, 'sid-a')

        assert room.creator_id == 'sid-c'

    def test_room_destroyed_when_last_human_leaves(self):
        start_game(self.engine, self.room_id)
        for socket_id in ('sid-a', 'sid-b', 'sid-c'):
            self.engine.registry.leave(self.room_id, socket_id)

        assert self.engine.registry.get_room(self.room_id) is None
        assert self.engine.timers.get_timer(self.room_id) is None
        assert not self.engine.registry.concurrency_control.has_room_lock(self.room_id)

    def test_remove_missing_player_raises(self):
        room = self.engine.registry.get_room(self.room_id)
        with pytest.raises(RegistryError):
            self.engine.registry._remove_player(room, 'ghost')

    def test_removal_listeners_are_notified(self):
        seen = []
        self.engine.registry.add_removal_listener(lambda room, pid: seen.append((room.id, pid)))

        self.engine.registry.leave(self.room_id, 'sid-b')

        assert seen == [(self.room_id, 'sid-b')]


class TestDisconnect:
    """Test session drops and the creator reconnect grace"""

    def setup_method(self):
        self.engine = build_engine()
        self.room_id = create_room_with_players(self.engine)

    def test_non_creator_disconnect_removes_immediately(self):
        assert self.engine.registry.disconnect('sid-b') == [self.room_id]

        room = self.engine.registry.get_room(self.room_id)
        assert [p.id for p in room.players] == ['sid-a', 'sid-c']

    def test_creator_disconnect_is_held_for_grace(self):
        self.engine.registry.disconnect('sid-a')

        room = self.engine.registry.get_room(self.room_id)
        assert room.creator_id == 'sid-a'
        assert room.get_player('sid-a').connected is False
        tasks = self.engine.socketio.delayed_tasks('_expire_grace')
        assert len(tasks) == 1
        assert tasks[0][1][0] == 30

    def test_grace_expiry_removes_creator(self):
        self.engine.registry.disconnect('sid-a')
        self.engine.socketio.run_delayed('_expire_grace')

        room = self.engine.registry.get_room(self.room_id)
        assert not room.has_player('sid-a')
        assert room.creator_id == 'sid-b'

    def test_reconnect_within_grace_keeps_creator(self):
        self.engine.registry.disconnect('sid-a')
        self.engine.registry.join(self.room_id, 'sid-a2', claimed_creator_id='sid-a')
        self.engine.socketio.run_delayed('_expire_grace')

        room = self.engine.registry.get_room(self.room_id)
        assert room.creator_id == 'sid-a2'
        assert room.get_player('sid-a2').connected is True
        assert [p.id for p in room.players] == ['sid-a2', 'sid-b', 'sid-c']

    def test_zero_grace_removes_creator_immediately(self):
        engine = build_engine(reconnect_grace_seconds=0)
        room_id = create_room_with_players(engine)

        engine.registry.disconnect('sid-a')

        assert engine.registry.get_room(room_id).creator_id == 'sid-b'

    def test_disconnect_unknown_session(self):
        assert self.engine.registry.disconnect('nobody') == []

    def test_disconnect_of_sole_player_destroys_room(self):
        engine = build_engine(reconnect_grace_seconds=0)
        room_id = engine.registry.create('solo', 'sid-a')

        engine.registry.disconnect('sid-a')

        assert engine.registry.get_room(room_id) is None


class TestRegistryShutdown:

    def test_clear_destroys_every_room(self):
        engine = build_engine()
        for i in range(3):
            engine.registry.create('r', f'sid-{i}')

        assert engine.registry.clear() == 3
        assert engine.registry.get_room_count() == 0
        assert all(engine.sessions.get_rooms(f'sid-{i}') == [] for i in range(3))
