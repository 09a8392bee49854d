"""
Socket.IO event handlers for Acrophylia.

Registers every client event with the router, plus the connect and
disconnect handlers which bypass it.
"""

import logging

from flask import request

from container import get_container
from .socket_event_router import setup_router
from .room_connection_handler import RoomConnectionHandler
from .game_action_handler import GameActionHandler

logger = logging.getLogger(__name__)


def register_socket_handlers(socketio_instance):
    """Register all socket handlers with the SocketIO instance."""
    router = setup_router(socketio_instance)

    room_handler = RoomConnectionHandler()
    game_handler = GameActionHandler()

    # Connection lifecycle events don't go through the router
    socketio_instance.on_event('connect', handle_connect)
    socketio_instance.on_event('disconnect', handle_disconnect)

    # Room membership and chat
    router.register_route('createRoom', room_handler.handle_create_room)
    router.register_route('joinRoom', room_handler.handle_join_room)
    router.register_route('leaveRoom', room_handler.handle_leave_room)
    router.register_route('setName', room_handler.handle_set_name)
    router.register_route('sendMessage', room_handler.handle_send_message)

    # Game actions
    router.register_route('startGame', game_handler.handle_start_game)
    router.register_route('resetGame', game_handler.handle_reset_game)
    router.register_route('submitAcronym', game_handler.handle_submit_acronym)
    router.register_route('vote', game_handler.handle_vote)
    router.register_route('requestResults', game_handler.handle_request_results)

    router.register_with_socketio()

    logger.info(f"Registered {len(router.get_registered_events())} socket event handlers")
    return router


def handle_connect(auth=None):
    logger.info(f'Client connected: {request.sid}')  # type: ignore[attr-defined]


def handle_disconnect(reason=None):
    """Handle client disconnection: release or hold the session's players."""
    registry = get_container().get('RoomRegistry')
    socket_id = request.sid  # type: ignore[attr-defined]

    logger.info(f'Client disconnected: {socket_id}')
    try:
        room_ids = registry.disconnect(socket_id)
    except Exception as e:
        logger.error(f'Error handling disconnect for {socket_id}: {e}')
        return
    if room_ids:
        logger.info(f'Session {socket_id} left rooms {room_ids}')
