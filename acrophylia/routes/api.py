"""
REST API endpoints for Acrophylia.
"""

import logging

from flask import Blueprint, jsonify

from container import get_container

logger = logging.getLogger(__name__)


def create_api_blueprint():
    """Create the API Blueprint. Services are resolved from the container per request."""
    api = Blueprint('api', __name__)

    def registry():
        return get_container().get('RoomRegistry')

    @api.route('/')
    def index():
        """Plain liveness banner."""
        return 'Acrophylia server is running'

    @api.route('/api/health')
    def health():
        return jsonify({'status': 'ok', 'rooms': registry().get_room_count()})

    @api.route('/api/rooms/<room_id>')
    def room_summary(room_id):
        """Public summary of a live room."""
        room = registry().get_room(room_id.lower())
        if room is None:
            logger.debug(f'Summary requested for unknown room {room_id}')
            return jsonify({'error': 'Room not found', 'room_id': room_id}), 404
        return jsonify(room.summary())

    return api
