from flask import Blueprint, jsonify, current_app

duels = Blueprint('duels', __name__)


def _hub():
    return current_app.extensions['meteor_duel']


@duels.route('/queue', methods=['GET'])
def get_queue():
    return jsonify({'size': _hub().matchmaking.size})


@duels.route('/rooms/<string:room_id>', methods=['GET'])
def get_room(room_id):
    """
    Returns the public state of a duel room, as a spectator would see it.
    """
    room = _hub().rooms.get(room_id)
    if room is None:
        return jsonify({'error': 'Room not found'}), 404
    with room.lock:
        payload = room.to_public()
    return jsonify(payload)
