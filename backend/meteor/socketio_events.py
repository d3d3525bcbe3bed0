from flask import current_app, request
from flask_socketio import emit
from meteor import socketio
from meteor.services.duel.broadcast import NAMESPACE


def _hub():
    return current_app.extensions['meteor_duel']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _external_id(data):
    value = data.get('externalId')
    if value is None:
        value = data.get('userId')
    return value


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*_args):
    _hub().disconnect(_get_sid())


def handle_queue_join(data):
    data = data or {}
    _hub().join_queue(_get_sid(), _external_id(data), data.get('name'))


def handle_queue_leave(data=None):
    _hub().leave_queue(_get_sid())


def handle_room_join(data):
    data = data or {}
    room_id = data.get('roomId')
    if not room_id:
        emit('error', {'message': 'roomId is required'})
        return
    # unknown room or unknown player: stay silent, the client shows "not your match"
    _hub().join_room(_get_sid(), room_id, _external_id(data), data.get('name'))


def handle_room_answer(data):
    data = data or {}
    room_id = data.get('roomId')
    if not room_id:
        emit('error', {'message': 'roomId is required'})
        return
    _hub().answer(_get_sid(), room_id, str(data.get('text') or ''))


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register the duel Socket.IO handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('queue:join', handle_queue_join, namespace=NAMESPACE)
    socketio.on_event('queue:leave', handle_queue_leave, namespace=NAMESPACE)
    socketio.on_event('room:join', handle_room_join, namespace=NAMESPACE)
    socketio.on_event('room:answer', handle_room_answer, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
