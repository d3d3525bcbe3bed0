from typing import Iterable, Optional

from .engine import ENDED, STATE
from .state import Room

NAMESPACE = '/ws'


class Broadcaster:
    """Pushes queue and room payloads to Socket.IO clients."""

    def __init__(self, socketio, namespace: str = NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace

    def queue_size(self, size: int) -> None:
        self.socketio.emit('queue:updated', {'size': size}, namespace=self.namespace)

    def matched(self, connection_ids: Iterable[str], room_id: str, error: Optional[str] = None) -> None:
        payload = {'roomId': room_id}
        if error:
            payload['error'] = error
        for sid in connection_ids:
            self.socketio.emit('room:matched', payload, to=sid, namespace=self.namespace)

    def room(self, room: Room, event: str = 'room:state') -> None:
        # same payload for everyone except youSide
        for sid, side in list(room.socket_side_map.items()):
            self.socketio.emit(event, room.to_public(side), to=sid, namespace=self.namespace)

    def dispatch(self, room: Room, events: Iterable[str]) -> None:
        for event in events:
            if event == STATE:
                self.room(room, 'room:state')
            elif event == ENDED:
                self.room(room, 'room:ended')
