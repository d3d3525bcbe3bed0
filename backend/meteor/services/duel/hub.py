import random
from typing import Optional

from .broadcast import Broadcaster
from .engine import resolve_answer, rebind
from .matchmaking import MatchmakingService
from .registry import RoomCreationError, RoomRegistry
from .state import QueueEntry, Room, Side
from .ticker import RoomTicker


class DuelHub:
    """Entry point the socket handlers talk to.

    Owns the matchmaking queue and room table for the process and decides
    what gets pushed to whom after each event.
    """

    def __init__(self, socketio, question_source, logger, mode: str = 'meteor',
                 room_ttl_sec: float = 300, tick_enabled: bool = True, rng=None):
        self.socketio = socketio
        self.logger = logger
        self.rng = rng or random.Random()
        self.matchmaking = MatchmakingService()
        self.rooms = RoomRegistry(question_source, logger, mode=mode, ttl_sec=room_ttl_sec, rng=self.rng)
        self.broadcaster = Broadcaster(socketio)
        self.tick_enabled = tick_enabled

    @classmethod
    def from_app(cls, app, socketio, question_source):
        cfg = app.config
        return cls(
            socketio,
            question_source,
            app.logger,
            mode=cfg.get('QUESTION_MODE', 'meteor'),
            room_ttl_sec=float(cfg.get('ROOM_TTL_SEC', 300)),
            tick_enabled=not cfg.get('TESTING') or bool(cfg.get('ENABLE_TICKER_IN_TESTS')),
        )

    # ---- queue ----

    def join_queue(self, connection_id: str, external_id=None, name: Optional[str] = None) -> Optional[Room]:
        pair = self.matchmaking.join(connection_id, external_id, name)
        self.broadcaster.queue_size(self.matchmaking.size)
        if not pair:
            return None
        self.broadcaster.queue_size(self.matchmaking.size)
        return self.start_match(*pair)

    def leave_queue(self, connection_id: str) -> bool:
        removed = self.matchmaking.leave(connection_id)
        self.broadcaster.queue_size(self.matchmaking.size)
        return removed

    def start_match(self, first: QueueEntry, second: QueueEntry) -> Optional[Room]:
        sids = [first.connection_id, second.connection_id]
        try:
            room = self.rooms.create_room(first, second)
        except RoomCreationError as exc:
            self.broadcaster.matched(sids, '', error=str(exc))
            return None
        self.broadcaster.matched(sids, room.room_id)
        with room.lock:
            if self.tick_enabled:
                RoomTicker(self.socketio, room, self.broadcaster, self.logger).start()
            self.broadcaster.room(room)
        return room

    # ---- room ----

    def join_room(self, connection_id: str, room_id: str, external_id=None, name=None) -> Optional[Side]:
        room = self.rooms.get(room_id)
        if room is None:
            return None
        with room.lock:
            already = room.side_of(connection_id)
            side = rebind(room, connection_id, external_id, name)
            if side is None:
                return None
            if already is None:
                self.logger.info(f"[rebind] room={room_id} side={side.value} sid={connection_id}")
            self.broadcaster.room(room, 'room:state' if room.is_playing else 'room:ended')
        return side

    def answer(self, connection_id: str, room_id: str, text: str):
        room = self.rooms.get(room_id)
        if room is None:
            return None
        with room.lock:
            result = resolve_answer(room, connection_id, text, self.rng)
            self.broadcaster.dispatch(room, result.events)
        return result

    def disconnect(self, connection_id: str) -> None:
        if self.matchmaking.leave(connection_id):
            self.broadcaster.queue_size(self.matchmaking.size)
        self.rooms.unbind_everywhere(connection_id)
