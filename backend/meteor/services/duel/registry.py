import random
import threading
import time
from typing import Dict, List, Optional

from .engine import seed_room, unbind
from .state import QueueEntry, Room, new_token


class RoomCreationError(Exception):
    pass


class RoomRegistry:
    """Process-wide table of duel rooms keyed by room id."""

    def __init__(self, question_source, logger, mode: str = 'meteor', ttl_sec: float = 300, rng=None):
        self.question_source = question_source
        self.logger = logger
        self.mode = mode
        self.ttl_sec = ttl_sec
        self.rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        return room_id in self._rooms

    def get(self, room_id) -> Optional[Room]:
        if not room_id:
            return None
        with self._lock:
            return self._rooms.get(room_id)

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def create_room(self, first: QueueEntry, second: QueueEntry) -> Room:
        """Fetch questions and register a playing room, or raise RoomCreationError."""
        # fetch happens outside the table lock; it may hit the network
        batch = self.question_source.fetch(self.mode)
        if not batch.usable:
            self.logger.warning(
                f"[room-abort] players={first.connection_id},{second.connection_id} ok={batch.ok} questions={len(batch.questions)}"
            )
            raise RoomCreationError('Failed to fetch questions')

        self.evict_expired()
        room_id = f"meteor_{new_token()}"
        room = seed_room(room_id, first, second, batch.questions, self.rng)
        with self._lock:
            self._rooms[room_id] = room
        self.logger.info(f"[room-created] room={room_id} first_target={room.first_target.value} questions={len(batch.questions)}")
        return room

    def evict_expired(self, now: Optional[float] = None) -> List[str]:
        now = time.time() if now is None else now
        with self._lock:
            expired = [
                rid for rid, room in self._rooms.items()
                if room.ended_at is not None and now - room.ended_at >= self.ttl_sec
            ]
            for rid in expired:
                del self._rooms[rid]
        if expired:
            self.logger.info(f"[room-evict] rooms={','.join(expired)}")
        return expired

    def unbind_everywhere(self, connection_id: str) -> List[str]:
        unbound = []
        for room in self.rooms():
            with room.lock:
                if unbind(room, connection_id):
                    unbound.append(room.room_id)
        for rid in unbound:
            self.logger.info(f"[unbind] room={rid} sid={connection_id}")
        return unbound
