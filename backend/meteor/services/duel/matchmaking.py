import threading
from typing import List, Optional, Tuple

from .constants import DEFAULT_PLAYER_NAME
from .state import QueueEntry


class MatchmakingService:
    """FIFO waiting line. The two longest-waiting players are paired as soon as possible."""

    def __init__(self):
        self._entries: List[QueueEntry] = []
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        return len(self._entries)

    def join(self, connection_id: str, external_id=None, name: Optional[str] = None) -> Optional[Tuple[QueueEntry, QueueEntry]]:
        entry = QueueEntry(
            connection_id=connection_id,
            external_id=str(external_id) if external_id not in (None, '') else None,
            name=(name or '').strip() or DEFAULT_PLAYER_NAME,
        )
        with self._lock:
            self._remove(connection_id)
            self._entries.append(entry)
            if len(self._entries) >= 2:
                first = self._entries.pop(0)
                second = self._entries.pop(0)
                return first, second
        return None

    def leave(self, connection_id: str) -> bool:
        with self._lock:
            return self._remove(connection_id)

    def _remove(self, connection_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.connection_id != connection_id]
        return len(self._entries) != before
