from .constants import TICK_MS
from .engine import ENDED, advance_tick
from .state import Room


class RoomTicker:
    """Fixed-interval simulation loop for one room, run as a Socket.IO background task."""

    def __init__(self, socketio, room: Room, broadcaster, logger, tick_ms: int = TICK_MS):
        self.socketio = socketio
        self.room = room
        self.broadcaster = broadcaster
        self.logger = logger
        self.tick_ms = tick_ms
        self.cancelled = False

    def start(self) -> None:
        self.room.ticker = self
        self.logger.info(f"[tick-start] room={self.room.room_id} interval={self.tick_ms}ms")
        self.socketio.start_background_task(self._run)

    def cancel(self) -> None:
        self.cancelled = True

    def _run(self) -> None:
        room = self.room
        while not self.cancelled:
            self.socketio.sleep(self.tick_ms / 1000.0)
            with room.lock:
                if self.cancelled or not room.is_playing:
                    break
                events = advance_tick(room, self.tick_ms)
                self.broadcaster.dispatch(room, events)
            if ENDED in events:
                winner = room.winner_side.value if room.winner_side else 'draw'
                self.logger.info(f"[room-ended] room={room.room_id} winner={winner}")
        self.logger.info(f"[tick-stop] room={room.room_id}")
