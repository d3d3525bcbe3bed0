import enum
import secrets
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional


class Side(str, enum.Enum):
    A = 'A'
    B = 'B'

    @property
    def other(self) -> 'Side':
        return Side.B if self is Side.A else Side.A


class Phase(str, enum.Enum):
    PLAYING = 'playing'
    ENDED = 'ended'


def normalize(value) -> str:
    """Trim, drop all whitespace and case-fold for answer/name comparison."""
    if value is None:
        return ''
    return ''.join(str(value).split()).casefold()


def new_token(length: int = 8) -> str:
    return secrets.token_hex(length // 2)


@dataclass(frozen=True)
class QuestionRecord:
    id: str
    text: str
    answer_text: str
    alt_answers: tuple = ()

    def accepts(self, submitted: str) -> bool:
        wanted = normalize(submitted)
        if not wanted:
            return False
        if normalize(self.answer_text) == wanted:
            return True
        return any(normalize(alt) == wanted for alt in self.alt_answers)


@dataclass
class PlayerSlot:
    name: str
    external_id: Optional[str]
    hp_ms: int
    max_hp_ms: int

    def damage(self, amount_ms: int) -> bool:
        """Apply a loss floored at zero; True when the slot is out of time."""
        self.hp_ms = max(0, self.hp_ms - amount_ms)
        return self.hp_ms <= 0

    def to_public(self) -> dict:
        return {
            'name': self.name,
            'externalId': self.external_id,
            'hpMs': self.hp_ms,
            'maxHpMs': self.max_hp_ms,
        }


@dataclass
class Meteor:
    id: str
    target: Side
    remaining_ms: int
    limit_ms: int
    question: QuestionRecord

    @property
    def consumed_ms(self) -> int:
        return max(0, self.limit_ms - self.remaining_ms)

    def launch(self, target: Side, limit_ms: int) -> None:
        self.target = target
        self.limit_ms = limit_ms
        self.remaining_ms = limit_ms

    def to_public(self) -> dict:
        # answer fields never go on the wire
        return {
            'id': self.id,
            'target': self.target.value,
            'remainingMs': self.remaining_ms,
            'limitMs': self.limit_ms,
            'text': self.question.text,
        }


@dataclass
class Room:
    room_id: str
    players: Dict[Side, PlayerSlot]
    meteors: List[Meteor]
    questions: List[QuestionRecord]
    first_target: Side
    max_hp_ms: int
    phase: Phase = Phase.PLAYING
    winner_side: Optional[Side] = None
    message: str = ''
    socket_side_map: Dict[str, Side] = field(default_factory=dict)
    last_answer_at: Dict[str, float] = field(default_factory=dict)
    ended_at: Optional[float] = None
    ticker: Optional[object] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def is_playing(self) -> bool:
        return self.phase is Phase.PLAYING

    def side_of(self, connection_id: str) -> Optional[Side]:
        return self.socket_side_map.get(connection_id)

    def incoming(self, side: Side) -> int:
        return sum(1 for m in self.meteors if m.target is side)

    def to_public(self, you_side: Optional[Side] = None) -> dict:
        return {
            'phase': self.phase.value,
            'roomId': self.room_id,
            'maxHpMs': self.max_hp_ms,
            'players': {side.value: slot.to_public() for side, slot in self.players.items()},
            'meteors': [m.to_public() for m in self.meteors],
            'youSide': you_side.value if you_side else None,
            'message': self.message or '',
            'winnerSide': self.winner_side.value if self.winner_side else None,
        }


@dataclass(frozen=True)
class QueueEntry:
    connection_id: str
    external_id: Optional[str]
    name: str
