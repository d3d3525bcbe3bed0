"""Pure duel mechanics.

Nothing in here touches sockets or timers. Each mutating call returns the
events the transport layer should dispatch ('state' or 'ended'), so tick
and answer handling can be driven directly from tests.
"""
import random
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .constants import (
    ANSWER_COOLDOWN_MS,
    CENTER_MS,
    HIT_PENALTY_MS,
    HP_FIRST_MS,
    HP_SECOND_MS,
    METEOR_COUNT,
    MIN_RETURN_MS,
    MULTI_INCOMING_DRAIN_MS_PER_TICK,
    MULTI_INCOMING_THRESHOLD,
    OPENING_MS,
    SHIP_TO_SHIP_MS,
    TICK_MS,
)
from .state import (
    Meteor,
    Phase,
    PlayerSlot,
    QueueEntry,
    QuestionRecord,
    Room,
    Side,
    new_token,
    normalize,
)

STATE = 'state'
ENDED = 'ended'


@dataclass(frozen=True)
class AnswerResult:
    status: str  # ignored | cooldown | miss | returned
    meteor_id: Optional[str] = None

    @property
    def events(self) -> List[str]:
        return [STATE] if self.status in ('miss', 'returned') else []


def pick_question(questions: Sequence[QuestionRecord], rng=random, exclude: Optional[str] = None) -> Optional[QuestionRecord]:
    if not questions:
        return None
    pool = [q for q in questions if q.id != exclude] if exclude is not None else list(questions)
    if not pool:
        pool = list(questions)
    return rng.choice(pool)


def seed_room(room_id: str, first: QueueEntry, second: QueueEntry,
              questions: Sequence[QuestionRecord], rng=random) -> Room:
    """Build a fresh playing room. `first` takes slot A, `second` slot B."""
    if not questions:
        raise ValueError('cannot seed a room without questions')
    first_target = rng.choice([Side.A, Side.B])

    def _slot(entry: QueueEntry, side: Side) -> PlayerSlot:
        budget = HP_FIRST_MS if side is first_target else HP_SECOND_MS
        return PlayerSlot(name=entry.name, external_id=entry.external_id, hp_ms=budget, max_hp_ms=budget)

    meteors = [
        Meteor(
            id=new_token(),
            target=first_target,
            remaining_ms=OPENING_MS,
            limit_ms=OPENING_MS,
            question=pick_question(questions, rng),
        )
        for _ in range(METEOR_COUNT)
    ]
    return Room(
        room_id=room_id,
        players={Side.A: _slot(first, Side.A), Side.B: _slot(second, Side.B)},
        meteors=meteors,
        questions=list(questions),
        first_target=first_target,
        # display reference: clients render every bar against 7:00
        max_hp_ms=HP_FIRST_MS,
        socket_side_map={first.connection_id: Side.A, second.connection_id: Side.B},
    )


def end_match(room: Room, winner: Optional[Side], now: Optional[float] = None) -> bool:
    """Stop the room. Returns False if it had already ended."""
    if room.phase is Phase.ENDED:
        return False
    # the timer must be dead before anyone hears about the result
    if room.ticker is not None:
        room.ticker.cancel()
    room.phase = Phase.ENDED
    room.winner_side = winner
    room.ended_at = time.time() if now is None else now
    room.message = f"Winner: {room.players[winner].name}" if winner else 'Draw'
    return True


def _finish_if_dead(room: Room, dead: set, now: Optional[float]) -> bool:
    if not dead:
        return False
    if len(dead) == 2:
        end_match(room, None, now)
    else:
        loser = next(iter(dead))
        end_match(room, loser.other, now)
    return True


def advance_tick(room: Room, tick_ms: int = TICK_MS, now: Optional[float] = None) -> List[str]:
    """Run one simulation step and return the events to dispatch."""
    if room.phase is not Phase.PLAYING:
        return []
    room.message = ''

    for meteor in room.meteors:
        meteor.remaining_ms -= tick_ms

    for index, meteor in enumerate(room.meteors):
        if meteor.remaining_ms > 0:
            continue
        target = meteor.target
        slot = room.players[target]
        room.message = f"{slot.name} took a direct hit! -{HIT_PENALTY_MS // 1000}s"
        if slot.damage(HIT_PENALTY_MS):
            # the tick stops here; only a rival also hit to zero this tick turns it into a draw
            rival = room.players[target.other]
            pending = sum(1 for m in room.meteors[index + 1:] if m.remaining_ms <= 0 and m.target is target.other)
            if pending and rival.hp_ms <= pending * HIT_PENALTY_MS:
                rival.hp_ms = 0
                end_match(room, None, now)
            else:
                end_match(room, target.other, now)
            return [ENDED]
        # a missed meteor keeps its question and flies on toward the other ship
        meteor.launch(target.other, CENTER_MS)

    dead = set()
    drain_ms = MULTI_INCOMING_DRAIN_MS_PER_TICK * tick_ms // TICK_MS
    for side, slot in room.players.items():
        if room.incoming(side) >= MULTI_INCOMING_THRESHOLD:
            if slot.damage(drain_ms):
                dead.add(side)

    if _finish_if_dead(room, dead, now):
        return [ENDED]
    return [STATE]


def resolve_answer(room: Room, connection_id: str, text: str, rng=random,
                   now_ms: Optional[float] = None) -> AnswerResult:
    if room.phase is not Phase.PLAYING:
        return AnswerResult('ignored')
    side = room.side_of(connection_id)
    if side is None:
        return AnswerResult('ignored')

    now_ms = time.monotonic() * 1000.0 if now_ms is None else now_ms
    last = room.last_answer_at.get(connection_id)
    if last is not None and now_ms - last < ANSWER_COOLDOWN_MS:
        return AnswerResult('cooldown')
    room.last_answer_at[connection_id] = now_ms

    shooter = room.players[side]
    hit = next(
        (m for m in room.meteors if m.target is side and m.question.accepts(text)),
        None,
    )
    if hit is None:
        room.message = f"{shooter.name}'s shot missed..."
        return AnswerResult('miss')

    next_limit = max(MIN_RETURN_MS, SHIP_TO_SHIP_MS - hit.consumed_ms)
    fresh = pick_question(room.questions, rng, exclude=hit.question.id)
    if fresh is not None:
        hit.question = fresh
    hit.launch(side.other, next_limit)
    room.message = f"{shooter.name} returned it! -> {room.players[side.other].name}"
    return AnswerResult('returned', hit.id)


def resolve_side(room: Room, external_id=None, name=None) -> Optional[Side]:
    """Which slot a (re)joining player belongs to: external id first, then name."""
    if external_id is not None and str(external_id) != '':
        wanted = str(external_id)
        for side, slot in room.players.items():
            if slot.external_id is not None and str(slot.external_id) == wanted:
                return side
    wanted_name = normalize(name)
    if wanted_name:
        named = [side for side, slot in room.players.items() if normalize(slot.name) == wanted_name]
        # names are not unique; a name shared by both slots identifies nobody
        if len(named) == 1:
            return named[0]
    return None


def rebind(room: Room, connection_id: str, external_id=None, name=None) -> Optional[Side]:
    """Bind a connection to its slot, evicting whichever connection held it before."""
    current = room.side_of(connection_id)
    if current is not None:
        return current
    side = resolve_side(room, external_id, name)
    if side is None:
        return None
    # last writer wins: a refreshed page replaces the stale socket
    for sid in [sid for sid, bound in room.socket_side_map.items() if bound is side]:
        del room.socket_side_map[sid]
        room.last_answer_at.pop(sid, None)
    room.socket_side_map[connection_id] = side
    return side


def unbind(room: Room, connection_id: str) -> bool:
    room.last_answer_at.pop(connection_id, None)
    return room.socket_side_map.pop(connection_id, None) is not None
