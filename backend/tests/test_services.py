import logging

import pytest
import requests
from sqlalchemy.exc import SQLAlchemyError

from meteor.services.duel.broadcast import Broadcaster
from meteor.services.duel.constants import TICK_MS
from meteor.services.duel.hub import DuelHub
from meteor.services.duel.matchmaking import MatchmakingService
from meteor.services.duel.questions import (
    HttpQuestionSource,
    StaticQuestionSource,
    build_question_source,
    coerce_question,
    DatabaseQuestionSource,
)
from meteor.services.duel.registry import RoomCreationError, RoomRegistry
from meteor.services.duel.state import Phase, Side
from meteor.services.duel.ticker import RoomTicker

log = logging.getLogger('tests.duel')


class FakeSocketIO:
    def __init__(self):
        self.emitted = []
        self.tasks = []

    def emit(self, event, data=None, to=None, namespace=None):
        self.emitted.append((event, data, to))

    def start_background_task(self, target, *args):
        self.tasks.append((target, args))

    def sleep(self, seconds):
        pass

    def events(self, name):
        return [(data, to) for event, data, to in self.emitted if event == name]


class FakeResponse:
    def __init__(self, payload=None, exc=None):
        self.payload = payload
        self.exc = exc

    def json(self):
        if self.exc:
            raise self.exc
        return self.payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc:
            raise self.exc
        return self.response


# ---- matchmaking ----

def test_queue_pairs_two_oldest_in_order():
    mm = MatchmakingService()
    assert mm.join('s1', None, 'One') is None
    first, second = mm.join('s2', 7, 'Two')
    assert (first.connection_id, second.connection_id) == ('s1', 's2')
    assert second.external_id == '7'
    assert mm.size == 0


def test_queue_rejoin_replaces_stale_entry():
    mm = MatchmakingService()
    mm.join('s1', None, 'One')
    assert mm.join('s1', None, 'One again') is None
    assert mm.size == 1


def test_queue_leave_and_default_name():
    mm = MatchmakingService()
    mm.join('s1', '', '   ')
    assert mm.size == 1
    assert mm.leave('s1') is True
    assert mm.size == 0
    assert mm.leave('s1') is False
    assert mm.leave('never') is False
    mm.join('s2')
    pair = mm.join('s3', None, 'Three')
    assert pair[0].name == 'Player'
    assert pair[0].external_id is None


# ---- registry ----

def test_registry_rejects_unusable_batch(question_bank, entries):
    registry = RoomRegistry(StaticQuestionSource([]), log)
    with pytest.raises(RoomCreationError):
        registry.create_room(*entries)
    assert len(registry) == 0


def test_registry_creates_and_evicts_ended_rooms(question_bank, entries):
    registry = RoomRegistry(StaticQuestionSource(question_bank), log, ttl_sec=60)
    room = registry.create_room(*entries)
    assert room.room_id in registry
    assert registry.get(room.room_id) is room
    assert registry.get('') is None

    room.phase = Phase.ENDED
    room.ended_at = 1000.0
    assert registry.evict_expired(now=1059.0) == []
    assert registry.evict_expired(now=1060.0) == [room.room_id]
    assert room.room_id not in registry


def test_registry_unbinds_connection_everywhere(question_bank, entries):
    registry = RoomRegistry(StaticQuestionSource(question_bank), log)
    room = registry.create_room(*entries)
    assert registry.unbind_everywhere('sid-a') == [room.room_id]
    assert room.side_of('sid-a') is None
    assert registry.unbind_everywhere('sid-a') == []


# ---- question sources ----

def test_coerce_question_accepts_legacy_keys():
    q = coerce_question({'question_id': 5, 'question': 'Who?', 'answerText': 'Usopp', 'altAnswers': ['Sogeking']})
    assert (q.id, q.text, q.answer_text, q.alt_answers) == ('5', 'Who?', 'Usopp', ('Sogeking',))
    generated = coerce_question({'text': 'No id', 'altAnswers': 'oops'})
    assert generated.id
    assert generated.alt_answers == ()
    assert generated.answer_text == ''


def test_http_source_parses_batch():
    session = FakeSession(FakeResponse({'ok': True, 'questions': [{'id': 1, 'text': 'Q', 'answerText': 'A'}]}))
    source = HttpQuestionSource('http://quiz.local/', 2.5, log, session=session)
    batch = source.fetch('meteor')
    assert batch.usable
    assert batch.questions[0].answer_text == 'A'
    url, kwargs = session.calls[0]
    assert url == 'http://quiz.local/api/solo/questions'
    assert kwargs['params'] == {'mode': 'meteor'}
    assert kwargs['timeout'] == 2.5


@pytest.mark.parametrize('session', [
    FakeSession(exc=requests.Timeout('slow')),
    FakeSession(FakeResponse(exc=ValueError('not json'))),
    FakeSession(FakeResponse({'ok': False})),
    FakeSession(FakeResponse(['not', 'a', 'dict'])),
    FakeSession(FakeResponse({'ok': True, 'questions': ['bad']})),
])
def test_http_source_failures_are_not_ok(session):
    batch = HttpQuestionSource('http://quiz.local', 1, log, session=session).fetch('meteor')
    assert batch.ok is False
    assert not batch.usable


def test_http_source_empty_list_is_unusable():
    session = FakeSession(FakeResponse({'ok': True, 'questions': []}))
    batch = HttpQuestionSource('http://quiz.local', 1, log, session=session).fetch('meteor')
    assert batch.ok is True
    assert not batch.usable


def test_database_source_reads_approved_text(flask_app, seeded_questions):
    batch = DatabaseQuestionSource(flask_app).fetch('meteor')
    assert batch.usable
    assert {q.answer_text for q in batch.questions} == {'Luffy', 'Zoro', 'Nami', 'Sanji'}


def test_database_source_failure_is_not_ok(flask_app, seeded_questions, monkeypatch):
    from meteor.models import Question

    def broken(*args, **kwargs):
        raise SQLAlchemyError('database is down')

    monkeypatch.setattr(Question, 'for_mode', broken)
    batch = DatabaseQuestionSource(flask_app).fetch('meteor')
    assert batch.ok is False
    assert not batch.usable


def test_build_question_source_follows_config(flask_app):
    assert isinstance(build_question_source(flask_app), DatabaseQuestionSource)
    flask_app.config['QUESTION_SOURCE'] = 'http'
    assert isinstance(build_question_source(flask_app), HttpQuestionSource)
    flask_app.config['QUESTION_SOURCE'] = 'carrier-pigeon'
    with pytest.raises(ValueError):
        build_question_source(flask_app)


# ---- ticker / hub ----

def test_ticker_runs_until_the_match_ends(question_bank, entries):
    fake = FakeSocketIO()
    registry = RoomRegistry(StaticQuestionSource(question_bank), log)
    room = registry.create_room(*entries)
    ticker = RoomTicker(fake, room, Broadcaster(fake), log)
    ticker.start()
    assert room.ticker is ticker
    assert len(fake.tasks) == 1

    # second target has no incoming; make the first target bleed out on tick one
    room.players[room.first_target].hp_ms = TICK_MS
    target, args = fake.tasks[0]
    target(*args)

    assert ticker.cancelled is True
    assert room.phase is Phase.ENDED
    assert room.winner_side is room.first_target.other
    ended = fake.events('room:ended')
    assert sorted(to for _, to in ended) == ['sid-a', 'sid-b']
    assert {data['youSide'] for data, _ in ended} == {'A', 'B'}
    assert fake.events('room:state') == []


def test_ticker_stops_when_cancelled(question_bank, entries):
    fake = FakeSocketIO()
    room = RoomRegistry(StaticQuestionSource(question_bank), log).create_room(*entries)
    ticker = RoomTicker(fake, room, Broadcaster(fake), log)
    ticker.cancel()
    ticker._run()
    assert fake.emitted == []
    assert all(m.remaining_ms == m.limit_ms for m in room.meteors)


def test_hub_match_flow_with_fake_transport(question_bank):
    fake = FakeSocketIO()
    hub = DuelHub(fake, StaticQuestionSource(question_bank), log, tick_enabled=True)

    assert hub.join_queue('s1', None, 'Alice') is None
    room = hub.join_queue('s2', 'x9', 'Bob')
    assert room is not None
    assert [d['size'] for d, _ in fake.events('queue:updated')] == [1, 0, 0]
    assert sorted(to for _, to in fake.events('room:matched')) == ['s1', 's2']
    assert len(fake.tasks) == 1
    assert room.ticker is not None

    assert hub.join_room('s3', room.room_id, external_id='x9') is Side.B
    assert room.side_of('s2') is None

    result = hub.answer('s1', room.room_id, 'wrong')
    assert result.status == 'miss'
    assert hub.answer('s1', 'missing', 'wrong') is None

    hub.disconnect('s1')
    assert room.side_of('s1') is None


def test_hub_reports_failed_match(entries):
    fake = FakeSocketIO()
    hub = DuelHub(fake, StaticQuestionSource([]), log)
    assert hub.start_match(*entries) is None
    matched = fake.events('room:matched')
    assert len(matched) == 2
    assert all(data['roomId'] == '' and data['error'] for data, _ in matched)
    assert len(hub.rooms) == 0
