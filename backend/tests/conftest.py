import os
import sys
import random
import pytest

# Ensure the backend root (containing the `meteor` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from meteor import create_app, db, socketio
from meteor.services.duel.state import QueueEntry, QuestionRecord


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    QUESTION_SOURCE = 'database'
    QUESTION_MODE = 'meteor'
    QUESTION_BATCH_LIMIT = 200
    ROOM_TTL_SEC = 300


QUESTION_ROWS = [
    ('Captain of the Straw Hats?', 'Luffy', ['Monkey D. Luffy', 'ルフィ']),
    ('Swordsman of the Straw Hats?', 'Zoro', ['Roronoa Zoro']),
    ('Navigator of the Straw Hats?', 'Nami', []),
    ('Cook of the Straw Hats?', 'Sanji', ['Vinsmoke Sanji']),
]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import meteor.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def seeded_questions(flask_app):
    from meteor.models import Question
    rows = []
    for text, answer, alts in QUESTION_ROWS:
        q = Question(type='text', question=text, correct_answer=answer, status='approved')
        q.alt_answers = alts
        db.session.add(q)
        rows.append(q)
    # noise that the meteor mode must never pick up
    db.session.add(Question(type='single', question='Pick one', correct_answer='0', status='approved'))
    db.session.add(Question(type='text', question='Still pending', correct_answer='x', status='pending'))
    db.session.commit()
    return rows


@pytest.fixture()
def hub(flask_app):
    return flask_app.extensions['meteor_duel']


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def sio_pair(flask_app):
    clients = [socketio.test_client(flask_app, namespace='/ws') for _ in range(2)]
    yield clients
    for c in clients:
        if c.is_connected('/ws'):
            c.disconnect(namespace='/ws')


@pytest.fixture()
def question_bank():
    return [QuestionRecord(id=str(i), text=text, answer_text=answer, alt_answers=tuple(alts))
            for i, (text, answer, alts) in enumerate(QUESTION_ROWS, start=1)]


@pytest.fixture()
def entries():
    return (
        QueueEntry(connection_id='sid-a', external_id='101', name='Alice'),
        QueueEntry(connection_id='sid-b', external_id=None, name='Bob'),
    )


@pytest.fixture()
def rng():
    return random.Random(7)
