from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

SAMPLE_QUESTIONS = [
    ('Who is the captain of the Straw Hat Pirates?', 'Monkey D. Luffy', ['Luffy', 'ルフィ']),
    ('What is the name of the Straw Hats\' first ship?', 'Going Merry', ['Merry', 'ゴーイングメリー号']),
    ('Which Devil Fruit did Luffy eat?', 'Gomu Gomu no Mi', ['Gum-Gum Fruit', 'ゴムゴムの実']),
    ('Who is the swordsman of the Straw Hat Pirates?', 'Roronoa Zoro', ['Zoro', 'ゾロ']),
    ('What is the name of the Straw Hats\' second ship?', 'Thousand Sunny', ['Sunny', 'サウザンドサニー号']),
]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from meteor.main import main
    flask_app.register_blueprint(main)

    from meteor.api.questions import questions
    flask_app.register_blueprint(questions, url_prefix='/api/solo')

    from meteor.api.duels import duels
    flask_app.register_blueprint(duels, url_prefix='/api/meteor')

    # One hub per process: the queue and room table live here
    from meteor.services.duel import DuelHub, build_question_source
    flask_app.extensions['meteor_duel'] = DuelHub.from_app(flask_app, socketio, build_question_source(flask_app))

    from meteor.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('seed-questions')
    def seed_questions_command():
        """Creates tables and seeds a few approved meteor questions."""
        from meteor.models import Question
        with flask_app.app_context():
            db.create_all()
            for text, answer, alts in SAMPLE_QUESTIONS:
                if Question.query.filter_by(question=text).first():
                    continue
                q = Question(type='text', question=text, correct_answer=answer, status='approved')
                q.alt_answers = alts
                db.session.add(q)
            db.session.commit()
            print('Meteor questions have been seeded!')

    flask_app.cli.add_command(seed_questions_command)

    return flask_app
