"""Question sources feeding duel rooms.

Every source answers ``fetch(mode)`` with a :class:`QuestionBatch`. A batch
that is not ok, or is empty, means the room must not be created.
"""
from dataclasses import dataclass, field
from typing import Iterable, List

import requests
from sqlalchemy.exc import SQLAlchemyError

from .state import QuestionRecord, new_token


class QuestionSourceError(Exception):
    pass


@dataclass
class QuestionBatch:
    ok: bool
    questions: List[QuestionRecord] = field(default_factory=list)

    @property
    def usable(self) -> bool:
        return self.ok and bool(self.questions)


def coerce_question(raw: dict) -> QuestionRecord:
    """Build a record from a wire/db dict, tolerating the older key names."""
    if not isinstance(raw, dict):
        raise QuestionSourceError(f"question must be an object, got {type(raw).__name__}")
    qid = raw.get('id')
    if qid is None:
        qid = raw.get('question_id', raw.get('questionId'))
    alts = raw.get('altAnswers')
    return QuestionRecord(
        id=str(qid) if qid is not None else new_token(),
        text=str(raw.get('text') or raw.get('question') or ''),
        answer_text=str(raw.get('answerText') if raw.get('answerText') is not None else ''),
        alt_answers=tuple(str(a) for a in alts) if isinstance(alts, list) else (),
    )


class StaticQuestionSource:
    def __init__(self, questions: Iterable = ()):
        self.questions = [q if isinstance(q, QuestionRecord) else coerce_question(q) for q in questions]

    def fetch(self, mode: str) -> QuestionBatch:
        return QuestionBatch(ok=bool(self.questions), questions=list(self.questions))


class DatabaseQuestionSource:
    """Reads approved questions straight from ``question_submissions``."""

    def __init__(self, app, limit: int = 200):
        self.app = app
        self.limit = limit

    def fetch(self, mode: str) -> QuestionBatch:
        from meteor.models import Question

        with self.app.app_context():
            try:
                rows = Question.for_mode(mode, limit=self.limit)
                questions = [coerce_question(row.to_dict()) for row in rows]
            except (SQLAlchemyError, QuestionSourceError) as exc:
                self.app.logger.error(f"[questions] source=database mode={mode} error={exc}")
                return QuestionBatch(ok=False)
        if not questions:
            self.app.logger.warning(f"[questions] source=database mode={mode} empty")
        return QuestionBatch(ok=True, questions=questions)


class HttpQuestionSource:
    """Pulls questions from a remote ``/api/solo/questions`` endpoint."""

    def __init__(self, base_url: str, timeout: float, logger, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.logger = logger
        self.session = session or requests.Session()

    def fetch(self, mode: str) -> QuestionBatch:
        url = f"{self.base_url}/api/solo/questions"
        try:
            res = self.session.get(
                url,
                params={'mode': mode},
                headers={'cache-control': 'no-store'},
                timeout=self.timeout,
            )
            data = res.json()
            if not isinstance(data, dict):
                raise QuestionSourceError('response is not an object')
            raw = data.get('questions')
            if not data.get('ok') or not isinstance(raw, list):
                self.logger.warning(f"[questions] source=http url={url} mode={mode} not ok")
                return QuestionBatch(ok=False)
            questions = [coerce_question(q) for q in raw]
        except (requests.RequestException, ValueError, QuestionSourceError) as exc:
            self.logger.error(f"[questions] source=http url={url} mode={mode} error={exc}")
            return QuestionBatch(ok=False)
        return QuestionBatch(ok=True, questions=questions)


def build_question_source(app):
    kind = (app.config.get('QUESTION_SOURCE') or 'database').lower()
    if kind == 'http':
        return HttpQuestionSource(
            app.config.get('QUESTION_SOURCE_URL', 'http://localhost:3000'),
            float(app.config.get('QUESTION_FETCH_TIMEOUT_SEC', 5)),
            app.logger,
        )
    if kind == 'database':
        return DatabaseQuestionSource(app, limit=int(app.config.get('QUESTION_BATCH_LIMIT', 200)))
    raise ValueError(f"unknown QUESTION_SOURCE {kind!r}")
