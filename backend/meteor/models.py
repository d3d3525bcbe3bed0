from meteor import db
import json

# which question types each mode plays with
MODE_TYPES = {
    'meteor': ('text',),
    'sniper': ('single',),
    'boss': ('single', 'multi', 'order', 'text'),
}


def _safe_json(raw, fallback):
    if not raw:
        return fallback
    try:
        value = json.loads(raw) if isinstance(raw, str) else raw
    except ValueError:
        return fallback
    return fallback if value is None else value


class Question(db.Model):
    __tablename__ = 'question_submissions'
    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False, default='text')  # text, single, multi, order
    question = db.Column(db.Text, nullable=False)
    correct_answer = db.Column(db.Text, nullable=True)
    alt_answers_json = db.Column(db.Text, nullable=True)  # JSON-encoded list of strings
    status = db.Column(db.String(16), nullable=False, default='pending', index=True)  # pending, approved, rejected

    @property
    def alt_answers(self):
        alts = _safe_json(self.alt_answers_json, [])
        return [str(a) for a in alts] if isinstance(alts, list) else []

    @alt_answers.setter
    def alt_answers(self, values):
        self.alt_answers_json = json.dumps(list(values or []), ensure_ascii=False)

    @classmethod
    def for_mode(cls, mode, limit=200):
        """Approved questions usable in the given mode, in random order."""
        query = cls.query.filter_by(status='approved')
        types = MODE_TYPES.get(mode)
        if types:
            query = query.filter(cls.type.in_(types))
        return query.order_by(db.func.random()).limit(limit).all()

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'text': self.question,
            'answerText': self.correct_answer or '',
            'altAnswers': self.alt_answers,
        }
