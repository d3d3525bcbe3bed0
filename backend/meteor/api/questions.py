from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from meteor.models import Question

questions = Blueprint('questions', __name__)


@questions.route('/questions', methods=['GET'])
def list_questions():
    """
    Returns a random batch of approved questions for a play mode.
    """
    mode = request.args.get('mode') or 'meteor'
    limit = int(current_app.config.get('QUESTION_BATCH_LIMIT', 200))
    try:
        rows = Question.for_mode(mode, limit=limit)
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[api/solo/questions] mode={mode} error={exc}")
        return jsonify({'ok': False, 'message': 'Failed to load questions'}), 500
    return jsonify({'ok': True, 'questions': [q.to_dict() for q in rows]}), 200
