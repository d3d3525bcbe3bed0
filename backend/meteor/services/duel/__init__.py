"""Meteor Crash duel services: matchmaking, rooms and the tick loop.

The mechanics in ``engine`` are pure and transport-free; ``hub`` wires
them to Socket.IO for the handlers in ``meteor.socketio_events``.
"""

from .hub import DuelHub
from .questions import QuestionBatch, QuestionSourceError, build_question_source
from .registry import RoomCreationError

__all__ = ['DuelHub', 'QuestionBatch', 'QuestionSourceError', 'RoomCreationError', 'build_question_source']
