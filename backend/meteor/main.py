from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Meteor Crash duel server!'})


@main.route('/health')
def health():
    hub = current_app.extensions['meteor_duel']
    return jsonify({
        'ok': True,
        'queue_size': hub.matchmaking.size,
        'rooms': len(hub.rooms),
    })
