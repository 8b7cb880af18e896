from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    game = current_app.extensions['buzzquiz']
    return jsonify({
        'message': 'Welcome to the buzzquiz game server!',
        'actors': game.readiness.presence.to_dict(),
        'started': game.started,
    })
