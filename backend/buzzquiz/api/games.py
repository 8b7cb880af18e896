from flask import Blueprint, current_app, jsonify

games = Blueprint('games', __name__)


@games.route('/state', methods=['GET'])
def get_game_state():
    """
    Returns a read-only snapshot of the session for dashboards and debugging.
    """
    game = current_app.extensions['buzzquiz']
    payload = game.snapshot()
    payload['durations'] = {
        'team_activation': game.settings.team_activation_duration_sec,
    }
    return jsonify(payload)
