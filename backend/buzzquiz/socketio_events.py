from flask import current_app, request
from flask_socketio import emit

from buzzquiz import socketio

BUZZER_NAMESPACE = '/buzzer'
GAME_NAMESPACE = '/game'
MASTER_NAMESPACE = '/master'

MAX_CONTROLLERS = 20


def _game():
    return current_app.extensions['buzzquiz']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _as_int(value):
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _index(data):
    return data.get('index') if isinstance(data, dict) else data


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {request.namespace}'})


# ---- hardware bridge ----

def handle_buzzer_register(data):
    controllers = _as_int((data or {}).get('controllers'))
    if controllers is None or not 1 <= controllers <= MAX_CONTROLLERS:
        current_app.logger.warning(f"[buzzer-register-invalid] sid={_get_sid()} controllers={controllers}")
        emit('error', {'message': f'controllers must be between 1 and {MAX_CONTROLLERS}'})
        return
    _game().hardware.register(_get_sid(), controllers)


def handle_buzzer_press(data):
    game = _game()
    if game.hardware.sid != _get_sid():
        current_app.logger.warning(f"[press-unregistered] sid={_get_sid()}")
        emit('error', {'message': 'buzzer is not registered'})
        return
    controller = _as_int((data or {}).get('controller'))
    if controller is None:
        emit('error', {'message': 'controller is required'})
        return
    button = _as_int((data or {}).get('button')) or 0
    game.hardware.dispatch_press(controller, button)


def handle_buzzer_disconnect(reason=None):
    _game().hardware.disconnect(_get_sid())


# ---- screens ----

def handle_game_register(data=None):
    _game().display.register(_get_sid())


def handle_game_disconnect(reason=None):
    _game().display.disconnect(_get_sid())


def handle_master_register(data=None):
    _game().control.register(_get_sid())


def handle_master_disconnect(reason=None):
    _game().control.disconnect(_get_sid())


# Operator commands accepted on the control namespace
MASTER_COMMANDS = {
    'set_activation_step': lambda game, data: game.request_activation_phase(),
    'start_quiz': lambda game, data: game.start_quiz(),
    'start_question': lambda game, data: game.start_question(_index(data)),
    'continue_question': lambda game, data: game.continue_question(_index(data)),
    'next_question': lambda game, data: game.next_question(),
    'set_mode': lambda game, data: game.set_mode(data.get('mode') if isinstance(data, dict) else data),
    'set_team_name': lambda game, data: game.set_team_name(data),
    'validate_answer': lambda game, data: game.validate_answer(data),
    'finish_game': lambda game, data: game.finish_game(),
    'restart_game': lambda game, data: game.restart(),
}


def _command_handler(name, action):
    def handler(data=None):
        game = _game()
        if _get_sid() not in game.control.sids:
            current_app.logger.warning(f"[command-unregistered] command={name} sid={_get_sid()}")
            emit('error', {'message': 'register as control first', 'command': name})
            return None
        try:
            applied = action(game, data)
        except Exception:
            # The session must survive a bad command
            current_app.logger.exception(f"[command-error] command={name}")
            emit('error', {'message': f'{name} failed', 'command': name})
            return None
        return {'command': name, 'applied': applied}
    handler.__name__ = f'handle_{name}'
    return handler


def register_socketio_handlers() -> None:
    """Register Socket.IO handlers for the three actor namespaces."""
    socketio.on_event('connect', handle_connect, namespace=BUZZER_NAMESPACE)
    socketio.on_event('disconnect', handle_buzzer_disconnect, namespace=BUZZER_NAMESPACE)
    socketio.on_event('register', handle_buzzer_register, namespace=BUZZER_NAMESPACE)
    socketio.on_event('press', handle_buzzer_press, namespace=BUZZER_NAMESPACE)

    socketio.on_event('connect', handle_connect, namespace=GAME_NAMESPACE)
    socketio.on_event('disconnect', handle_game_disconnect, namespace=GAME_NAMESPACE)
    socketio.on_event('register', handle_game_register, namespace=GAME_NAMESPACE)

    socketio.on_event('connect', handle_connect, namespace=MASTER_NAMESPACE)
    socketio.on_event('disconnect', handle_master_disconnect, namespace=MASTER_NAMESPACE)
    socketio.on_event('register', handle_master_register, namespace=MASTER_NAMESPACE)
    for name, action in MASTER_COMMANDS.items():
        socketio.on_event(name, _command_handler(name, action), namespace=MASTER_NAMESPACE)
