import os

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def _run_inline(func, *args, **kwargs):
    func(*args, **kwargs)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from buzzquiz.actors import SocketBuzzer, SocketGameUI
    from buzzquiz.models import ActorKind
    from buzzquiz.services.games.orchestrator import GameOrchestrator, GameSettings
    from buzzquiz.services.games.scheduler import StageTimer
    from buzzquiz.services.questions import QuestionLoader
    from buzzquiz.socketio_events import (
        register_socketio_handlers, BUZZER_NAMESPACE, GAME_NAMESPACE, MASTER_NAMESPACE,
    )

    # Background work runs inline under TESTING for deterministic control flow
    testing = flask_app.config.get('TESTING', False)
    spawn = _run_inline if testing else socketio.start_background_task
    timer = StageTimer(
        spawn=spawn,
        sleep=socketio.sleep,
        heartbeat_sec=int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0)),
        enabled=not testing or flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS', False),
    )
    flask_app.extensions['buzzquiz'] = GameOrchestrator(
        hardware=SocketBuzzer(socketio, BUZZER_NAMESPACE),
        display=SocketGameUI(socketio, ActorKind.GAME, GAME_NAMESPACE),
        control=SocketGameUI(socketio, ActorKind.MASTER, MASTER_NAMESPACE),
        loader=QuestionLoader(spawn=spawn),
        timer=timer,
        settings=GameSettings.from_config(flask_app.config),
    )

    from buzzquiz.main import main
    flask_app.register_blueprint(main)

    from buzzquiz.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/game')

    register_socketio_handlers()
    flask_app.logger.info(
        f"[startup] questions={flask_app.config.get('QUESTIONS_DIRECTORY')} "
        f"min_teams={flask_app.config.get('MIN_ACTIVE_TEAMS', 2)} testing={testing}"
    )

    @click.command('check-questions')
    @click.argument('directory', required=False)
    @click.option('--mode', default='normal', show_default=True, help='normal or random')
    def check_questions_command(directory, mode):
        """Loads a question bank and reports what the game would see."""
        from buzzquiz.services.questions import QuestionBankError
        location = directory or flask_app.config['QUESTIONS_DIRECTORY']
        try:
            questions = QuestionLoader().load_now(location, mode)
        except QuestionBankError as exc:
            raise click.ClickException(str(exc))
        missing = 0
        for question in questions:
            path = question.media_path
            if path and not os.path.exists(path):
                missing += 1
                click.echo(f'missing media: question {question.id} -> {question.media}')
        click.echo(f'{questions.length()} question(s) in {location}, {missing} missing media file(s)')

    flask_app.cli.add_command(check_questions_command)

    return flask_app

