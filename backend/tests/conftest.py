import json
import os
import sys
import pytest

# Ensure the backend root (containing the `buzzquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from buzzquiz import create_app, socketio
from buzzquiz.actors.base import Actor, SCREEN_CALLS
from buzzquiz.models import ActorKind
from buzzquiz.services.games.orchestrator import GameOrchestrator, GameSettings
from buzzquiz.services.games.scheduler import StageTimer
from buzzquiz.services.questions import Question, QuestionList


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    QUESTIONS_DIRECTORY = './questions'
    TEAM_ACTIVATION_DURATION_SEC = 60
    MIN_ACTIVE_TEAMS = 2


# ---- in-memory actors ----

class FakeScreen(Actor):
    """Records every call the orchestrator makes on a screen."""

    RECORDED = SCREEN_CALLS | {'report_condition', 'reject_command'}

    def __init__(self, kind):
        super().__init__(kind)
        self.calls = []

    def __getattr__(self, name):
        if name not in FakeScreen.RECORDED:
            raise AttributeError(name)

        def record(*args):
            self.calls.append((name, args))
        return record

    def events(self, name):
        return [args for call, args in self.calls if call == name]

    def names(self):
        return [call for call, _ in self.calls]

    def clear(self):
        self.calls = []


class FakeBuzzer(Actor):
    def __init__(self, controllers=4):
        super().__init__(ActorKind.BUZZER)
        self.controllers = controllers
        self.lights = {}
        self.rejected = []
        self.handlers = []

    def controller_count(self):
        return self.controllers

    def light_on(self, index):
        self.lights[index] = True

    def light_off(self, index):
        self.lights[index] = False

    def on_press(self, handler):
        self.handlers.append(handler)

        def unsubscribe():
            if handler in self.handlers:
                self.handlers.remove(handler)
        return unsubscribe

    def press(self, controller, button=0):
        for handler in list(self.handlers):
            handler(controller, button)

    def reject_press(self, controller, code, message=''):
        self.rejected.append((controller, code))


class FakeLoader:
    """Question source answering right away, unless ``deferred`` is set."""

    def __init__(self, questions=None):
        self.questions = questions
        self.error = None
        self.deferred = False
        self.requests = []

    def load(self, location, mode, callback, errback=None):
        self.requests.append((location, mode, callback, errback))
        if not self.deferred:
            self.deliver()

    def deliver(self, index=-1):
        location, mode, callback, errback = self.requests[index]
        if self.error is not None:
            errback(self.error)
        else:
            callback(self.questions)


def make_questions(count=3):
    return QuestionList([
        Question(id=str(i), kind='text', text=f'Question {i}', answer=f'Answer {i}')
        for i in range(count)
    ])


# ---- orchestrator fixtures ----

@pytest.fixture()
def spawned():
    return []


@pytest.fixture()
def timer(spawned):
    return StageTimer(
        spawn=lambda func, *args: spawned.append((func, args)),
        sleep=lambda seconds: None,
    )


@pytest.fixture()
def buzzer():
    return FakeBuzzer(controllers=4)


@pytest.fixture()
def display():
    return FakeScreen(ActorKind.GAME)


@pytest.fixture()
def control():
    return FakeScreen(ActorKind.MASTER)


@pytest.fixture()
def loader():
    return FakeLoader(make_questions(3))


@pytest.fixture()
def settings():
    return GameSettings()


@pytest.fixture()
def game(buzzer, display, control, loader, timer, settings):
    return GameOrchestrator(buzzer, display, control, loader, timer, settings)


@pytest.fixture()
def make_game(buzzer, display, control, loader, timer):
    """Build an orchestrator with non-default settings; do not mix with ``game``."""
    def make(**overrides):
        return GameOrchestrator(buzzer, display, control, loader, timer, GameSettings(**overrides))
    return make


def connect_all(buzzer, display, control):
    buzzer.announce_ready()
    display.announce_ready()
    control.announce_ready()


@pytest.fixture()
def started_game(game, buzzer, display, control):
    connect_all(buzzer, display, control)
    return game


@pytest.fixture()
def quiz_game(started_game, buzzer):
    """Session in QUESTIONS with teams a and b active."""
    game = started_game
    assert game.set_mode('normal')
    assert game.request_activation_phase()
    buzzer.press(0)
    buzzer.press(1)
    assert game.start_quiz()
    return game


# ---- Flask app fixtures ----

@pytest.fixture()
def question_dir(tmp_path):
    bank = [
        {'id': 'q1', 'type': 'text', 'question': 'Capital of France?', 'answer': 'Paris'},
        {'id': 'q2', 'type': 'text', 'question': 'Two plus two?', 'answer': '4'},
        {'id': 'q3', 'type': 'blind', 'question': 'Name that tune', 'media': 'tune.mp3'},
    ]
    (tmp_path / '01-general.json').write_text(json.dumps(bank), encoding='utf-8')
    (tmp_path / 'tune.mp3').write_bytes(b'ID3' + b'\x00' * 61)
    return tmp_path


@pytest.fixture()
def flask_app(question_dir):
    class AppConfig(TestConfig):
        QUESTIONS_DIRECTORY = str(question_dir)

    application = create_app(AppConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def make(namespace):
        test_client = socketio.test_client(flask_app, namespace=namespace)
        clients.append((test_client, namespace))
        return test_client

    yield make
    for test_client, namespace in clients:
        try:
            test_client.disconnect(namespace=namespace)
        except Exception:
            pass
