from blinker import Signal

from buzzquiz.models import ActorKind


class Actor:
    """A real-time participant of the game.

    Each actor publishes ``ready`` when it (re)connects and ``leave`` when it
    goes away. Receivers are called with the actor as sender.
    """

    def __init__(self, kind: ActorKind):
        self.kind = kind
        self.ready = Signal(f'{kind.value}-ready')
        self.leave = Signal(f'{kind.value}-leave')

    def announce_ready(self) -> None:
        self.ready.send(self)

    def announce_leave(self) -> None:
        self.leave.send(self)


# Calls every screen (display or control) understands
SCREEN_CALLS = frozenset([
    'set_actors',
    'set_step',
    'set_mode',
    'set_questions',
    'set_teams',
    'update_team',
    'activate_team',
    'set_answered',
    'set_question',
    'start_question',
    'continue_question',
    'validate_answer',
    'finish_game',
])


class ScreenGroup:
    """Sends the same call to the display and to the control screen, in that order."""

    def __init__(self, *screens):
        self.screens = screens

    def __getattr__(self, name):
        if name not in SCREEN_CALLS:
            raise AttributeError(name)

        def fan_out(*args, **kwargs):
            for screen in self.screens:
                getattr(screen, name)(*args, **kwargs)
        return fan_out
