import logging
from typing import Callable, List, Optional

from buzzquiz.models import ActorKind
from .base import Actor

logger = logging.getLogger(__name__)

PressHandler = Callable[[int, int], None]


class SocketBuzzer(Actor):
    """The buzzer unit, reached through its bridge client on the ``/buzzer`` namespace.

    The bridge registers with the number of controllers it drives, forwards
    every physical press and receives fire-and-forget light commands.
    """

    def __init__(self, socketio, namespace: str = '/buzzer'):
        super().__init__(ActorKind.BUZZER)
        self.socketio = socketio
        self.namespace = namespace
        self.sid: Optional[str] = None
        self._controllers = 0
        self._press_handlers: List[PressHandler] = []

    def register(self, sid: str, controllers: int) -> None:
        self.sid = sid
        self._controllers = controllers
        # Indicators start off before anyone is told the buzzer is there
        for index in range(controllers):
            self.light_off(index)
        logger.info(f"[buzzer-register] sid={sid} controllers={controllers}")
        self.announce_ready()

    def disconnect(self, sid: str) -> None:
        if sid != self.sid:
            return
        self.sid = None
        self.announce_leave()

    def controller_count(self) -> int:
        return self._controllers

    def light_on(self, index: int) -> None:
        self._emit('light_on', {'controller': index})

    def light_off(self, index: int) -> None:
        self._emit('light_off', {'controller': index})

    def on_press(self, handler: PressHandler) -> Callable[[], None]:
        self._press_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._press_handlers:
                self._press_handlers.remove(handler)
        return unsubscribe

    def dispatch_press(self, controller: int, button: int = 0) -> None:
        for handler in list(self._press_handlers):
            handler(controller, button)

    def reject_press(self, controller: int, code: str, message: str = '') -> None:
        self._emit('press_rejected', {'controller': controller, 'code': code, 'message': message})

    def _emit(self, event: str, payload) -> None:
        if self.sid is None:
            return
        self.socketio.emit(event, payload, namespace=self.namespace, to=self.sid)
