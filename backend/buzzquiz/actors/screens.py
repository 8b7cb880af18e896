import logging
from typing import Any, Dict, List, Set

from buzzquiz.models import ActorKind
from .base import Actor

logger = logging.getLogger(__name__)


class SocketGameUI(Actor):
    """A browser screen (audience display or operator control) on its own namespace.

    Every call is broadcast to the whole namespace so several tabs of the same
    screen stay in step. The screen counts as connected while at least one
    registered client is there.
    """

    def __init__(self, socketio, kind: ActorKind, namespace: str):
        super().__init__(kind)
        self.socketio = socketio
        self.namespace = namespace
        self.sids: Set[str] = set()

    def register(self, sid: str) -> None:
        self.sids.add(sid)
        logger.info(f"[screen-register] screen={self.kind.value} sid={sid} clients={len(self.sids)}")
        self.announce_ready()

    def disconnect(self, sid: str) -> None:
        if sid not in self.sids:
            return
        self.sids.discard(sid)
        if not self.sids:
            self.announce_leave()

    def set_actors(self, actors: Dict[str, bool]) -> None:
        self._emit('actors', actors)

    def set_step(self, step: str) -> None:
        self._emit('step', {'step': step})

    def set_mode(self, mode: str) -> None:
        self._emit('mode', {'mode': mode})

    def set_questions(self, questions: List[Dict[str, Any]]) -> None:
        self._emit('questions', {'questions': questions})

    def set_teams(self, teams: List[Dict[str, Any]]) -> None:
        self._emit('teams', {'teams': teams})

    def update_team(self, team: Dict[str, Any]) -> None:
        self._emit('update_team', team)

    def activate_team(self, team: Dict[str, Any], flashing: bool) -> None:
        self._emit('activate_team', {'team': team, 'flashing': flashing})

    def set_answered(self, controller: int, answered: bool) -> None:
        self._emit('answered', {'controller': controller, 'answered': answered})

    def set_question(self, question: Dict[str, Any]) -> None:
        self._emit('question', question)

    def start_question(self, index: int) -> None:
        self._emit('start_question', {'index': index})

    def continue_question(self, index: int) -> None:
        self._emit('continue_question', {'index': index})

    def validate_answer(self, result: Dict[str, Any]) -> None:
        self._emit('validate_answer', result)

    def finish_game(self) -> None:
        self._emit('finish_game', {})

    def report_condition(self, code: str, details: Dict[str, Any]) -> None:
        payload = dict(details)
        payload['code'] = code
        self._emit('condition', payload)

    def reject_command(self, command: str, code: str, message: str) -> None:
        self._emit('command_rejected', {'command': command, 'code': code, 'message': message})

    def _emit(self, event: str, payload) -> None:
        self.socketio.emit(event, payload, namespace=self.namespace)
