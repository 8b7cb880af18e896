from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Optional
import string


TEAM_LETTERS = string.ascii_uppercase[:20]


class Step(Enum):
    """Phases of a session, valued with the names the screens understand."""
    MODE_SELECT = 'mode'
    TEAM_ACTIVATION = 'teams-activation'
    QUESTIONS = 'questions'
    SCORES = 'scores'


class AnswerState(Enum):
    UNANSWERED = 'unanswered'
    INCORRECT = 'incorrect'
    CORRECT = 'correct'


class Mode(Enum):
    NORMAL = 'normal'
    RANDOM = 'random'

    @classmethod
    def parse(cls, value) -> Optional['Mode']:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class ActorKind(Enum):
    BUZZER = 'buzzer'
    GAME = 'game'
    MASTER = 'master'


@dataclass
class ActorPresence:
    buzzer: bool = False
    game: bool = False
    master: bool = False

    def set(self, kind: ActorKind, present: bool) -> None:
        setattr(self, kind.value, present)

    def all_present(self) -> bool:
        return self.buzzer and self.game and self.master

    def missing(self):
        return [kind.value for kind in ActorKind if not getattr(self, kind.value)]

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass
class Team:
    id: str
    name: str
    controller: int
    active: bool = False
    lit: bool = False
    flash: bool = False
    points: int = 0

    @classmethod
    def for_controller(cls, controller: int) -> 'Team':
        letter = TEAM_LETTERS[controller]
        return cls(id=letter.lower(), name=letter, controller=controller)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'controller': self.controller,
            'active': self.active,
            'lit': self.lit,
            'flash': self.flash,
            'points': self.points,
        }


@dataclass
class AnswerDecision:
    """Operator judgment on the pending answer."""
    success: bool
    points: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data) -> 'AnswerDecision':
        """Build a decision from a command payload.

        Raises ValueError when the payload is not a mapping, when success is
        not a boolean or when points is not an integer.
        """
        if not isinstance(data, dict):
            raise ValueError('decision must be an object')
        success = data.get('success')
        if not isinstance(success, bool):
            raise ValueError('success must be a boolean')
        points = data.get('points', 0)
        if isinstance(points, bool) or points is None:
            raise ValueError('points must be an integer')
        try:
            points = int(points)
        except (TypeError, ValueError):
            raise ValueError('points must be an integer')
        extra = {k: v for k, v in data.items() if k not in ('success', 'points')}
        return cls(success=success, points=points, extra=extra)


@dataclass
class ValidationResult:
    success: bool
    points: int
    team_index: int
    team_id: str
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        payload.update({
            'success': self.success,
            'points': self.points,
            'team_index': self.team_index,
            'team_id': self.team_id,
        })
        return payload
