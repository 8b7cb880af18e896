import logging
from typing import Callable, Optional

from buzzquiz.models import Step
from .errors import ProtocolViolation

logger = logging.getLogger(__name__)


# Allowed moves: {current_step: {next_step, ...}}
TRANSITIONS = {
    Step.MODE_SELECT: {Step.TEAM_ACTIVATION},
    # QUESTIONS when enough teams are active, MODE_SELECT when the gate fails
    Step.TEAM_ACTIVATION: {Step.QUESTIONS, Step.MODE_SELECT},
    Step.QUESTIONS: {Step.SCORES},
    Step.SCORES: set(),
}


class StepStateMachine:
    """Four-phase progression of a session.

    ``on_change`` is called with the new step as the first effect of every
    transition, so the screens learn about the step before anything else
    the transition triggers.
    """

    def __init__(self, on_change: Optional[Callable[[Step], None]] = None):
        self.current: Optional[Step] = None
        self._on_change = on_change

    def begin(self) -> Step:
        """Enter MODE_SELECT for a fresh session."""
        return self._enter(Step.MODE_SELECT)

    def can_transition(self, target: Step) -> bool:
        if self.current is None:
            return False
        return target in TRANSITIONS.get(self.current, set())

    def transition(self, target: Step) -> Step:
        if not self.can_transition(target):
            current = self.current.value if self.current else None
            raise ProtocolViolation(
                'invalid-step',
                f'Cannot go to {target.value} from {current}',
            )
        return self._enter(target)

    def require(self, *steps: Step) -> None:
        if self.current not in steps:
            current = self.current.value if self.current else None
            expected = ', '.join(s.value for s in steps)
            raise ProtocolViolation('wrong-step', f'Step is {current}, expected {expected}')

    def reset(self) -> None:
        self.current = None

    def _enter(self, target: Step) -> Step:
        previous = self.current
        self.current = target
        logger.info(f"[step] {previous.value if previous else None} -> {target.value}")
        if self._on_change:
            self._on_change(target)
        return target
