import logging
from typing import Optional

from .errors import ProtocolViolation
from .teams import TeamRegistry

logger = logging.getLogger(__name__)


class BuzzArbitration:
    """First press wins; everybody else waits for the operator's judgment.

    ``pending`` holds the controller whose answer is awaiting validation.
    There is at most one at a time and rejected presses are dropped, never
    queued.
    """

    def __init__(self, teams: TeamRegistry, hardware, screens):
        self.teams = teams
        self.hardware = hardware
        self.screens = screens
        self.pending: Optional[int] = None

    def press(self, controller: int, record) -> int:
        """Claim the answer slot for ``controller`` on the active question.

        ``record`` is the active question's AnswerRecord, or None when no
        question is running.
        """
        if record is None:
            raise ProtocolViolation('no-active-question', 'No question is running')
        if self.pending is not None:
            raise ProtocolViolation(
                'validation-pending',
                f'Controller {self.pending} is waiting for validation',
            )
        team = self.teams.by_controller(controller)
        if not record.is_unanswered(team.id):
            raise ProtocolViolation(
                'already-answered',
                f'Team {team.id} already answered this question',
            )

        self.pending = controller

        team.flash = True
        team.lit = True
        self.screens.update_team(team.to_dict())
        team.flash = False

        self.hardware.light_on(controller)
        self.screens.set_answered(controller, True)
        logger.info(f"[buzz] controller={controller} team={team.id} pending={self.pending}")
        return controller

    def require_pending(self) -> int:
        if self.pending is None:
            raise ProtocolViolation('no-pending-answer', 'No answer is waiting for validation')
        return self.pending

    def release(self) -> None:
        self.pending = None
