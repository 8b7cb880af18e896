import logging

from buzzquiz.models import AnswerDecision, AnswerState, ValidationResult
from .errors import ProtocolViolation

logger = logging.getLogger(__name__)


def apply_decision(decision: AnswerDecision, teams, hardware, screens,
                   arbitration, sequencing) -> ValidationResult:
    """Apply the operator's judgment to the pending answer.

    Points may be zero or negative. The pending slot is cleared last, which
    re-opens buzzing for the current question.
    """
    controller = arbitration.require_pending()
    record = sequencing.record()
    if record is None:
        raise ProtocolViolation('no-active-question', 'No question is running')
    team = teams.by_controller(controller)

    team.points += decision.points
    team.lit = False
    if decision.points != 0:
        team.flash = True

    record.mark(team.id, AnswerState.CORRECT if decision.success else AnswerState.INCORRECT)

    hardware.light_off(controller)
    screens.update_team(team.to_dict())
    team.flash = False

    result = ValidationResult(
        success=decision.success,
        points=decision.points,
        team_index=controller,
        team_id=team.id,
        extra=decision.extra,
    )
    screens.validate_answer(result.to_dict())

    arbitration.release()
    logger.info(
        f"[validate] controller={controller} team={team.id} success={decision.success} "
        f"points={decision.points} total={team.points}"
    )
    return result
