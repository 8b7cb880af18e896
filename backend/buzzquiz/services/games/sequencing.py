import logging
from typing import Dict, Iterable, Optional

from buzzquiz.models import AnswerState
from .errors import ProtocolViolation

logger = logging.getLogger(__name__)


class AnswerRecord:
    """Answer state of every team for one question."""

    def __init__(self, team_ids: Iterable[str]):
        self.slots: Dict[str, AnswerState] = {tid: AnswerState.UNANSWERED for tid in team_ids}

    def __len__(self) -> int:
        return len(self.slots)

    def __getitem__(self, team_id: str) -> AnswerState:
        return self.slots[team_id]

    def is_unanswered(self, team_id: str) -> bool:
        return self.slots.get(team_id) is AnswerState.UNANSWERED

    def mark(self, team_id: str, state: AnswerState) -> None:
        self.slots[team_id] = state

    def to_dict(self) -> Dict[str, str]:
        return {tid: state.value for tid, state in self.slots.items()}


class QuestionSequencing:
    """Ordered questions, the cursor over them and their answer records."""

    def __init__(self, teams, screens, arbitration):
        self.teams = teams
        self.screens = screens
        self.arbitration = arbitration
        self.questions = None
        self.cursor = -1
        self.finished = False
        self.answers: Dict[int, AnswerRecord] = {}

    def load(self, questions) -> None:
        self.questions = questions
        self.cursor = -1
        self.finished = False
        self.answers = {}

    def has_questions(self) -> bool:
        return self.questions is not None and self.questions.length() > 0

    def require_questions(self) -> None:
        if not self.has_questions():
            raise ProtocolViolation('questions-not-ready', 'No question list is loaded yet')

    def active_record(self) -> Optional[AnswerRecord]:
        if self.cursor < 0:
            return None
        return self.answers.get(self.cursor)

    def current_question(self):
        if self.cursor < 0 or not self.has_questions():
            return None
        return self.questions.get(self.cursor)

    def start(self, index) -> None:
        self.require_questions()
        index = self._checked_index(index)
        self._reset(index)
        self.screens.start_question(index)
        logger.info(f"[question-start] index={index}")

    def advance(self) -> bool:
        """Move to the next question.

        Returns False, leaving the cursor where it is, when the sequence is
        already on its last question; the sequence is then finished.
        """
        self.require_questions()
        if self.finished:
            raise ProtocolViolation('sequence-finished', 'There are no more questions')
        index = self.cursor + 1
        if index >= self.questions.length():
            self.finished = True
            self.arbitration.release()
            logger.info(f"[sequence-end] cursor={self.cursor} length={self.questions.length()}")
            return False
        self._reset(index)
        question = self.questions.get(index)
        self.screens.set_question(question.to_dict())
        logger.info(f"[question-next] index={index}")
        return True

    def resume(self, index) -> None:
        """Show the current question again, keeping who already answered."""
        if self.active_record() is None:
            raise ProtocolViolation('no-active-question', 'No question is running')
        index = self._checked_index(index)
        if index != self.cursor:
            raise ProtocolViolation(
                'question-mismatch',
                f'Question {index} is not the current question ({self.cursor})',
            )
        self.arbitration.release()
        self.screens.continue_question(index)
        logger.info(f"[question-continue] index={index}")

    def record(self, index: Optional[int] = None) -> Optional[AnswerRecord]:
        return self.answers.get(self.cursor if index is None else index)

    def to_dict(self) -> Dict[str, dict]:
        return {str(i): r.to_dict() for i, r in sorted(self.answers.items())}

    def _reset(self, index: int) -> None:
        self.cursor = index
        # Moving the cursor back re-opens the rest of the sequence
        self.finished = False
        self.answers[index] = AnswerRecord(self.teams.ids())
        self.arbitration.release()

    def _checked_index(self, index) -> int:
        if isinstance(index, bool):
            raise ProtocolViolation('invalid-payload', 'Question index must be an integer')
        try:
            index = int(index)
        except (TypeError, ValueError):
            raise ProtocolViolation('invalid-payload', 'Question index must be an integer')
        if not 0 <= index < self.questions.length():
            raise ProtocolViolation('unknown-question', f'No question at index {index}')
        return index
