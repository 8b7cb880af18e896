"""Question bank access.

The orchestrator only relies on the ``QuestionList`` / ``Question``
surface; where the questions come from stays behind ``QuestionLoader``.
"""

from .loader import Question, QuestionList, QuestionLoader, QuestionBankError

__all__ = ['Question', 'QuestionList', 'QuestionLoader', 'QuestionBankError']
