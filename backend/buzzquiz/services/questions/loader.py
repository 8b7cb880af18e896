import json
import logging
import mimetypes
import os
import random
from typing import Any, Callable, Dict, List, Optional

from buzzquiz.models import Mode

logger = logging.getLogger(__name__)


def _run_inline(func, *args, **kwargs):
    func(*args, **kwargs)


class QuestionBankError(Exception):
    """The question bank cannot be read or holds an invalid question."""


class Question:
    """One question of the bank.

    ``blind`` questions play an audio file, ``deaf`` ones show an image or a
    video; their media details are resolved lazily by ``load_informations``.
    """

    KINDS = ('text', 'blind', 'deaf')

    def __init__(self, id: str, kind: str, text: str, answer: Optional[str] = None,
                 media: Optional[str] = None, base_dir: str = '.',
                 spawn: Callable = _run_inline, data: Optional[Dict[str, Any]] = None):
        self.id = id
        self.kind = kind
        self.text = text
        self.answer = answer
        self.media = media
        self.base_dir = base_dir
        self.informations: Dict[str, Any] = {}
        self.data = data or {}
        self._spawn = spawn

    @classmethod
    def from_dict(cls, data: Dict[str, Any], position: int, base_dir: str = '.',
                  spawn: Callable = _run_inline) -> 'Question':
        if not isinstance(data, dict):
            raise QuestionBankError(f'Question #{position} is not an object')
        kind = data.get('type', 'text')
        if kind not in cls.KINDS:
            raise QuestionBankError(f'Question #{position} has unknown type {kind!r}')
        text = data.get('question') or data.get('text')
        if not text:
            raise QuestionBankError(f'Question #{position} has no text')
        media = data.get('media')
        if kind != 'text' and not media:
            raise QuestionBankError(f'Question #{position} ({kind}) needs a media file')
        extra = {k: v for k, v in data.items() if k not in ('id', 'type', 'question', 'text', 'answer', 'media')}
        return cls(
            id=str(data.get('id') or position),
            kind=kind,
            text=text,
            answer=data.get('answer'),
            media=media,
            base_dir=base_dir,
            spawn=spawn,
            data=extra,
        )

    @property
    def media_path(self) -> Optional[str]:
        if not self.media:
            return None
        return os.path.join(self.base_dir, self.media)

    def load_informations(self, callback: Callable[[Optional[Exception]], None]) -> None:
        """Resolve media details in the background; ``callback(error)`` when done."""
        self._spawn(self._resolve_informations, callback)

    def _resolve_informations(self, callback) -> None:
        if self.kind == 'text':
            callback(None)
            return
        try:
            stat = os.stat(self.media_path)
        except OSError as exc:
            logger.warning(f"[media-missing] question={self.id} media={self.media} error={exc}")
            callback(exc)
            return
        mime_type, _ = mimetypes.guess_type(self.media_path)
        self.informations = {
            'size': stat.st_size,
            'mime_type': mime_type or 'application/octet-stream',
        }
        callback(None)

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.data)
        payload.update({
            'id': self.id,
            'type': self.kind,
            'question': self.text,
            'answer': self.answer,
            'media': self.media,
            'informations': self.informations,
        })
        return payload


class QuestionList:
    def __init__(self, questions: List[Question]):
        self._questions = list(questions)
        self._cursor = -1

    def length(self) -> int:
        return len(self._questions)

    def __len__(self) -> int:
        return self.length()

    def __iter__(self):
        return iter(self._questions)

    def all(self) -> List[Dict[str, Any]]:
        return [q.to_dict() for q in self._questions]

    def get(self, index: int) -> Question:
        return self._questions[index]

    def next(self) -> Optional[Question]:
        """Advance the list's own cursor; None past the end."""
        self._cursor += 1
        if self._cursor >= len(self._questions):
            self._cursor = len(self._questions)
            return None
        return self._questions[self._cursor]


class QuestionLoader:
    """Reads a directory of ``*.json`` files, each holding a list of questions."""

    def __init__(self, spawn: Callable = _run_inline, rng: Optional[random.Random] = None):
        self._spawn = spawn
        self._rng = rng or random.Random()

    def load(self, location: str, mode, callback: Callable[[QuestionList], None],
             errback: Optional[Callable[[Exception], None]] = None) -> None:
        self._spawn(self._worker, location, mode, callback, errback)

    def _worker(self, location, mode, callback, errback) -> None:
        try:
            questions = self.load_now(location, mode)
        except QuestionBankError as exc:
            logger.warning(f"[questions-failed] location={location} error={exc}")
            if errback:
                errback(exc)
            return
        callback(questions)

    def load_now(self, location: str, mode) -> QuestionList:
        if not os.path.isdir(location):
            raise QuestionBankError(f'Question directory not found: {location}')
        parsed = Mode.parse(mode)
        if parsed is None:
            raise QuestionBankError(f'Unknown mode {mode!r}')

        try:
            filenames = sorted(os.listdir(location))
        except OSError as exc:
            raise QuestionBankError(f'Cannot list {location}: {exc}')

        questions: List[Question] = []
        for filename in filenames:
            if not filename.endswith('.json'):
                continue
            path = os.path.join(location, filename)
            try:
                with open(path, encoding='utf-8') as fh:
                    entries = json.load(fh)
            except (OSError, ValueError) as exc:
                raise QuestionBankError(f'Cannot read {filename}: {exc}')
            if not isinstance(entries, list):
                raise QuestionBankError(f'{filename} must contain a list of questions')
            for entry in entries:
                questions.append(
                    Question.from_dict(entry, len(questions) + 1, base_dir=location, spawn=self._spawn)
                )

        if parsed is Mode.RANDOM:
            self._rng.shuffle(questions)
        logger.info(f"[questions-loaded] location={location} mode={parsed.value} count={len(questions)}")
        return QuestionList(questions)
