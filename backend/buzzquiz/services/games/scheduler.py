import logging
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class StageTimer:
    """Named countdowns run on background tasks.

    - One live timer per name; scheduling again supersedes the previous one
    - A superseded or cancelled timer wakes up, notices, and does nothing
    - ``deadline(name)`` exposes the wall-clock end so clients can render countdowns
    """

    def __init__(self, spawn: Callable, sleep: Callable[[float], None] = time.sleep,
                 heartbeat_sec: int = 0, enabled: bool = True):
        self._spawn = spawn
        self._sleep = sleep
        self._heartbeat_sec = heartbeat_sec
        self._enabled = enabled
        self._tokens: Dict[str, int] = {}
        self._deadlines: Dict[str, float] = {}
        self._counter = 0

    def schedule(self, name: str, duration: float, callback: Callable[[], None]) -> Optional[float]:
        if not self._enabled:
            logger.info(f"[timer-skip] name={name} scheduler disabled")
            return None
        self._counter += 1
        token = self._counter
        self._tokens[name] = token
        deadline = time.time() + duration
        self._deadlines[name] = deadline
        logger.info(f"[timer-set] name={name} duration={duration}s deadline={deadline}")
        self._spawn(self._worker, name, token, duration, callback)
        return deadline

    def cancel(self, name: str) -> None:
        if self._tokens.pop(name, None) is not None:
            logger.info(f"[timer-cancel] name={name}")
        self._deadlines.pop(name, None)

    def cancel_all(self) -> None:
        for name in list(self._tokens):
            self.cancel(name)

    def is_pending(self, name: str) -> bool:
        return name in self._tokens

    def deadline(self, name: str) -> Optional[float]:
        return self._deadlines.get(name)

    def _worker(self, name: str, token: int, delay: float, callback: Callable[[], None]) -> None:
        hb = self._heartbeat_sec
        if hb and hb > 0:
            slept = 0
            while slept < delay:
                step = min(hb, delay - slept)
                self._sleep(step)
                slept += step
                logger.info(f"[timer-heartbeat] name={name} remaining={max(0, delay - slept)}s")
        else:
            self._sleep(delay)

        if self._tokens.get(name) != token:
            logger.info(f"[timer-abort] name={name} superseded or cancelled")
            return
        self._tokens.pop(name, None)
        self._deadlines.pop(name, None)
        logger.info(f"[timer-fire] name={name}")
        try:
            callback()
        except Exception:
            logger.exception(f"[timer-error] name={name}")
