import logging

from buzzquiz.models import ActorKind, ActorPresence

logger = logging.getLogger(__name__)


class ReadinessCoordinator:
    """Tracks which actors are connected and whether the session started.

    ``join`` answers what the caller has to do once everyone is there:
    ``'start'`` for the first full house, ``'resync'`` afterwards, ``None``
    while someone is still missing.
    """

    START = 'start'
    RESYNC = 'resync'

    def __init__(self) -> None:
        self.presence = ActorPresence()
        self.started = False

    def join(self, kind: ActorKind):
        self.presence.set(kind, True)
        logger.info(f"[join] actor={kind.value} missing={self.presence.missing()}")
        if not self.presence.all_present():
            return None
        if not self.started:
            self.started = True
            return self.START
        return self.RESYNC

    def leave(self, kind: ActorKind) -> None:
        self.presence.set(kind, False)
        logger.info(f"[leave] actor={kind.value} missing={self.presence.missing()}")

    def reset(self) -> bool:
        """Forget the session; returns True when a new one can start at once."""
        self.started = False
        if self.presence.all_present():
            self.started = True
            return True
        return False
