import logging
from typing import Callable, Optional

from .errors import ProtocolViolation
from .scheduler import StageTimer
from .teams import TeamRegistry

logger = logging.getLogger(__name__)

COUNTDOWN = 'team-activation'


class TeamActivation:
    """Admission of teams before the quiz: a team joins by pressing its buzzer."""

    def __init__(self, teams: TeamRegistry, hardware, screens, timer: StageTimer,
                 duration_sec: int = 60):
        self.teams = teams
        self.hardware = hardware
        self.screens = screens
        self.timer = timer
        self.duration_sec = duration_sec
        self.activated = 0

    def begin(self, on_timeout: Callable[[], None]) -> Optional[float]:
        """Start the countdown for the phase and return its deadline."""
        return self.timer.schedule(COUNTDOWN, self.duration_sec, on_timeout)

    def activate(self, controller: int) -> bool:
        """Activate the team behind ``controller``; False if it already was."""
        team = self.teams.by_controller(controller)
        if team.active:
            logger.info(f"[activate-skip] controller={controller} team={team.id} already active")
            return False

        self.activated += 1
        self.hardware.light_on(controller)

        team.active = True
        team.lit = True
        team.flash = True
        self.screens.activate_team(team.to_dict(), True)
        team.flash = False
        logger.info(f"[activate] controller={controller} team={team.id} activated={self.activated}")
        return True

    def roster_full(self) -> bool:
        return len(self.teams) > 0 and self.activated == len(self.teams)

    def require_minimum(self, minimum: int) -> None:
        if self.activated < minimum:
            raise ProtocolViolation(
                'not-enough-teams',
                f'{self.activated} team(s) activated, at least {minimum} required',
            )

    def end(self) -> None:
        """Stop the countdown and turn every indicator off."""
        self.timer.cancel(COUNTDOWN)
        for team in self.teams.all():
            team.lit = False
            self.hardware.light_off(team.controller)
            self.screens.update_team(team.to_dict())

    def deadline(self) -> Optional[float]:
        return self.timer.deadline(COUNTDOWN)
