from typing import Dict, Iterator, List

from buzzquiz.models import Team, TEAM_LETTERS
from .errors import ProtocolViolation


class TeamRegistry:
    """Teams keyed by their stable id, with a controller -> id lookup."""

    def __init__(self, controller_count: int = 0) -> None:
        if controller_count > len(TEAM_LETTERS):
            raise ValueError(f'At most {len(TEAM_LETTERS)} controllers are supported')
        self._teams: Dict[str, Team] = {}
        self._by_controller: Dict[int, str] = {}
        for controller in range(max(0, controller_count)):
            team = Team.for_controller(controller)
            self._teams[team.id] = team
            self._by_controller[controller] = team.id

    def __len__(self) -> int:
        return len(self._teams)

    def __iter__(self) -> Iterator[Team]:
        return iter(self.all())

    def all(self) -> List[Team]:
        return sorted(self._teams.values(), key=lambda t: t.controller)

    def ids(self) -> List[str]:
        return [t.id for t in self.all()]

    def id_for(self, controller: int) -> str:
        try:
            return self._by_controller[controller]
        except (KeyError, TypeError):
            raise ProtocolViolation('unknown-controller', f'No team for controller {controller!r}')

    def by_controller(self, controller: int) -> Team:
        return self._teams[self.id_for(controller)]

    def get(self, team_id: str) -> Team:
        team = self._teams.get(team_id)
        if team is None:
            raise ProtocolViolation('unknown-team', f'No team with id {team_id!r}')
        return team

    def rename(self, team_id: str, name: str) -> Team:
        name = (name or '').strip()
        if not name:
            raise ProtocolViolation('invalid-payload', 'Team name is required')
        team = self.get(team_id)
        team.name = name
        return team

    def active_count(self) -> int:
        return sum(1 for t in self._teams.values() if t.active)

    def clear_indicators(self) -> None:
        for team in self._teams.values():
            team.lit = False
            team.flash = False

    def to_list(self) -> List[dict]:
        return [t.to_dict() for t in self.all()]
