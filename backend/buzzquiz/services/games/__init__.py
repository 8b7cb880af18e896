"""Game domain services: readiness, steps, teams, buzzing and scoring.

This package contains the game mechanics. Socket handlers and HTTP routes
only reach it through ``GameOrchestrator``, keeping transport concerns
separated from core game logic.
"""

from .errors import ProtocolViolation
from .orchestrator import GameOrchestrator, GameSettings

__all__ = ['GameOrchestrator', 'GameSettings', 'ProtocolViolation']
