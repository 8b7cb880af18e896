import functools
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from buzzquiz.actors.base import ScreenGroup
from buzzquiz.models import AnswerDecision, Mode, Step
from .activation import TeamActivation
from .buzzer import BuzzArbitration
from .errors import ProtocolViolation
from .readiness import ReadinessCoordinator
from .scheduler import StageTimer
from .sequencing import QuestionSequencing
from .steps import StepStateMachine
from .teams import TeamRegistry
from .validation import apply_decision

logger = logging.getLogger(__name__)


@dataclass
class GameSettings:
    questions_directory: str = './questions'
    team_activation_duration_sec: int = 60
    min_active_teams: int = 2
    auto_advance_on_activation_timeout: bool = False
    auto_advance_on_full_roster: bool = False
    auto_finish_on_last_question: bool = False
    controller_debounce_ms: int = 0

    @classmethod
    def from_config(cls, config) -> 'GameSettings':
        return cls(
            questions_directory=config.get('QUESTIONS_DIRECTORY', './questions'),
            team_activation_duration_sec=int(config.get('TEAM_ACTIVATION_DURATION_SEC', 60)),
            min_active_teams=int(config.get('MIN_ACTIVE_TEAMS', 2)),
            auto_advance_on_activation_timeout=bool(config.get('AUTO_ADVANCE_ON_ACTIVATION_TIMEOUT', False)),
            auto_advance_on_full_roster=bool(config.get('AUTO_ADVANCE_ON_FULL_ROSTER', False)),
            auto_finish_on_last_question=bool(config.get('AUTO_FINISH_ON_LAST_QUESTION', False)),
            controller_debounce_ms=int(config.get('CONTROLLER_DEBOUNCE_MS', 0)),
        )


def serialized(func):
    """Run the wrapped entry point to completion before any other event."""
    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return func(self, *args, **kwargs)
    return wrapper


def command(name: str, debounce: bool = True):
    """Operator command: True when applied, False when rejected or debounced.

    Protocol violations end up as a ``command_rejected`` notice on the
    control screen instead of escaping to the transport.
    """
    def decorate(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            with self._lock:
                if debounce and self._debounced(name):
                    logger.info(f"[debounced] command={name}")
                    return False
                try:
                    func(self, *args, **kwargs)
                except ProtocolViolation as exc:
                    logger.warning(f"[rejected] command={name} code={exc.code} message={exc.message}")
                    self.control.reject_command(name, exc.code, exc.message)
                    return False
                return True
        wrapper.command_name = name
        return wrapper
    return decorate


class GameOrchestrator:
    """Single authority over a buzzer game session.

    The orchestrator owns the actor handles it is given; actors only talk
    back through their ``ready``/``leave`` signals and press callbacks.
    Every entry point takes the same re-entrant lock, so an event is fully
    processed before the next one is looked at.
    """

    def __init__(self, hardware, display, control, loader, timer: StageTimer,
                 settings: Optional[GameSettings] = None):
        self.hardware = hardware
        self.display = display
        self.control = control
        self.screens = ScreenGroup(display, control)
        self.loader = loader
        self.timer = timer
        self.settings = settings or GameSettings()

        self._lock = threading.RLock()
        self._last_command: Dict[str, float] = {}
        self._load_generation = 0
        self._stop_activation_presses = None
        self._stop_question_presses = None

        self.readiness = ReadinessCoordinator()
        self.steps = StepStateMachine(on_change=self._push_step)
        self.mode: Optional[Mode] = None
        self.finished = False
        self._build_session(0)

        for actor in (hardware, display, control):
            actor.ready.connect(self._on_actor_ready, weak=False)
            actor.leave.connect(self._on_actor_leave, weak=False)

    # ---- state access ----

    @property
    def started(self) -> bool:
        return self.readiness.started

    @property
    def step(self) -> Optional[Step]:
        return self.steps.current

    @property
    def pending(self) -> Optional[int]:
        return self.arbitration.pending

    def answers(self, question_index: Optional[int] = None):
        return self.sequencing.record(question_index)

    @serialized
    def snapshot(self) -> Dict[str, Any]:
        current = self.sequencing.current_question()
        return {
            'started': self.started,
            'finished': self.finished,
            'step': self.step.value if self.step else None,
            'mode': self.mode.value if self.mode else None,
            'actors': self.readiness.presence.to_dict(),
            'teams': self.teams.to_list(),
            'activated_teams': self.activation.activated,
            'activation_deadline': self.activation.deadline(),
            'questions_loaded': self.sequencing.has_questions(),
            'question_count': self.sequencing.questions.length() if self.sequencing.has_questions() else 0,
            'question_index': self.sequencing.cursor,
            'current_question': current.to_dict() if current else None,
            'sequence_finished': self.sequencing.finished,
            'pending_validation': self.pending,
            'answers': self.sequencing.to_dict(),
        }

    # ---- readiness ----

    @serialized
    def _on_actor_ready(self, sender, **kwargs) -> None:
        action = self.readiness.join(sender.kind)
        self.screens.set_actors(self.readiness.presence.to_dict())
        if action == ReadinessCoordinator.START:
            self._start()
        elif action == ReadinessCoordinator.RESYNC:
            self._resync()

    @serialized
    def _on_actor_leave(self, sender, **kwargs) -> None:
        self.readiness.leave(sender.kind)
        self.screens.set_actors(self.readiness.presence.to_dict())

    def _start(self) -> None:
        self._release_presses()
        self.timer.cancel_all()
        self.mode = None
        self.finished = False
        self._load_generation += 1
        self._build_session(self.hardware.controller_count())
        logger.info(f"[session-start] controllers={len(self.teams)}")
        self.steps.reset()
        self.steps.begin()

    def _resync(self) -> None:
        logger.info(f"[resync] step={self.step.value if self.step else None} finished={self.finished}")
        if self.step:
            self.screens.set_step(self.step.value)
        if self.mode:
            self.screens.set_mode(self.mode.value)
        if self.sequencing.has_questions() and not self.finished:
            self.screens.set_questions(self.sequencing.questions.all())

        self.teams.clear_indicators()
        for team in self.teams.all():
            self.hardware.light_off(team.controller)
        self.screens.set_teams(self.teams.to_list())

        if self.finished:
            self.screens.finish_game()
        elif self.sequencing.active_record() is not None:
            self.arbitration.release()
            self.screens.set_question(self.sequencing.current_question().to_dict())

    def _build_session(self, controller_count: int) -> None:
        self.teams = TeamRegistry(controller_count)
        self.arbitration = BuzzArbitration(self.teams, self.hardware, self.screens)
        self.activation = TeamActivation(
            self.teams, self.hardware, self.screens, self.timer,
            duration_sec=self.settings.team_activation_duration_sec,
        )
        self.sequencing = QuestionSequencing(self.teams, self.screens, self.arbitration)

    def _push_step(self, step: Step) -> None:
        self.screens.set_step(step.value)

    # ---- mode selection ----

    @command('set_mode', debounce=False)
    def set_mode(self, mode) -> None:
        self._require_started()
        self.steps.require(Step.MODE_SELECT)
        parsed = Mode.parse(mode)
        if parsed is None:
            raise ProtocolViolation('invalid-mode', f'Unknown mode {mode!r}')
        self.mode = parsed
        self.screens.set_mode(parsed.value)
        self._load_questions(parsed)

    def _load_questions(self, mode: Mode) -> None:
        self._load_generation += 1
        generation = self._load_generation
        self.sequencing.load(None)
        self.loader.load(
            self.settings.questions_directory,
            mode.value,
            functools.partial(self._on_questions_loaded, generation),
            functools.partial(self._on_questions_failed, generation),
        )

    @serialized
    def _on_questions_loaded(self, generation: int, questions) -> None:
        if generation != self._load_generation:
            logger.info(f"[questions-stale] generation={generation} current={self._load_generation}")
            return
        self.sequencing.load(questions)
        self.control.report_condition('questions-loaded', {
            'count': questions.length(),
            'mode': self.mode.value if self.mode else None,
        })
        for question in questions:
            question.load_informations(functools.partial(self._on_informations, generation, question))

    @serialized
    def _on_questions_failed(self, generation: int, error: Exception) -> None:
        if generation != self._load_generation:
            return
        self.control.report_condition('questions-load-failed', {
            'mode': self.mode.value if self.mode else None,
            'message': str(error),
        })

    @serialized
    def _on_informations(self, generation: int, question, error: Optional[Exception]) -> None:
        if error is None or generation != self._load_generation:
            return
        self.control.report_condition('media-unavailable', {
            'question': question.id,
            'media': question.media,
            'message': str(error),
        })

    # ---- team activation ----

    @command('set_activation_step')
    def request_activation_phase(self) -> None:
        self._require_started()
        self.steps.transition(Step.TEAM_ACTIVATION)
        self.screens.set_teams(self.teams.to_list())
        self._stop_activation_presses = self.hardware.on_press(self._on_activation_press)
        self.activation.begin(self._on_activation_timeout)

    @serialized
    def _on_activation_press(self, controller: int, button: int = 0) -> None:
        try:
            if not self.activation.activate(controller):
                self.hardware.reject_press(controller, 'already-active', 'Team is already active')
                return
        except ProtocolViolation as exc:
            logger.warning(f"[press-rejected] controller={controller} code={exc.code}")
            self.hardware.reject_press(controller, exc.code, exc.message)
            return
        if self.settings.auto_advance_on_full_roster and self.activation.roster_full():
            logger.info("[auto-advance] full roster")
            self.start_quiz()

    @serialized
    def _on_activation_timeout(self) -> None:
        if self.step is not Step.TEAM_ACTIVATION:
            return
        if not self.settings.auto_advance_on_activation_timeout:
            logger.info("[activation-expired] auto-advance disabled")
            return
        logger.info("[auto-advance] activation countdown expired")
        self.start_quiz()

    def _leave_activation(self) -> None:
        if self._stop_activation_presses:
            self._stop_activation_presses()
            self._stop_activation_presses = None
        self.activation.end()

    # ---- questions ----

    @command('start_quiz')
    def start_quiz(self) -> None:
        self._require_started()
        self.steps.require(Step.TEAM_ACTIVATION)
        minimum = self.settings.min_active_teams
        if self.activation.activated < minimum:
            self.steps.transition(Step.MODE_SELECT)
            self._leave_activation()
            self.activation.require_minimum(minimum)
        self.sequencing.require_questions()

        self.steps.transition(Step.QUESTIONS)
        self._leave_activation()
        self.screens.set_questions(self.sequencing.questions.all())
        self._stop_question_presses = self.hardware.on_press(self._on_question_press)

    @serialized
    def _on_question_press(self, controller: int, button: int = 0) -> None:
        try:
            self.steps.require(Step.QUESTIONS)
            self.arbitration.press(controller, self.sequencing.active_record())
        except ProtocolViolation as exc:
            logger.info(f"[press-rejected] controller={controller} code={exc.code}")
            self.hardware.reject_press(controller, exc.code, exc.message)

    @command('start_question')
    def start_question(self, index) -> None:
        self._require_started()
        self.steps.require(Step.QUESTIONS)
        self.sequencing.require_questions()
        self._drop_pending()
        self.sequencing.start(index)

    @command('next_question')
    def next_question(self) -> None:
        self._require_started()
        self.steps.require(Step.QUESTIONS)
        self._drop_pending()
        if self.sequencing.advance():
            return
        self.control.report_condition('sequence-finished', {
            'question_index': self.sequencing.cursor,
            'count': self.sequencing.questions.length(),
        })
        if self.settings.auto_finish_on_last_question:
            logger.info("[auto-advance] question sequence finished")
            self._finish()

    @command('continue_question')
    def continue_question(self, index) -> None:
        self._require_started()
        self.steps.require(Step.QUESTIONS)
        self._drop_pending()
        self.sequencing.resume(index)

    @command('validate_answer')
    def validate_answer(self, decision) -> None:
        self._require_started()
        self.steps.require(Step.QUESTIONS)
        if not isinstance(decision, AnswerDecision):
            try:
                decision = AnswerDecision.from_payload(decision)
            except ValueError as exc:
                raise ProtocolViolation('invalid-payload', str(exc))
        apply_decision(decision, self.teams, self.hardware, self.screens,
                       self.arbitration, self.sequencing)

    def _drop_pending(self) -> None:
        """Turn off the light of a team whose answer will not be judged."""
        if self.arbitration.pending is None:
            return
        team = self.teams.by_controller(self.arbitration.pending)
        team.lit = False
        self.hardware.light_off(team.controller)
        self.screens.update_team(team.to_dict())
        self.arbitration.release()

    # ---- scores ----

    @command('finish_game')
    def finish_game(self) -> None:
        self._require_started()
        self._finish()

    def _finish(self) -> None:
        self.steps.transition(Step.SCORES)
        self._drop_pending()
        if self._stop_question_presses:
            self._stop_question_presses()
            self._stop_question_presses = None
        self.finished = True
        self.sequencing.finished = True
        self.screens.finish_game()
        scores = {t.id: t.points for t in self.teams.all()}
        logger.info(f"[finish] scores={scores}")

    # ---- misc commands ----

    @command('set_team_name', debounce=False)
    def set_team_name(self, data) -> None:
        self._require_started()
        if not isinstance(data, dict):
            raise ProtocolViolation('invalid-payload', 'Expected {id, name}')
        team = self.teams.rename(data.get('id'), data.get('name'))
        self.screens.update_team(team.to_dict())

    @command('restart_game')
    def restart(self) -> None:
        self._release_presses()
        self.timer.cancel_all()
        for team in self.teams.all():
            self.hardware.light_off(team.controller)
        logger.info("[restart] session discarded")
        if self.readiness.reset():
            self._start()
            return
        self.mode = None
        self.finished = False
        self._load_generation += 1
        self.steps.reset()
        self._build_session(0)

    def _release_presses(self) -> None:
        for attr in ('_stop_activation_presses', '_stop_question_presses'):
            stop = getattr(self, attr)
            if stop:
                stop()
                setattr(self, attr, None)

    def _require_started(self) -> None:
        if not self.readiness.started:
            missing = self.readiness.presence.missing()
            raise ProtocolViolation('session-not-started', f'Waiting for: {", ".join(missing)}')

    def _debounced(self, name: str) -> bool:
        window = self.settings.controller_debounce_ms
        if window <= 0:
            return False
        now = time.monotonic() * 1000.0
        last = self._last_command.get(name)
        if last is not None and now - last < window:
            return True
        self._last_command[name] = now
        return False
