import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Directory of *.json question files
    QUESTIONS_DIRECTORY = os.environ.get('QUESTIONS_DIRECTORY') or './questions'
    # Team activation countdown (seconds)
    TEAM_ACTIVATION_DURATION_SEC = int(os.environ.get('TEAM_ACTIVATION_DURATION_SEC', '60'))
    # Minimum activated teams before the questions can start
    MIN_ACTIVE_TEAMS = int(os.environ.get('MIN_ACTIVE_TEAMS', '2'))
    # Auto-transitions, all off unless explicitly enabled
    AUTO_ADVANCE_ON_ACTIVATION_TIMEOUT = _flag('AUTO_ADVANCE_ON_ACTIVATION_TIMEOUT')
    AUTO_ADVANCE_ON_FULL_ROSTER = _flag('AUTO_ADVANCE_ON_FULL_ROSTER')
    AUTO_FINISH_ON_LAST_QUESTION = _flag('AUTO_FINISH_ON_LAST_QUESTION')
    # Optional: debounce operator commands (ms). 0 disables.
    CONTROLLER_DEBOUNCE_MS = int(os.environ.get('CONTROLLER_DEBOUNCE_MS', '0'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
