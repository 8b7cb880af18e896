class ProtocolViolation(Exception):
    """A command or press that the current game state does not allow.

    Raised inside the game components and turned into a rejection notice at
    the orchestrator boundary; it never ends the session.
    """

    def __init__(self, code: str, message: str = ''):
        self.code = code
        self.message = message or code
        super().__init__(self.message)
