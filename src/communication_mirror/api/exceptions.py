"""
HTTP-layer exceptions.
"""


class InvalidRequestError(Exception):
    """Request body failed a check that depends on runtime settings."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class SessionNotFoundError(Exception):
    def __init__(self, session_id: str):
        super().__init__("Session not found")
        self.session_id = session_id
        self.message = "Session not found"
