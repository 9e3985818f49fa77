from __future__ import annotations


class InvalidAuthTokenError(Exception):
    """
    Raised when a bearer token is present but cannot be resolved to a viewer.
    """

    def __init__(self, message: str = "Invalid authentication token") -> None:
        super().__init__(message)
        self.message = message
