from __future__ import annotations

from abc import ABC, abstractmethod


class TokenVerifier(ABC):
    """
    Resolves a bearer token to a viewer id.
    """

    @abstractmethod
    async def verify(self, token: str) -> str:
        """
        Return the viewer id for `token`.

        Raises:
            InvalidAuthTokenError: the token is unknown, expired or malformed.
        """
        raise NotImplementedError
