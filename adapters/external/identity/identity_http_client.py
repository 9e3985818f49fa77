from __future__ import annotations

import httpx

from core.domain.errors import InvalidAuthTokenError
from core.repositories.token_verifier import TokenVerifier


class IdentityHttpClient(TokenVerifier):
    """
    Minimal identity-service client.

    Uses POST JSON:
      { "token": "..." }  ->  { "uid": "..." }

    Any 4xx, or a body without a uid, means the token is invalid. 5xx and
    transport errors propagate so they surface as server errors.
    """

    def __init__(self, *, verify_url: str, timeout_s: float = 5.0):
        self._verify_url = str(verify_url).strip()
        self._timeout = timeout_s

    async def verify(self, token: str) -> str:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            r = await client.post(self._verify_url, json={"token": token})
            if 400 <= r.status_code < 500:
                raise InvalidAuthTokenError()
            r.raise_for_status()
            body = r.json()

        uid = body.get("uid") if isinstance(body, dict) else None
        if not isinstance(uid, str) or not uid.strip():
            raise InvalidAuthTokenError()
        return uid.strip()
