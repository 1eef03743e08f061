from __future__ import annotations
from typing import Optional, Protocol
import logging

import jwt
from fastapi import Request

from app.config import Settings
from app.services.errors import AuthenticationError

logger = logging.getLogger(__name__)


class Authenticator(Protocol):
    async def authenticate(self, request: Request) -> str:
        """Return the caller's user id or raise AuthenticationError."""
        ...


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


class SessionTokenAuthenticator:
    """Verifies a signed session token issued by the identity provider.

    The token is read from the Authorization bearer header, or from the
    session cookie when no header is present. The user id is the `sub` claim.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", cookie_name: str = "__session"):
        self.secret = secret
        self.algorithm = algorithm
        self.cookie_name = cookie_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokenAuthenticator":
        return cls(settings.session_secret, settings.session_algorithm, settings.session_cookie)

    async def authenticate(self, request: Request) -> str:
        token = _bearer_token(request) or request.cookies.get(self.cookie_name)
        if not token or not self.secret:
            raise AuthenticationError("Unauthorized")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            logger.info("auth: rejected session token reason=%s", type(e).__name__)
            raise AuthenticationError("Unauthorized")
        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Unauthorized")
        return str(user_id)
