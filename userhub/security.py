"""Token issuing and bearer authentication for the user directory API."""
from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

import jwt
from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import DEFAULT_TOKEN_TTL

logger = logging.getLogger("userhub.security")

ALGORITHM = "HS256"


class TokenIssuer:
    """Issue and verify stateless HS256 tokens bound to a username."""

    def __init__(
        self,
        secret: str,
        *,
        ttl: int = DEFAULT_TOKEN_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret must be provided")
        if ttl <= 0:
            raise ValueError("Token lifetime must be positive")
        self._secret = secret
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> int:
        return self._ttl

    def issue(self, username: Optional[str]) -> str:
        if not username:
            raise ValueError("Username is required")
        issued_at = int(self._clock())
        payload = {
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> Dict[str, object]:
        """Return the token claims or raise :class:`jwt.InvalidTokenError`."""

        # Expiry is checked against the issuer's own clock below.
        claims = jwt.decode(
            token,
            self._secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"], "verify_exp": False, "verify_iat": False},
        )
        try:
            expires_at = int(claims["exp"])
        except (TypeError, ValueError) as exc:
            raise jwt.DecodeError("Expiration Time claim (exp) must be an integer.") from exc
        if expires_at <= self._clock():
            raise jwt.ExpiredSignatureError("Signature has expired")
        if not claims.get("username"):
            raise jwt.InvalidTokenError("Token does not name a user")
        return claims


class TokenAuth:
    """FastAPI dependency resolving the username behind a bearer token."""

    def __init__(self, issuer: TokenIssuer):
        self._issuer = issuer
        self._bearer = HTTPBearer(auto_error=False)

    async def __call__(self, request: Request) -> str:
        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token required")

        try:
            claims = self._issuer.verify(credentials.credentials)
        except jwt.InvalidTokenError as exc:
            logger.warning("Rejected bearer token: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid or expired token",
            ) from exc

        username = str(claims["username"])
        request.state.username = username
        return username


__all__ = ["ALGORITHM", "TokenAuth", "TokenIssuer"]
