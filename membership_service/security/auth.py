"""FastAPI dependencies enforcing bearer authentication and authorities."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import get_settings
from .tokens import decode_access_token, extract_authorities

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)

USERS_READ_ROLE = "poc.users.read"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller derived from a verified token."""

    subject: str
    authorities: frozenset[str]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    """Resolve the caller from the ``Authorization: Bearer`` header or fail with 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _unauthorized("missing bearer token")
    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        logger.info("rejected bearer token: %s", exc)
        raise _unauthorized("invalid bearer token") from exc
    return Principal(subject=str(claims["sub"]), authorities=extract_authorities(claims))


def require_authorities(*roles: str) -> Callable[..., Principal]:
    """Build a dependency that admits callers holding every one of ``roles``."""

    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        prefix = get_settings().authority_prefix
        missing = {f"{prefix}{role}" for role in roles} - principal.authorities
        if missing:
            logger.info("principal %s lacks authorities %s", principal.subject, sorted(missing))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient authority")
        return principal

    return dependency
