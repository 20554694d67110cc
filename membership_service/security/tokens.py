"""Utilities for issuing and validating bearer JWTs."""

from __future__ import annotations

import time
from typing import Any, Iterable

import jwt

from ..config import get_settings


def issue_access_token(*, subject: str, roles: Iterable[str] = ()) -> tuple[str, int]:
    """Create a signed JWT carrying ``roles`` in the configured authorities claim.

    Parameters
    ----------
    subject:
        Value for the token `sub` claim.
    roles:
        Role keys without the authority prefix, e.g. ``poc.users.read``.

    Returns
    -------
    tuple[str, int]
        A tuple containing the encoded JWT string and its TTL (in seconds).
    """

    settings = get_settings()
    now = int(time.time())
    expires_in = settings.jwt_ttl_seconds
    payload: dict[str, Any] = {
        "iss": settings.jwt_issuer,
        "sub": subject,
        settings.authorities_claim: list(roles),
        "iat": now,
        "exp": now + expires_in,
    }
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience

    token = jwt.encode(payload, settings.jwt_secret, algorithm="HS256")
    return token, expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT returning its payload.

    Raises
    ------
    jwt.PyJWTError
        Propagated when the token is malformed, expired, or signed by another issuer.
    """

    settings = get_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        audience=settings.jwt_audience or None,
        issuer=settings.jwt_issuer,
        options={"require": ["exp", "sub"]},
    )


def extract_authorities(claims: dict[str, Any]) -> frozenset[str]:
    """Map the configured authorities claim to prefixed authority names.

    The claim may be a list of strings or a single space separated string.
    """
    settings = get_settings()
    raw = claims.get(settings.authorities_claim)
    if raw is None:
        return frozenset()
    if isinstance(raw, str):
        raw = raw.split()
    return frozenset(f"{settings.authority_prefix}{role}" for role in raw if isinstance(role, str) and role)
