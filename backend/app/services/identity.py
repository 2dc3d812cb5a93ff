"""
OwnerGate Backend: Caller Identity Resolution
==============================================

What:  Turns a request's session token into the (caller_id, is_admin) pair.
Why:   AccessControlService trusts the pair completely, so it must be resolved
       once per request from a verifiable source and then never changed.
How:   Session tokens are HS256 JWTs (PyJWT) carrying `sub` and `role`.
       The token is read from `Authorization: Bearer ...`, falling back to the
       `auth-token` cookie.

Failure policy:
    A missing, expired, malformed or wrongly signed token resolves to the
    anonymous identity instead of failing here. The service raises
    UnauthenticatedError on the first operation that needs an identity,
    which gives every route the same 401 behaviour.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from starlette.requests import Request

from app.config import settings
from app.models.user import ROLE_ADMIN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerIdentity:
    """Immutable identity pair for one request."""

    caller_id: Optional[str] = None
    is_admin: bool = False
    email: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.caller_id is not None


ANONYMOUS = CallerIdentity()


def issue_token(
    user_id: str,
    role: str = "USER",
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Sign a session token for `user_id`. Used by bootstrap and tests."""
    now = datetime.now(timezone.utc)
    lifetime = expires_in if expires_in is not None else timedelta(minutes=settings.jwt_expiry_minutes)
    payload: Dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + lifetime,
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def identity_from_token(token: str) -> CallerIdentity:
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Session token expired")
        return ANONYMOUS
    except jwt.InvalidTokenError as e:
        logger.warning("Rejected session token: %s", e)
        return ANONYMOUS

    role = str(claims.get("role") or "USER").upper()
    return CallerIdentity(
        caller_id=str(claims["sub"]),
        is_admin=role == ROLE_ADMIN,
        email=claims.get("email"),
        role=role,
    )


def extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.auth_cookie_name) or None


def resolve_identity(request: Request) -> CallerIdentity:
    """
    Resolve and memoise the caller identity on `request.state`.

    Middleware (rate limiting, access logging) and the route dependency all
    call this; the token is decoded only once per request.
    """
    cached = getattr(request.state, "identity", None)
    if isinstance(cached, CallerIdentity):
        return cached

    token = extract_token(request)
    identity = identity_from_token(token) if token else ANONYMOUS
    request.state.identity = identity
    return identity
