"""Signed tokens carrying the locked constraints of an embedded directory view.

The embedding page receives the token from HR and hands it to the client
unchanged. The server trusts only what the signature covers.
"""

from __future__ import annotations

from jose import jwt
from jose.exceptions import JWTError
from pydantic import ValidationError

from staff_directory.models.directory import LockedConstraints

LOCK_ALGORITHM = "HS256"
LOCK_AUDIENCE = "staff-directory:lock"


class LockTokenError(Exception):
    pass


def _require_key(signing_key: str) -> None:
    if not signing_key:
        raise LockTokenError("Lock signing key is not configured")


def encode_lock(locked: LockedConstraints, signing_key: str) -> str:
    _require_key(signing_key)
    claims = {"aud": LOCK_AUDIENCE, **locked.model_dump()}
    return jwt.encode(claims, signing_key, algorithm=LOCK_ALGORITHM)


def decode_lock(token: str | None, signing_key: str) -> LockedConstraints:
    """Verify ``token``; an absent token means no locks."""
    if not token:
        return LockedConstraints()
    _require_key(signing_key)
    try:
        claims = jwt.decode(token, signing_key, algorithms=[LOCK_ALGORITHM], audience=LOCK_AUDIENCE)
    except JWTError as e:
        raise LockTokenError(f"Invalid lock token: {e}") from e

    claims.pop("aud", None)
    try:
        return LockedConstraints(**claims)
    except ValidationError as e:
        raise LockTokenError("Lock token carries malformed constraints") from e
