"""Intranet SSO bearer tokens: JWKS lookup and signature/claims validation."""

from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.request
from typing import Any

from fastapi import HTTPException, status
from jose import jwk, jwt
from jose.constants import Algorithms
from jose.exceptions import ExpiredSignatureError, JWSSignatureError, JWTClaimsError, JWTError

logger = logging.getLogger(__name__)

JWKS_TTL_SECONDS = 24 * 60 * 60

# tenant id -> (fetched at, key set)
_jwks_cache: dict[str, tuple[float, dict[str, Any]]] = {}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def jwks_uri(tenant_id: str) -> str:
    return f"https://login.microsoftonline.com/{tenant_id}/discovery/v2.0/keys"


def expected_issuers(tenant_id: str) -> list[str]:
    return [
        f"https://login.microsoftonline.com/{tenant_id}/v2.0",
        f"https://sts.windows.net/{tenant_id}/",
    ]


def get_jwks(tenant_id: str) -> dict[str, Any]:
    """Key set for ``tenant_id``, refreshed once a day.

    A stale key set is served when the refresh fails.
    """
    cached = _jwks_cache.get(tenant_id)
    now = time.time()
    if cached and now - cached[0] < JWKS_TTL_SECONDS:
        return cached[1]

    uri = jwks_uri(tenant_id)
    logger.info("Fetching signing keys from %s", uri)
    try:
        with urllib.request.urlopen(urllib.request.Request(uri), timeout=15) as resp:  # noqa: S310
            keys = json.loads(resp.read().decode())
    except (urllib.error.URLError, urllib.error.HTTPError) as e:
        if cached:
            logger.warning("Signing key refresh failed (%s); using cached keys for %s", e, tenant_id)
            return cached[1]
        logger.error("Signing key fetch failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity provider keys unavailable",
        ) from e

    _jwks_cache[tenant_id] = (now, keys)
    return keys


def get_signing_key(token: str, tenant_id: str) -> dict[str, Any]:
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as e:
        raise _unauthorized(f"Invalid token header: {e}") from e
    if not kid:
        raise _unauthorized("Token has no 'kid' in header")

    for key in get_jwks(tenant_id).get("keys", []):
        if key.get("kid") == kid:
            return key
    raise _unauthorized(f"No matching signing key for kid: {kid}")


def validate_token(token: str, tenant_id: str, client_id: str) -> dict[str, Any]:
    """Verified claims of ``token``; raises ``HTTPException`` on any failure."""
    if not tenant_id or not client_id:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Authentication is not configured",
        )

    key = get_signing_key(token, tenant_id)
    algorithm = key.get("alg", Algorithms.RS256)
    public_key = jwk.construct(key, algorithm=algorithm)
    audiences = [client_id, f"api://{client_id}"]
    issuers = expected_issuers(tenant_id)
    options = {"require": ["exp", "iss", "aud"]}

    rejection: JWTError | None = None
    for issuer in issuers:
        for audience in audiences:
            try:
                return jwt.decode(
                    token,
                    public_key,
                    algorithms=[algorithm],
                    audience=audience,
                    issuer=issuer,
                    options=options,
                )
            except ExpiredSignatureError as e:
                raise _unauthorized("Token is expired") from e
            except JWSSignatureError as e:
                raise _unauthorized("Invalid token signature") from e
            except JWTError as e:
                rejection = e

    message = str(rejection).lower() if isinstance(rejection, JWTClaimsError) else ""
    if "audience" in message:
        raise _unauthorized(f"Invalid token audience. Expected one of: {audiences}")
    if "issuer" in message:
        raise _unauthorized(f"Invalid token issuer. Expected one of: {issuers}")
    raise _unauthorized("Invalid authentication credentials")


def extract_roles_from_token(payload: dict[str, Any]) -> list[str]:
    roles = payload.get("roles", [])
    if not isinstance(roles, list):
        return []
    return [str(r).lower() for r in roles if isinstance(r, str | int)]
