"""JWT access token creation and validation (ES256).

Centralizes all token logic so auth.py (issuance, logout) and
dependencies.py (validation) share the same key and claims schema.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from edutrack.core.config import SETTINGS

# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------
# Dev/test: generate an ephemeral EC key pair on import.
# Production: load from env var, file, or KMS (not implemented yet).
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "edutrack"
AUDIENCE = "edutrack-api"
ACCESS_TOKEN_TTL_MIN = SETTINGS.token_ttl_minutes


def create_access_token(
    *,
    sub: int | str,
    role: str,
    ttl_minutes: int | None = None,
) -> str:
    """Build and sign a JWT access token.

    Claims: sub (user id as a string), iss, aud, exp, iat, jti, role.
    The jti is what logout blacklists.
    """
    now = datetime.now(UTC)
    ttl = ACCESS_TOKEN_TTL_MIN if ttl_minutes is None else ttl_minutes
    payload = {
        "sub": str(sub),
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ttl),
        "iat": now,
        "jti": str(uuid.uuid4()),
        "role": role,
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins algorithm to ES256 to prevent alg:none and alg-switching attacks.
    Validates exp, iss, and aud automatically via PyJWT options.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
