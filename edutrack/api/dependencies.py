from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import OAuth2PasswordBearer

from edutrack.middleware.request_context import bind_principal
from edutrack.models.principal import Principal
from edutrack.models.user import User
from edutrack.repos.store import store
from edutrack.services import academic_years, token_service
from edutrack.services.token_blacklist import token_blacklist
from edutrack.services.visibility import AccessScope, build_scope

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_user(
    request: Request,
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal.

    Checks, in order: signature and claims, the logout blacklist, and that
    the subject is still an existing active user. Every failure is a 401.
    """
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    if await token_blacklist.is_revoked(claims["jti"]):
        logger.warning("Revoked token rejected jti=%s", claims["jti"])
        raise _unauthorized("Token has been revoked")

    try:
        user_id = int(claims["sub"])
    except ValueError:
        logger.warning("Token with non-numeric subject rejected")
        raise _unauthorized("Invalid token") from None

    user = store.users.get_by_id(user_id)
    if user is None or not user.is_active:
        logger.warning("Token for unknown or inactive user=%s rejected", user_id)
        raise _unauthorized("User no longer exists")

    # The stored role wins over the claim; a token never outlives a role edit.
    principal = Principal(
        user_id=user.id,
        role=user.role,
        jti=claims["jti"],
        expires_at=float(claims["exp"]),
    )
    bind_principal(request, principal.user_id, principal.role)
    logger.debug("Token validated for user=%s role=%s", principal.user_id, principal.role)
    return principal


def require_role(role: str):
    """Dependency factory: demand a specific role.

    Usage: Depends(require_role("admin"))
    Returns the Principal if the role is present, else 403.
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s role=%s required=%s",
                principal.user_id,
                principal.role,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def require_any_role(roles: set[str] | frozenset[str]):
    """Dependency factory: demand at least one of the given roles.

    Usage: Depends(require_any_role({"inspector", "founder"}))
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_any_role(roles):
            logger.warning(
                "Access denied: user=%s role=%s required_any=%s",
                principal.user_id,
                principal.role,
                sorted(roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def current_user(principal: Principal) -> User:
    """The stored user behind a principal require_user() already checked."""
    user = store.users.get_by_id(principal.user_id)
    if user is None:
        raise _unauthorized("User no longer exists")
    return user


def selected_year(
    academic_year: Annotated[str | None, Query(alias="academicYear")] = None,
) -> str:
    """The academic year a scoped request works in (explicit, active or current)."""
    return academic_years.resolve_year(store, academic_year)


def scope_for(roles: set[str] | frozenset[str]):
    """Dependency factory: role guard plus the requester's AccessScope.

    Usage: Annotated[AccessScope, Depends(scope_for({"inspector"}))]
    """
    guard = require_any_role(roles)

    # Plain defaults: string annotations cannot see the closure's guard.
    def _scope(
        principal: Principal = Depends(guard),
        year: str = Depends(selected_year),
    ) -> AccessScope:
        return build_scope(store, principal, year)

    return _scope


def get_scope(
    principal: Annotated[Principal, Depends(require_user)],
    year: Annotated[str, Depends(selected_year)],
) -> AccessScope:
    """AccessScope for any authenticated role."""
    return build_scope(store, principal, year)
