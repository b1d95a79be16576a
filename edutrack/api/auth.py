"""Login, registration, logout and the current-user endpoint.

Tokens are ES256 JWTs (see services/token_service.py). Logout blacklists the
token's JTI until the token would have expired anyway; require_user()
rejects it from then on, whichever instance serves the next request.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status

from edutrack.api.dependencies import current_user, require_user
from edutrack.api.schemas import LoginIn, LoginOut, RegisterIn, RegisterOut, UserOut
from edutrack.core.metrics import LOGIN_ATTEMPTS
from edutrack.models.principal import Principal
from edutrack.repos.store import store
from edutrack.services import auth_service, token_service, users_service
from edutrack.services.token_blacklist import token_blacklist

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=LoginOut)
def login(body: LoginIn) -> LoginOut:
    user = auth_service.authenticate_user(store.users, body.username, body.password)
    if user is None:
        LOGIN_ATTEMPTS.labels(outcome="failure").inc()
        # Do not log the password, and do not say which half was wrong.
        logger.warning("Failed login username=%s", body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = token_service.create_access_token(sub=user.id, role=user.role)
    LOGIN_ATTEMPTS.labels(outcome="success").inc()
    logger.info("Login user=%s role=%s", user.id, user.role)
    return LoginOut(
        id=user.id,
        username=user.username,
        role=user.role,
        firstName=user.first_name,
        lastName=user.last_name,
        email=user.email,
        token=token,
        expiresIn=token_service.ACCESS_TOKEN_TTL_MIN * 60,
    )


@router.post("/register", response_model=RegisterOut, status_code=status.HTTP_201_CREATED)
def register(body: RegisterIn) -> RegisterOut:
    user = users_service.register(
        store,
        username=body.username,
        password=body.password,
        role=body.role,
        first_name=body.firstName,
        last_name=body.lastName,
        email=body.email,
    )
    return RegisterOut(message="Account created", user=UserOut.of(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(principal: Annotated[Principal, Depends(require_user)]) -> Response:
    """Revoke the token used for this request.

    require_user() has already checked the signature and the blacklist, so
    the jti and expiry on the principal are trustworthy.
    """
    if principal.jti and principal.expires_at:
        await token_blacklist.revoke(principal.jti, principal.expires_at)
        logger.info("Token revoked jti=%s user=%s", principal.jti, principal.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserOut)
def me(principal: Annotated[Principal, Depends(require_user)]) -> UserOut:
    return UserOut.of(current_user(principal))
