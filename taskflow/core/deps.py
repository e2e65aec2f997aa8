"""Reusable FastAPI dependencies: database session, current user, role gates."""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from taskflow.core.database import get_session
from taskflow.models import User, UserRole, UserStatus
from taskflow.services.identity import (
    LOCAL_PROVIDER,
    TokenVerificationError,
    TokenVerifier,
    VerifiedIdentity,
    get_token_verifiers,
    verify_bearer_token,
)

DbSession = Annotated[AsyncSession, Depends(get_session)]

_bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def resolve_identity(session: AsyncSession, identity: VerifiedIdentity) -> User | None:
    """Load the user a verified token refers to."""
    if identity.provider == LOCAL_PROVIDER:
        try:
            user_id = int(identity.subject)
        except ValueError:
            return None
        return await session.get(User, user_id)

    result = await session.execute(select(User).where(User.firebase_uid == identity.subject))
    return result.scalar_one_or_none()


async def get_current_user(
    request: Request,
    session: DbSession,
    verifiers: Annotated[list[TokenVerifier], Depends(get_token_verifiers)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> User:
    """Authenticate the bearer token and return the active user."""
    if credentials is None:
        raise _unauthorized("Access denied. No token provided.")

    try:
        identity = await verify_bearer_token(credentials.credentials, verifiers)
    except TokenVerificationError:
        raise _unauthorized("Invalid token.")

    user = await resolve_identity(session, identity)
    if user is None:
        raise _unauthorized("User not found.")
    if user.status == UserStatus.INACTIVE:
        raise _unauthorized("Account is inactive.")

    # Read by the audit trail middleware once the response is sent.
    request.state.user = user
    request.state.user_id = user.id
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(allowed: frozenset[UserRole]) -> Callable[..., Awaitable[User]]:
    """Return a dependency that admits only users whose role is in ``allowed``."""

    async def _dependency(current_user: CurrentUser) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions.",
            )
        return current_user

    return _dependency


require_admin = require_roles(frozenset({UserRole.ADMIN}))

AdminUser = Annotated[User, Depends(require_admin)]
