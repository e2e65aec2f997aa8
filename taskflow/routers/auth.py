"""Authentication endpoints."""

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlmodel import select

from taskflow.core.deps import CurrentUser, DbSession
from taskflow.core.limiter import limit_auth
from taskflow.core.security import create_access_token, get_password_hash, verify_password
from taskflow.core.timeutils import utcnow
from taskflow.models import User, UserRole, UserStatus
from taskflow.schemas.auth import (
    AuthResponse,
    GoogleLoginRequest,
    LoginRequest,
    ProfileResponse,
    RegisterRequest,
    UserRead,
)
from taskflow.services.identity import TokenVerificationError, TokenVerifier, get_external_verifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


def _auth_response(user: User, message: str) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=create_access_token(subject=user.id),
        user=UserRead.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
@limit_auth
async def login(
    request: Request,
    credentials: LoginRequest,
    session: DbSession,
) -> AuthResponse:
    """Authenticate with email and password and return an access token."""
    result = await session.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    if user.status == UserStatus.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is inactive.",
        )

    user.last_login = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return _auth_response(user, "Login successful")


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limit_auth
async def register(
    request: Request,
    user_data: RegisterRequest,
    session: DbSession,
) -> AuthResponse:
    """Self-register a regular user account."""
    result = await session.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists",
        )

    user = User(
        name=user_data.name,
        email=user_data.email,
        hashed_password=get_password_hash(user_data.password),
        role=UserRole.USER,
        last_login=utcnow(),
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    logger.info("Registered user %s", user.email)
    return _auth_response(user, "User registered successfully")


@router.post("/google", response_model=AuthResponse)
@limit_auth
async def google_login(
    request: Request,
    payload: GoogleLoginRequest,
    session: DbSession,
    verifier: Annotated[TokenVerifier, Depends(get_external_verifier)],
) -> AuthResponse:
    """Exchange an external identity token for a local access token.

    The user is matched by external uid, then linked by email, and created
    as a regular user when neither exists.
    """
    if not verifier.is_available:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google sign-in is not configured",
        )

    try:
        identity = await verifier.verify(payload.token)
    except TokenVerificationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token.",
        )

    result = await session.execute(select(User).where(User.firebase_uid == identity.subject))
    user = result.scalar_one_or_none()

    if user is None:
        if not identity.email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Identity token carries no email address",
            )
        if identity.claims.get("email_verified") is not True:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Email address not verified",
            )
        email = identity.email.strip().lower()
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            user = User(
                name=identity.name or email.split("@")[0],
                email=email,
                # Unusable until an admin or reset flow sets one.
                hashed_password=get_password_hash(secrets.token_urlsafe(32)),
                role=UserRole.USER,
            )
            logger.info("Created user %s from external identity", email)
        user.firebase_uid = identity.subject

    if user.status == UserStatus.INACTIVE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is inactive.",
        )

    user.last_login = utcnow()
    user.updated_at = utcnow()
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return _auth_response(user, "Login successful")


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(current_user: CurrentUser) -> ProfileResponse:
    """Get current user information."""
    return ProfileResponse(user=UserRead.model_validate(current_user))
