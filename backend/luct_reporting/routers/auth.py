"""Auth router: registration, login, and current user info."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from luct_reporting.config import Settings
from luct_reporting.database import get_db
from luct_reporting.errors import Conflict, InvalidCredentials
from luct_reporting.middleware.auth import (
    get_current_user,
    get_settings,
    hash_password,
    token_for_user,
    verify_password,
)
from luct_reporting.middleware.rate_limit import limiter, login_limit
from luct_reporting.models.user import User
from luct_reporting.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserEnvelope,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
        role=user.role,
        created_at=user.created_at.isoformat(),
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(
    req: RegisterRequest,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Register a new user and return an access token."""
    existing = db.query(User).filter(
        (User.username == req.username) | (User.email == req.email)
    ).first()
    if existing:
        raise Conflict("Username or email already exists")

    user = User(
        username=req.username,
        email=req.email,
        name=req.name,
        password_hash=hash_password(req.password),
        role=req.role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Registered %s '%s'", user.role, user.username)
    return TokenResponse(
        message="User registered successfully",
        token=token_for_user(user, app_settings),
        user=user_to_response(user),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit(login_limit)
def login(
    request: Request,
    req: LoginRequest,
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
):
    """Login and get JWT token."""
    user = db.query(User).filter(User.username == req.username).first()
    if not user or not verify_password(req.password, user.password_hash):
        logger.warning("Failed login for '%s'", req.username)
        raise InvalidCredentials("Invalid credentials")

    return TokenResponse(
        message="Login successful",
        token=token_for_user(user, app_settings),
        user=user_to_response(user),
    )


@router.get("/me", response_model=UserEnvelope)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info."""
    return UserEnvelope(data=user_to_response(current_user))
