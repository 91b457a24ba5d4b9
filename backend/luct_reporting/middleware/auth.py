"""JWT authentication middleware and dependencies."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from luct_reporting.config import Settings
from luct_reporting.database import get_db
from luct_reporting.errors import InvalidCredentials, Unauthorized
from luct_reporting.lifecycle import Role
from luct_reporting.models.user import User

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt directly (passlib is broken with bcrypt>=4.1)."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(pwd_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def create_access_token(data: dict, settings: Settings) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for_user(user: User, settings: Settings) -> str:
    return create_access_token(
        {"sub": user.id, "username": user.username, "role": user.role},
        settings,
    )


def decode_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise InvalidCredentials("Invalid or expired token")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    if credentials is None:
        raise InvalidCredentials("Access token required")
    payload = decode_token(credentials.credentials, settings)
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidCredentials("Invalid token payload")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise InvalidCredentials("User no longer exists")
    return user


def current_role(user: User) -> Role:
    return Role.parse(user.role)


def require_roles(*roles: Role):
    """Build a dependency that only lets the given roles through."""
    allowed = frozenset(roles)

    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_role(current_user) not in allowed:
            names = ", ".join(sorted(r.value.replace("_", " ") for r in allowed))
            raise Unauthorized(f"Access denied. Only {names} roles may do this.")
        return current_user

    return dependency


require_program_leader = require_roles(Role.PROGRAM_LEADER)
require_lecturer = require_roles(Role.LECTURER)
require_management = require_roles(Role.PROGRAM_LEADER, Role.PRINCIPAL_LECTURER)
