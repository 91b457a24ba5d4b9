"""Users router: profile and user directory."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from luct_reporting.database import get_db
from luct_reporting.middleware.auth import get_current_user, require_program_leader
from luct_reporting.models.user import User
from luct_reporting.routers.auth import user_to_response
from luct_reporting.schemas.auth import UserEnvelope, UserListResponse

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/profile", response_model=UserEnvelope)
def get_profile(current_user: User = Depends(get_current_user)):
    return UserEnvelope(data=user_to_response(current_user))


@router.get("", response_model=UserListResponse)
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_program_leader),
):
    """List every user ordered by name (program leader only)."""
    users = db.query(User).order_by(User.name).all()
    return UserListResponse(data=[user_to_response(u) for u in users], count=len(users))
