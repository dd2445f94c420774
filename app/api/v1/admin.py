"""Admin user management routes (role-gated to ADMIN)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin
from app.core.database import get_db
from app.schemas.admin import UpdateRoleRequest, UserResponse, UsersListResponse
from app.schemas.auth import CurrentUser, UserOut
from app.schemas.common import Envelope
from app.services.admin import list_users, update_user_role

router = APIRouter()


@router.get("/users", response_model=Envelope[UsersListResponse])
def get_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[UsersListResponse]:
    """List all users (admin only). No password hashes or lockout state."""
    users = [UserOut.model_validate(u) for u in list_users(db)]
    return Envelope[UsersListResponse](data=UsersListResponse(users=users))


@router.put("/users/{user_id}/role", response_model=Envelope[UserResponse])
def put_user_role(
    user_id: str,
    body: UpdateRoleRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> Envelope[UserResponse]:
    """Change another user's role. Admins cannot change their own role."""
    user = update_user_role(db, admin.id, user_id, body.role)
    return Envelope[UserResponse](data=UserResponse(user=UserOut.model_validate(user)))
