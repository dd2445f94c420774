"""Request/response schemas for admin user management."""

from pydantic import Field

from app.core.roles import Role
from app.schemas.auth import UserOut
from app.schemas.common import CamelModel


class UpdateRoleRequest(CamelModel):
    role: Role = Field(..., description="One of ADMIN, EDITOR, VIEWER")


class UserResponse(CamelModel):
    user: UserOut


class UsersListResponse(CamelModel):
    """Response for GET /admin/users (admin only)."""

    users: list[UserOut]
