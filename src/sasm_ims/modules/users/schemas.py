"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from sasm_ims.modules.users.models import UserRole


class UserResponse(BaseModel):
    """Public view of an account (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    status: str
    is_verified: bool
    pending_email: str | None = None
    office_name: str | None = None
    created_at: datetime
    updated_at: datetime
