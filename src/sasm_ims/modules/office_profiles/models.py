"""
Office Profile Models

Staff members sharing an office account each work through a named profile
unlocked with a 4-digit PIN. Profiles carry a set of permission flags.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from sasm_ims.modules.shared import BaseModel


class Permission(str, enum.Enum):
    """Permission flags an office profile can hold."""

    VIEW_APPLICATIONS = "view_applications"
    EDIT_APPLICATIONS = "edit_applications"
    VIEW_REQUIREMENTS = "view_requirements"
    PROCESS_REQUIREMENTS = "process_requirements"
    VIEW_DTR = "view_dtr"
    EDIT_DTR = "edit_dtr"
    VIEW_LEAVE_REQUESTS = "view_leave_requests"
    APPROVE_LEAVE_REQUESTS = "approve_leave_requests"
    VIEW_SCHOLARS = "view_scholars"
    EDIT_SCHOLARS = "edit_scholars"
    VIEW_EVALUATIONS = "view_evaluations"
    SUBMIT_EVALUATIONS = "submit_evaluations"


def default_permissions() -> dict[str, bool]:
    """All permissions granted."""
    return {permission.value: True for permission in Permission}


class OfficeProfile(BaseModel):
    """A named, PIN-protected identity within an office account."""

    __tablename__ = "office_profiles"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    profile_name: Mapped[str] = mapped_column(String(50), nullable=False)
    # bcrypt hash of the 4-digit PIN
    pin_hash: Mapped[str] = mapped_column(Text, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    permissions: Mapped[dict] = mapped_column(JSON, nullable=False, default=default_permissions)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)

    last_accessed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("account_id", "profile_name", name="uq_office_profiles_account_name"),
    )

    def __repr__(self) -> str:
        return f"<OfficeProfile(id={self.id}, name={self.profile_name}, active={self.is_active})>"

    def has_permission(self, permission: "Permission | str") -> bool:
        key = permission.value if isinstance(permission, Permission) else permission
        return bool((self.permissions or {}).get(key, False))

    @property
    def display_avatar(self) -> str:
        """Avatar, defaulting to the upper-cased first letter of the name."""
        return self.avatar or self.profile_name[:1].upper()
