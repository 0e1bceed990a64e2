"""
Notification Models

In-app messages shown to an account, e.g. the welcome message after email
verification and application status updates.
"""

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from sasm_ims.modules.shared import BaseModel


class NotificationType(str, enum.Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


class Notification(BaseModel):
    """A message addressed to one account."""

    __tablename__ = "notifications"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type"),
        nullable=False,
        default=NotificationType.INFO,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Archived applications are deleted; the notification survives them
    related_application_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_notifications_account_created", "account_id", "created_at"),
        Index("ix_notifications_account_is_read", "account_id", "is_read"),
    )

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, account_id={self.account_id}, read={self.is_read})>"
