from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text, ForeignKey
from datetime import datetime
import enum

from examcase.core.database import Base
from examcase.core.types import GUID, generate_uuid


class NotificationType(str, enum.Enum):
    ACTION_REQUIRED = "action_required"
    CASE_APPROVED = "case_approved"
    DECISION_MADE = "decision_made"


class Notification(Base):
    """In-app notification produced by a workflow transition"""
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(
        SQLEnum(NotificationType, name="notification_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    violation_id = Column(GUID, ForeignKey("violations.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<Notification {self.type} for {self.user_id}>"
