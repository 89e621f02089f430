# concern2care/models/notification.py
from sqlalchemy import Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from concern2care.db.base import Base
from concern2care.models.enums import (
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)


class AdminNotification(Base):
    __tablename__ = "admin_notifications"

    id = Column(Integer, primary_key=True, index=True)

    # Weak reference; deleting a notification leaves the submission alone
    submission_id = Column(
        Integer, ForeignKey("classroom_submissions.id"), nullable=False, index=True
    )

    type = Column(SQLEnum(NotificationType, native_enum=False, length=20), nullable=False)
    status = Column(
        SQLEnum(NotificationStatus, native_enum=False, length=20),
        nullable=False,
        default=NotificationStatus.unread,
        index=True,
    )
    priority = Column(
        SQLEnum(NotificationPriority, native_enum=False, length=20),
        nullable=False,
        default=NotificationPriority.normal,
    )

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    admin_id = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    read_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    submission = relationship("Submission", back_populates="notifications")

    def __repr__(self):
        return f"<AdminNotification(id={self.id}, type='{self.type.value if self.type else None}')>"
