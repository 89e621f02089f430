"""SQLAlchemy models for Classroom Solutions."""

from concern2care.db.base import Base  # noqa
from .enums import (
    TaskType,
    SeverityLevel,
    SubmissionStatus,
    NotificationType,
    NotificationStatus,
    NotificationPriority,
)
from .enrolled_teacher import EnrolledTeacher
from .submission import Submission
from .notification import AdminNotification

__all__ = [
    "EnrolledTeacher",
    "Submission",
    "AdminNotification",
    "TaskType",
    "SeverityLevel",
    "SubmissionStatus",
    "NotificationType",
    "NotificationStatus",
    "NotificationPriority",
]
