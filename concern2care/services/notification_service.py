# concern2care/services/notification_service.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from concern2care.core.errors import NotFoundError
from concern2care.models.enums import (
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from concern2care.models.notification import AdminNotification
from concern2care.models.submission import Submission

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    *,
    submission_id: int,
    type: NotificationType,
    title: str,
    message: Optional[str] = None,
    priority: NotificationPriority = NotificationPriority.normal,
    admin_id: Optional[str] = None,
    commit: bool = True,
) -> AdminNotification:
    """
    Pass commit=False to write the notification in the caller's
    transaction (e.g. together with the submission that triggered it).
    """
    if db.get(Submission, submission_id) is None:
        raise NotFoundError(f"submission {submission_id} not found")

    notification = AdminNotification(
        submission_id=submission_id,
        type=NotificationType(type),
        status=NotificationStatus.unread,
        priority=NotificationPriority(priority),
        title=title,
        message=message,
        admin_id=admin_id,
    )
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    else:
        db.flush()

    logger.info(f"Created {notification.type.value} notification for submission {submission_id}")
    return notification


def get_notification(db: Session, notification_id: int) -> Optional[AdminNotification]:
    return db.get(AdminNotification, notification_id)


def _require_notification(db: Session, notification_id: int) -> AdminNotification:
    notification = get_notification(db, notification_id)
    if notification is None:
        raise NotFoundError(f"notification {notification_id} not found")
    return notification


def list_notifications(
    db: Session,
    *,
    status: Optional[NotificationStatus] = None,
    type: Optional[NotificationType] = None,
    submission_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[AdminNotification]:
    query = db.query(AdminNotification)
    if status is not None:
        query = query.filter(AdminNotification.status == status)
    if type is not None:
        query = query.filter(AdminNotification.type == type)
    if submission_id is not None:
        query = query.filter(AdminNotification.submission_id == submission_id)
    return (
        query.order_by(AdminNotification.created_at.desc(), AdminNotification.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def mark_read(
    db: Session,
    notification_id: int,
    *,
    admin_id: Optional[str] = None,
    now: datetime | None = None,
) -> AdminNotification:
    notification = _require_notification(db, notification_id)
    # resolved stays resolved
    if notification.status == NotificationStatus.unread:
        notification.status = NotificationStatus.read
        notification.read_at = now or datetime.now(timezone.utc)
    if admin_id:
        notification.admin_id = admin_id
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification


def mark_resolved(
    db: Session,
    notification_id: int,
    *,
    admin_id: Optional[str] = None,
    now: datetime | None = None,
) -> AdminNotification:
    now = now or datetime.now(timezone.utc)
    notification = _require_notification(db, notification_id)
    notification.status = NotificationStatus.resolved
    notification.resolved_at = now
    if notification.read_at is None:
        notification.read_at = now
    if admin_id:
        notification.admin_id = admin_id
    db.add(notification)
    db.commit()
    db.refresh(notification)
    return notification
