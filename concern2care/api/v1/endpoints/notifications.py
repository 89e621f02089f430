# concern2care/api/v1/endpoints/notifications.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from concern2care.db.session import get_db
from concern2care.models.enums import NotificationStatus, NotificationType
from concern2care.schemas.notification import NotificationPublic
from concern2care.services import notification_service

router = APIRouter(prefix="/admin/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationPublic])
def list_notifications(
    db: Session = Depends(get_db),
    status: Optional[NotificationStatus] = None,
    type: Optional[NotificationType] = None,
    submission_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
):
    return notification_service.list_notifications(
        db, status=status, type=type, submission_id=submission_id, skip=skip, limit=limit
    )


@router.post("/{notification_id}/read", response_model=NotificationPublic)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    admin_id: Optional[str] = None,
):
    return notification_service.mark_read(db, notification_id, admin_id=admin_id)


@router.post("/{notification_id}/resolve", response_model=NotificationPublic)
def mark_resolved(
    notification_id: int,
    db: Session = Depends(get_db),
    admin_id: Optional[str] = None,
):
    return notification_service.mark_resolved(db, notification_id, admin_id=admin_id)
