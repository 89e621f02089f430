# concern2care/services/usage_service.py
"""
Enrolled teacher management and the monthly request quota.

Every quota mutation is a single conditional UPDATE so two concurrent
submissions cannot both pass a stale check.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from concern2care.core.errors import ConflictError, LimitExceededError, NotFoundError
from concern2care.models.enrolled_teacher import EnrolledTeacher
from concern2care.schemas.enrolled_teacher import (
    EnrolledTeacherCreate,
    EnrolledTeacherUpdate,
    UsageStatus,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def get_teacher(db: Session, teacher_id: int) -> Optional[EnrolledTeacher]:
    return db.get(EnrolledTeacher, teacher_id)


def require_teacher(db: Session, teacher_id: int) -> EnrolledTeacher:
    teacher = get_teacher(db, teacher_id)
    if teacher is None:
        raise NotFoundError(f"enrolled teacher {teacher_id} not found")
    return teacher


def get_teacher_by_email(db: Session, email: str) -> Optional[EnrolledTeacher]:
    return (
        db.query(EnrolledTeacher)
        .filter(EnrolledTeacher.email == email.strip().lower())
        .first()
    )


def list_teachers(
    db: Session,
    *,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> List[EnrolledTeacher]:
    query = db.query(EnrolledTeacher)
    if active_only:
        query = query.filter(EnrolledTeacher.is_active.is_(True))
    return (
        query.order_by(EnrolledTeacher.last_name.asc(), EnrolledTeacher.first_name.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def enroll_teacher(
    db: Session,
    *,
    obj_in: EnrolledTeacherCreate,
    now: datetime | None = None,
) -> EnrolledTeacher:
    now = now or _utcnow()
    email = obj_in.email.strip().lower()
    if get_teacher_by_email(db, email) is not None:
        raise ConflictError(f"teacher {email} is already enrolled")

    teacher = EnrolledTeacher(
        first_name=obj_in.first_name,
        last_name=obj_in.last_name,
        email=email,
        position=obj_in.position,
        school=obj_in.school,
        requests_used=0,
        requests_limit=obj_in.requests_limit,
        last_usage_reset=now,
        is_active=True,
        enrolled_by=obj_in.enrolled_by,
        created_at=now,
    )
    db.add(teacher)
    db.commit()
    db.refresh(teacher)
    logger.info(f"Enrolled teacher {teacher.id} ({email}) with limit {teacher.requests_limit}")
    return teacher


def update_teacher(
    db: Session,
    *,
    db_obj: EnrolledTeacher,
    obj_in: EnrolledTeacherUpdate,
) -> EnrolledTeacher:
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def deactivate_teacher(db: Session, teacher_id: int) -> EnrolledTeacher:
    teacher = require_teacher(db, teacher_id)
    teacher.is_active = False
    db.add(teacher)
    db.commit()
    db.refresh(teacher)
    logger.info(f"Deactivated teacher {teacher_id}")
    return teacher


def _reset_if_due(db: Session, teacher_id: int, now: datetime) -> bool:
    """
    Calendar-month policy: due once the last reset (or enrollment, if never
    reset) falls before the start of the current month. Of several
    concurrent callers in a new month only the first one matches the row.
    """
    boundary = month_start(now)
    rows = (
        db.query(EnrolledTeacher)
        .filter(
            EnrolledTeacher.id == teacher_id,
            or_(
                EnrolledTeacher.last_usage_reset < boundary,
                and_(
                    EnrolledTeacher.last_usage_reset.is_(None),
                    EnrolledTeacher.created_at < boundary,
                ),
            ),
        )
        .update(
            {
                EnrolledTeacher.requests_used: 0,
                EnrolledTeacher.last_usage_reset: now,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    if rows:
        logger.info(f"Monthly usage reset for teacher {teacher_id}")
    return bool(rows)


def check_usage_limit(
    db: Session,
    teacher_id: int,
    *,
    now: datetime | None = None,
) -> UsageStatus:
    now = now or _utcnow()
    teacher = require_teacher(db, teacher_id)
    _reset_if_due(db, teacher_id, now)
    db.refresh(teacher)
    return UsageStatus(
        can_submit=bool(teacher.is_active) and teacher.requests_used < teacher.requests_limit,
        used=teacher.requests_used,
        limit=teacher.requests_limit,
    )


def increment_usage(
    db: Session,
    teacher_id: int,
    *,
    now: datetime | None = None,
) -> EnrolledTeacher:
    """
    Consume one request. Raises LimitExceededError when the conditional
    update matches no row; that outcome wins over any earlier check.
    """
    now = now or _utcnow()
    teacher = require_teacher(db, teacher_id)
    _reset_if_due(db, teacher_id, now)

    rows = (
        db.query(EnrolledTeacher)
        .filter(
            EnrolledTeacher.id == teacher_id,
            EnrolledTeacher.requests_used < EnrolledTeacher.requests_limit,
            EnrolledTeacher.is_active.is_(True),
        )
        .update(
            {EnrolledTeacher.requests_used: EnrolledTeacher.requests_used + 1},
            synchronize_session=False,
        )
    )
    db.commit()
    db.refresh(teacher)

    if rows == 0:
        logger.warning(
            f"Usage limit reached for teacher {teacher_id}: "
            f"{teacher.requests_used}/{teacher.requests_limit} (active={teacher.is_active})"
        )
        raise LimitExceededError(
            f"teacher {teacher_id} has no requests left this month",
            used=teacher.requests_used,
            limit=teacher.requests_limit,
        )
    return teacher


def reset_usage(
    db: Session,
    teacher_id: int,
    *,
    now: datetime | None = None,
) -> EnrolledTeacher:
    now = now or _utcnow()
    teacher = require_teacher(db, teacher_id)
    db.query(EnrolledTeacher).filter(EnrolledTeacher.id == teacher_id).update(
        {
            EnrolledTeacher.requests_used: 0,
            EnrolledTeacher.last_usage_reset: now,
        },
        synchronize_session=False,
    )
    db.commit()
    db.refresh(teacher)
    logger.info(f"Usage manually reset for teacher {teacher_id}")
    return teacher
