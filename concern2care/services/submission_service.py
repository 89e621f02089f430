# concern2care/services/submission_service.py
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from concern2care.core.config import settings
from concern2care.core.errors import (
    LimitExceededError,
    NotFoundError,
    SendFailure,
    SubmissionConflictError,
)
from concern2care.models.enums import (
    REVIEWABLE_STATUSES,
    NotificationPriority,
    NotificationType,
    SeverityLevel,
    SubmissionStatus,
)
from concern2care.models.submission import Submission
from concern2care.schemas.submission import (
    FollowUpRequest,
    FollowUpResponse,
    ManualSendRequest,
    SubmissionCreate,
    SubmissionReview,
)
from concern2care.services import delivery_service, notification_service, usage_service
from concern2care.services.ai_client import ConcernDescriptor, RecommendationClient
from concern2care.services.email_sender import EmailSender

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def detect_urgent_keywords(text: str, keywords: Optional[Iterable[str]] = None) -> List[str]:
    """Whole-word, case-insensitive keyword hits in the concern description."""
    if keywords is None:
        keywords = settings.URGENT_KEYWORDS
    found = []
    for keyword in keywords:
        if re.search(rf"\b{re.escape(keyword)}\b", text, re.IGNORECASE):
            found.append(keyword)
    return found


def _descriptor(
    obj: SubmissionCreate | Submission,
) -> ConcernDescriptor:
    return ConcernDescriptor(
        student_first_name=obj.student_first_name,
        student_last_initial=obj.student_last_initial,
        student_age=obj.student_age,
        student_grade=obj.student_grade,
        task_type=obj.task_type.value,
        concern_types=list(obj.concern_types or []),
        concern_description=obj.concern_description,
        severity_level=obj.severity_level.value,
        actions_taken=list(obj.actions_taken or []),
        learning_profile=list(obj.learning_profile or []),
    )


def create_submission(
    db: Session,
    *,
    obj_in: SubmissionCreate,
    ai: RecommendationClient,
    now: datetime | None = None,
) -> Submission:
    """
    Enrolled teacher submits a concern.

    quota check -> atomic increment -> AI draft -> urgency check -> schedule.
    A full quota is rejected before the AI is called.
    """
    now = now or _utcnow()

    teacher = usage_service.get_teacher_by_email(db, obj_in.teacher_email)
    if teacher is None or not teacher.is_active:
        raise NotFoundError(f"no active enrolled teacher for {obj_in.teacher_email}")

    usage = usage_service.check_usage_limit(db, teacher.id, now=now)
    if not usage.can_submit:
        logger.info(f"Rejected submission from teacher {teacher.id}: {usage.used}/{usage.limit} used")
        raise LimitExceededError(
            f"monthly request limit reached ({usage.used}/{usage.limit})",
            used=usage.used,
            limit=usage.limit,
        )

    usage_service.increment_usage(db, teacher.id, now=now)

    # AIServiceError propagates; no submission is stored without a draft
    recommendation = ai.generate_recommendations(_descriptor(obj_in))

    flagged = detect_urgent_keywords(obj_in.concern_description)
    urgent = (
        bool(flagged)
        or obj_in.severity_level == SeverityLevel.urgent
        or obj_in.mark_urgent
    )

    submission = Submission(
        teacher_id=teacher.id,
        student_first_name=obj_in.student_first_name,
        student_last_initial=obj_in.student_last_initial.upper(),
        student_age=obj_in.student_age,
        student_grade=obj_in.student_grade,
        task_type=obj_in.task_type,
        learning_profile=list(obj_in.learning_profile),
        concern_types=list(obj_in.concern_types),
        concern_description=obj_in.concern_description,
        severity_level=obj_in.severity_level,
        actions_taken=list(obj_in.actions_taken),
        flagged_keywords=flagged,
        ai_draft=recommendation.text,
        ai_disclaimer=recommendation.disclaimer,
        disclaimer_attached=False,
        urgent_flag=urgent,
        created_at=now,
    )
    if urgent:
        submission.status = SubmissionStatus.urgent_flagged
        submission.auto_send_time = None
    else:
        submission.status = SubmissionStatus.pending
        submission.auto_send_time = now + timedelta(minutes=settings.AUTO_SEND_DELAY_MINUTES)

    db.add(submission)
    db.flush()

    if urgent:
        reasons = []
        if flagged:
            reasons.append(f"flagged keywords: {', '.join(flagged)}")
        if obj_in.severity_level == SeverityLevel.urgent:
            reasons.append("severity marked urgent")
        if obj_in.mark_urgent:
            reasons.append("teacher requested review")
        notification_service.create_notification(
            db,
            submission_id=submission.id,
            type=NotificationType.urgent,
            title=(
                f"Urgent submission for {submission.student_first_name} "
                f"{submission.student_last_initial}. requires review"
            ),
            message="; ".join(reasons),
            priority=NotificationPriority.high,
            commit=False,
        )

    db.commit()
    db.refresh(submission)

    if urgent:
        logger.warning(f"Submission {submission.id} flagged urgent, auto-send disabled")
    else:
        logger.info(f"Submission {submission.id} scheduled for auto-send at {submission.auto_send_time}")
    return submission


def get_submission(db: Session, submission_id: int) -> Optional[Submission]:
    return db.get(Submission, submission_id)


def require_submission(db: Session, submission_id: int) -> Submission:
    submission = get_submission(db, submission_id)
    if submission is None:
        raise NotFoundError(f"submission {submission_id} not found")
    return submission


def list_submissions(
    db: Session,
    *,
    status: Optional[SubmissionStatus] = None,
    teacher_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Submission]:
    query = db.query(Submission)
    if status is not None:
        query = query.filter(Submission.status == status)
    if teacher_id is not None:
        query = query.filter(Submission.teacher_id == teacher_id)
    return (
        query.order_by(Submission.created_at.desc(), Submission.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_urgent_submissions(db: Session) -> List[Submission]:
    """Admin triage queue; the sweep never touches these."""
    return (
        db.query(Submission)
        .filter(
            Submission.urgent_flag.is_(True),
            Submission.status.in_([SubmissionStatus.pending, SubmissionStatus.urgent_flagged]),
        )
        .order_by(Submission.created_at.asc(), Submission.id.asc())
        .all()
    )


def review_submission(
    db: Session,
    submission_id: int,
    *,
    obj_in: SubmissionReview,
) -> Submission:
    """
    Admin edit / approve / hold / cancel. Only lands while the submission is
    still reviewable; once the scheduler has claimed it the admin gets a
    conflict instead of a silent no-op.
    """
    submission = require_submission(db, submission_id)

    values = {Submission.admin_reviewed_by: obj_in.admin_id}
    if obj_in.reviewed_text is not None:
        values[Submission.reviewed_text] = obj_in.reviewed_text
    if obj_in.status is not None:
        values[Submission.status] = SubmissionStatus(obj_in.status)

    rows = (
        db.query(Submission)
        .filter(Submission.id == submission_id, Submission.status.in_(REVIEWABLE_STATUSES))
        .update(values, synchronize_session=False)
    )
    db.commit()
    db.refresh(submission)

    if rows == 0:
        logger.warning(
            f"Admin {obj_in.admin_id} review of submission {submission_id} rejected, "
            f"status is {submission.status.value}"
        )
        raise SubmissionConflictError(
            f"submission {submission_id} is {submission.status.value} and can no longer be changed"
        )

    logger.info(
        f"Admin {obj_in.admin_id} reviewed submission {submission_id} "
        f"(status={submission.status.value})"
    )
    return submission


def send_now(
    db: Session,
    submission_id: int,
    *,
    obj_in: ManualSendRequest,
    sender: EmailSender,
    now: datetime | None = None,
) -> Submission:
    """
    Admin-initiated send outside the scheduler; ends in ``completed``.
    On failure the submission goes back to the state it was claimed from.
    """
    now = now or _utcnow()
    submission = require_submission(db, submission_id)
    prior_status = submission.status
    if prior_status not in REVIEWABLE_STATUSES:
        raise SubmissionConflictError(
            f"submission {submission_id} is {prior_status.value} and cannot be sent"
        )

    claimed = delivery_service.claim_for_manual_send(
        db,
        submission_id,
        from_statuses=[prior_status],
        admin_id=obj_in.admin_id,
        reviewed_text=obj_in.reviewed_text,
        now=now,
    )
    db.refresh(submission)
    if not claimed:
        raise SubmissionConflictError(
            f"submission {submission_id} changed to {submission.status.value} before it could be sent"
        )

    outcome = delivery_service.deliver(submission, sender)
    if not outcome.sent:
        delivery_service.revert_claim(
            db, submission_id, to_status=prior_status, error=outcome.error, now=now
        )
        raise SendFailure(f"sending submission {submission_id} failed: {outcome.error}")

    delivery_service.mark_sent(
        db,
        submission_id,
        text=outcome.text,
        final_status=SubmissionStatus.completed,
        now=now,
    )
    db.refresh(submission)
    logger.info(f"Admin {obj_in.admin_id} sent submission {submission_id}")
    return submission


def request_follow_up(
    db: Session,
    submission_id: int,
    *,
    obj_in: FollowUpRequest,
    ai: RecommendationClient,
) -> FollowUpResponse:
    submission = require_submission(db, submission_id)
    original = submission.sent_text or submission.delivery_text or ""

    assistance = ai.follow_up_assistance(
        original_recommendations=original,
        question=obj_in.question,
        req=_descriptor(submission),
    )
    notification = notification_service.create_notification(
        db,
        submission_id=submission_id,
        type=NotificationType.followup,
        title=f"Follow-up requested for submission {submission_id}",
        message=obj_in.question,
        priority=NotificationPriority.normal,
        admin_id=obj_in.admin_id,
    )
    return FollowUpResponse(
        submission_id=submission_id,
        assistance=assistance.text,
        disclaimer=assistance.disclaimer,
        notification_id=notification.id,
    )
