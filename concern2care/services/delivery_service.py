# concern2care/services/delivery_service.py
"""
Claim / send / revert primitives shared by the auto-send sweep and the
admin "send now" action.

The claim is a compare-and-swap on ``status``: an UPDATE whose WHERE clause
repeats the eligibility predicate. Its rowcount is the only thing that
decides who owns a submission. The email itself is sent after the claim has
committed, outside any transaction.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from concern2care.models.enums import (
    CLAIMABLE_STATUSES,
    SeverityLevel,
    SubmissionStatus,
    TaskType,
)
from concern2care.models.submission import Submission
from concern2care.services.ai_client import DISCLAIMER
from concern2care.services.email_sender import EmailSender

logger = logging.getLogger(__name__)

URGENT_NOTICE = (
    "This concern was marked urgent. Please contact your school's student support "
    "department today so the student receives coordinated care."
)


@dataclass
class DeliveryOutcome:
    sent: bool
    text: Optional[str] = None
    error: Optional[str] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def eligibility_filter(now: datetime) -> tuple:
    """Predicate for unattended auto-send."""
    return (
        Submission.status.in_(CLAIMABLE_STATUSES),
        Submission.auto_send_time.isnot(None),
        Submission.auto_send_time <= now,
        Submission.urgent_flag.is_(False),
    )


def claim_submission(
    db: Session,
    submission_id: int,
    *,
    now: datetime | None = None,
) -> Optional[Submission]:
    """
    Scheduler claim. Returns None when another run got there first or the
    submission stopped being eligible (admin hold, cancel, urgent, not due).
    """
    now = now or _utcnow()
    rows = (
        db.query(Submission)
        .filter(Submission.id == submission_id, *eligibility_filter(now))
        .update(
            {
                Submission.status: SubmissionStatus.sending,
                Submission.claimed_at: now,
                # SET reads the pre-update status
                Submission.claimed_from: Submission.status,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    if rows == 0:
        return None
    return db.get(Submission, submission_id)


def claim_for_manual_send(
    db: Session,
    submission_id: int,
    *,
    from_statuses: Iterable[SubmissionStatus],
    admin_id: str,
    reviewed_text: Optional[str] = None,
    now: datetime | None = None,
) -> bool:
    """Admin claim; ignores the timer and the urgent flag."""
    now = now or _utcnow()
    values = {
        Submission.status: SubmissionStatus.sending,
        Submission.claimed_at: now,
        Submission.claimed_from: Submission.status,
        Submission.admin_reviewed_by: admin_id,
    }
    if reviewed_text is not None:
        values[Submission.reviewed_text] = reviewed_text
    rows = (
        db.query(Submission)
        .filter(Submission.id == submission_id, Submission.status.in_(list(from_statuses)))
        .update(values, synchronize_session=False)
    )
    db.commit()
    return rows == 1


def revert_claim(
    db: Session,
    submission_id: int,
    *,
    to_status: SubmissionStatus = SubmissionStatus.pending,
    error: Optional[str] = None,
    retry_delay: Optional[timedelta] = None,
    now: datetime | None = None,
) -> bool:
    """
    sending -> to_status, only while the row is still ``sending``; never
    overwrites a state someone else has set in the meantime.
    """
    now = now or _utcnow()
    values = {
        Submission.status: to_status,
        Submission.claimed_at: None,
        Submission.claimed_from: None,
        Submission.send_attempts: Submission.send_attempts + 1,
        Submission.last_send_error: error,
    }
    if retry_delay is not None:
        values[Submission.auto_send_time] = now + retry_delay
    rows = (
        db.query(Submission)
        .filter(Submission.id == submission_id, Submission.status == SubmissionStatus.sending)
        .update(values, synchronize_session=False)
    )
    db.commit()
    if rows:
        logger.warning(f"Reverted claim on submission {submission_id} -> {to_status.value}: {error}")
    else:
        logger.warning(f"Claim on submission {submission_id} was already released, revert skipped")
    return bool(rows)


def mark_sent(
    db: Session,
    submission_id: int,
    *,
    text: str,
    final_status: SubmissionStatus = SubmissionStatus.auto_sent,
    now: datetime | None = None,
) -> bool:
    """
    Record a completed delivery. Also matches a row a stale-claim sweep has
    already put back in the pool, since the email is out and a second send
    would duplicate it; hold/cancelled rows are left alone.
    """
    now = now or _utcnow()
    rows = (
        db.query(Submission)
        .filter(
            Submission.id == submission_id,
            Submission.status.in_([SubmissionStatus.sending, *CLAIMABLE_STATUSES]),
        )
        .update(
            {
                Submission.status: final_status,
                Submission.sent_text: text,
                Submission.sent_at: now,
                Submission.disclaimer_attached: True,
                Submission.claimed_at: None,
                Submission.claimed_from: None,
                Submission.last_send_error: None,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    if not rows:
        logger.error(f"Submission {submission_id} was delivered but its status changed before it could be recorded")
    return bool(rows)


def universal_disclaimer(submission: Submission) -> str:
    disclaimer = submission.ai_disclaimer or DISCLAIMER
    if submission.severity_level == SeverityLevel.urgent or submission.urgent_flag:
        disclaimer = f"{disclaimer}\n\n{URGENT_NOTICE}"
    return disclaimer


def build_email(submission: Submission, text: str) -> tuple[str, str]:
    teacher = submission.teacher
    task_label = (
        "Differentiation Strategies"
        if submission.task_type == TaskType.differentiation
        else "Tier 2 Intervention"
    )
    subject = f"Classroom Solutions: {task_label} - {submission.severity_level.value} Priority"
    body = (
        f"Dear {teacher.first_name},\n\n"
        "Your AI-generated classroom solution is ready:\n\n"
        f"{text}\n\n"
        "---\n"
        f"{universal_disclaimer(submission)}\n\n"
        "Thank you for using Concern2Care."
    )
    return subject, body


def deliver(submission: Submission, sender: EmailSender) -> DeliveryOutcome:
    """Send a claimed submission. Never raises for provider failures."""
    text = submission.delivery_text
    if not text:
        return DeliveryOutcome(sent=False, error="missing AI draft")

    teacher = submission.teacher
    if teacher is None or not teacher.email or not teacher.first_name:
        return DeliveryOutcome(sent=False, error="missing teacher contact data")

    subject, body = build_email(submission, text)
    try:
        ok = sender.send(teacher.email, subject, body)
    except Exception as e:
        logger.error(f"Email sending raised for submission {submission.id}: {e}", exc_info=True)
        return DeliveryOutcome(sent=False, text=text, error=str(e) or e.__class__.__name__)

    if not ok:
        return DeliveryOutcome(sent=False, text=text, error="email provider rejected the message")
    return DeliveryOutcome(sent=True, text=text)
