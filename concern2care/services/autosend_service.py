# concern2care/services/autosend_service.py
"""
Auto-send sweep.

Each run first returns stale ``sending`` rows to the state they were
claimed from, then walks the
due submissions oldest-first: claim, send, mark sent or revert. Several
sweeps may run at once; the conditional claim keeps them from sending the
same submission twice.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from concern2care.core.config import settings
from concern2care.models.enums import SubmissionStatus
from concern2care.models.submission import Submission
from concern2care.services import delivery_service
from concern2care.services.email_sender import EmailSender, get_email_sender

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SweepResult:
    reclaimed: int = 0
    claimed: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "reclaimed": self.reclaimed,
            "claimed": self.claimed,
            "sent": self.sent,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


def list_due_submissions(
    db: Session,
    *,
    now: datetime,
    limit: Optional[int] = None,
) -> List[int]:
    query = (
        db.query(Submission.id)
        .filter(*delivery_service.eligibility_filter(now))
        .order_by(Submission.auto_send_time.asc(), Submission.id.asc())
    )
    if limit is not None:
        query = query.limit(limit)
    return [row.id for row in query.all()]


def reclaim_stale_claims(
    db: Session,
    *,
    now: datetime | None = None,
    timeout: timedelta | None = None,
) -> int:
    """
    Put rows stuck in ``sending`` past the timeout back to the state they
    were claimed from, so a crashed manual send on a held or urgent
    submission does not become eligible for auto-send.
    """
    now = now or datetime.now(timezone.utc)
    timeout = timeout or timedelta(minutes=settings.STALE_CLAIM_TIMEOUT_MINUTES)
    cutoff = now - timeout
    stale = (
        db.query(Submission.id, Submission.claimed_at, Submission.claimed_from)
        .filter(
            Submission.status == SubmissionStatus.sending,
            Submission.claimed_at.isnot(None),
            Submission.claimed_at <= cutoff,
        )
        .all()
    )

    reclaimed = 0
    for row in stale:
        restore_to = row.claimed_from or SubmissionStatus.pending
        # Same claim still in place; a fresh claim or a finished send is left alone
        rows = (
            db.query(Submission)
            .filter(
                Submission.id == row.id,
                Submission.status == SubmissionStatus.sending,
                Submission.claimed_at == row.claimed_at,
            )
            .update(
                {
                    Submission.status: restore_to,
                    Submission.claimed_at: None,
                    Submission.claimed_from: None,
                    Submission.last_send_error: "claim expired",
                },
                synchronize_session=False,
            )
        )
        if rows:
            reclaimed += rows
            logger.info(f"Submission {row.id} claim expired, back to {restore_to.value}")
    db.commit()
    if reclaimed:
        logger.warning(f"Reclaimed {reclaimed} submission(s) stuck in sending since before {cutoff.isoformat()}")
    return reclaimed


def process_submission(
    db: Session,
    submission_id: int,
    *,
    sender: EmailSender,
    now: datetime,
) -> str:
    """Returns "skipped", "sent" or "failed"."""
    submission = delivery_service.claim_submission(db, submission_id, now=now)
    if submission is None:
        logger.info(f"Submission {submission_id} already claimed or no longer eligible, skipping")
        return "skipped"

    logger.info(f"Claimed submission {submission_id} for auto-send")
    outcome = delivery_service.deliver(submission, sender)
    if not outcome.sent:
        delivery_service.revert_claim(
            db,
            submission_id,
            to_status=SubmissionStatus.pending,
            error=outcome.error,
            retry_delay=timedelta(minutes=settings.SEND_RETRY_DELAY_MINUTES),
            now=now,
        )
        return "failed"

    delivery_service.mark_sent(
        db,
        submission_id,
        text=outcome.text,
        final_status=SubmissionStatus.auto_sent,
        now=now,
    )
    logger.info(f"Auto-sent submission {submission_id} to {submission.teacher.email}")
    return "sent"


def run_sweep(
    db: Session,
    *,
    sender: EmailSender | None = None,
    now: datetime | None = None,
    batch_size: Optional[int] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> SweepResult:
    """
    ``now`` pins the whole sweep to one instant. Otherwise ``clock`` (the
    wall clock by default) is read again for every claim, so ``claimed_at``
    is the time the row was actually claimed rather than when the batch
    started.
    """
    if clock is None:
        clock = (lambda: now) if now is not None else _utcnow
    sender = sender or get_email_sender()
    result = SweepResult()

    started = clock()
    result.reclaimed = reclaim_stale_claims(db, now=started)

    due_ids = list_due_submissions(db, now=started, limit=batch_size)
    if not due_ids:
        logger.info("No submissions ready for auto-send")
        return result

    logger.info(f"Found {len(due_ids)} submission(s) ready for auto-send")
    for submission_id in due_ids:
        try:
            outcome = process_submission(db, submission_id, sender=sender, now=clock())
        except Exception as e:
            # One bad row must not stop the batch; a stale claim is picked up later
            db.rollback()
            logger.error(f"Failed to process submission {submission_id}: {e}", exc_info=True)
            result.failed += 1
            result.errors.append(f"Submission {submission_id}: {e}")
            continue

        if outcome == "skipped":
            result.skipped += 1
            continue
        result.claimed += 1
        if outcome == "sent":
            result.sent += 1
        else:
            result.failed += 1
            result.errors.append(f"Submission {submission_id}: send failed, claim reverted")

    logger.info(
        f"Auto-send sweep complete: {result.sent} sent, {result.failed} failed, "
        f"{result.skipped} skipped, {result.reclaimed} reclaimed"
    )
    return result
