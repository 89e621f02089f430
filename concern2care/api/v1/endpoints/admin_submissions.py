# concern2care/api/v1/endpoints/admin_submissions.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from concern2care.db.session import get_db
from concern2care.models.enums import SubmissionStatus
from concern2care.schemas.submission import (
    FollowUpRequest,
    FollowUpResponse,
    ManualSendRequest,
    SubmissionDetail,
    SubmissionReview,
    SweepResultPublic,
)
from concern2care.services import autosend_service, submission_service
from concern2care.services.ai_client import RecommendationClient, get_ai_client
from concern2care.services.email_sender import EmailSender, get_email_sender

router = APIRouter(prefix="/admin", tags=["admin-submissions"])


@router.get("/submissions", response_model=List[SubmissionDetail])
def list_submissions(
    db: Session = Depends(get_db),
    status: Optional[SubmissionStatus] = None,
    teacher_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
):
    return submission_service.list_submissions(
        db, status=status, teacher_id=teacher_id, skip=skip, limit=limit
    )


@router.get("/submissions/urgent", response_model=List[SubmissionDetail])
def list_urgent_submissions(db: Session = Depends(get_db)):
    return submission_service.get_urgent_submissions(db)


@router.get("/submissions/{submission_id}", response_model=SubmissionDetail)
def get_submission(submission_id: int, db: Session = Depends(get_db)):
    return submission_service.require_submission(db, submission_id)


@router.patch("/submissions/{submission_id}", response_model=SubmissionDetail)
def review_submission(
    submission_id: int,
    obj_in: SubmissionReview,
    db: Session = Depends(get_db),
):
    """
    Edit the draft and/or approve, hold or cancel. 409 once the scheduler
    has claimed the submission or it has been sent.
    """
    return submission_service.review_submission(db, submission_id, obj_in=obj_in)


@router.post("/submissions/{submission_id}/send", response_model=SubmissionDetail)
def send_submission_now(
    submission_id: int,
    obj_in: ManualSendRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    return submission_service.send_now(db, submission_id, obj_in=obj_in, sender=sender)


@router.post("/submissions/{submission_id}/follow-up", response_model=FollowUpResponse)
def request_follow_up(
    submission_id: int,
    obj_in: FollowUpRequest,
    db: Session = Depends(get_db),
    ai: RecommendationClient = Depends(get_ai_client),
):
    return submission_service.request_follow_up(db, submission_id, obj_in=obj_in, ai=ai)


@router.post("/auto-send/run", response_model=SweepResultPublic)
def run_auto_send_now(
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    """Force a sweep immediately instead of waiting for the worker."""
    result = autosend_service.run_sweep(db, sender=sender)
    return result.as_dict()
