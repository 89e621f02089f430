# concern2care/api/v1/endpoints/classroom.py
from fastapi import APIRouter, Depends, status
from pydantic import EmailStr
from sqlalchemy.orm import Session

from concern2care.core.errors import NotFoundError
from concern2care.db.session import get_db
from concern2care.schemas.enrolled_teacher import UsageStatus
from concern2care.schemas.submission import SubmissionCreate, SubmissionPublic
from concern2care.services import submission_service, usage_service
from concern2care.services.ai_client import RecommendationClient, get_ai_client

router = APIRouter(prefix="/classroom", tags=["classroom"])


@router.post("/submissions", response_model=SubmissionPublic, status_code=status.HTTP_201_CREATED)
def create_submission(
    obj_in: SubmissionCreate,
    db: Session = Depends(get_db),
    ai: RecommendationClient = Depends(get_ai_client),
):
    """
    Enrolled teacher submits a concern. The AI draft is attached right away
    and delivered after the review window unless the concern is urgent.
    """
    return submission_service.create_submission(db, obj_in=obj_in, ai=ai)


@router.get("/usage", response_model=UsageStatus)
def get_usage(email: EmailStr, db: Session = Depends(get_db)):
    teacher = usage_service.get_teacher_by_email(db, email)
    if teacher is None:
        raise NotFoundError(f"{email} is not an enrolled teacher")
    return usage_service.check_usage_limit(db, teacher.id)
