# concern2care/schemas/submission.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from concern2care.models.enums import SeverityLevel, SubmissionStatus, TaskType


class SubmissionCreate(BaseModel):
    """Teacher form; identifies the enrolled teacher by email."""
    teacher_email: EmailStr

    student_first_name: str = Field(min_length=1, max_length=100)
    student_last_initial: str = Field(min_length=1, max_length=1)
    student_age: int = Field(ge=3, le=22)
    student_grade: str = Field(min_length=1, max_length=20)

    task_type: TaskType
    learning_profile: list[str] = Field(default_factory=list)
    concern_types: list[str] = Field(min_length=1)
    concern_description: str = Field(min_length=10)
    severity_level: SeverityLevel
    actions_taken: list[str] = Field(default_factory=list)

    # Explicit "needs a human" marking from the teacher
    mark_urgent: bool = False

    model_config = {"extra": "forbid"}


class SubmissionReview(BaseModel):
    """Admin override; only the listed target statuses are accepted."""
    admin_id: str = Field(min_length=1)
    reviewed_text: str | None = None
    status: Literal["pending", "approved", "hold", "cancelled"] | None = None

    model_config = {"extra": "forbid"}


class ManualSendRequest(BaseModel):
    admin_id: str = Field(min_length=1)
    reviewed_text: str | None = None

    model_config = {"extra": "forbid"}


class FollowUpRequest(BaseModel):
    admin_id: str | None = None
    question: str = Field(min_length=1)

    model_config = {"extra": "forbid"}


class FollowUpResponse(BaseModel):
    submission_id: int
    assistance: str
    disclaimer: str
    notification_id: int


class SubmissionPublic(BaseModel):
    """What the submitting teacher gets back."""
    id: int
    teacher_id: int
    status: SubmissionStatus
    urgent_flag: bool
    auto_send_time: datetime | None = None
    sent_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubmissionDetail(SubmissionPublic):
    """Admin view with the draft and review fields."""
    student_first_name: str
    student_last_initial: str
    student_age: int
    student_grade: str
    task_type: TaskType
    learning_profile: list[str] = []
    concern_types: list[str] = []
    concern_description: str
    severity_level: SeverityLevel
    actions_taken: list[str] = []
    flagged_keywords: list[str] = []

    ai_draft: str | None = None
    ai_disclaimer: str | None = None
    reviewed_text: str | None = None
    sent_text: str | None = None
    disclaimer_attached: bool
    admin_reviewed_by: str | None = None
    claimed_at: datetime | None = None
    claimed_from: SubmissionStatus | None = None
    send_attempts: int = 0
    last_send_error: str | None = None
    updated_at: datetime | None = None


class SweepResultPublic(BaseModel):
    reclaimed: int
    claimed: int
    sent: int
    failed: int
    skipped: int
    errors: list[str]
