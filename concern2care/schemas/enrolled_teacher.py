# concern2care/schemas/enrolled_teacher.py
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from concern2care.core.config import settings


class EnrolledTeacherBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    position: str = Field(min_length=1, max_length=100)
    school: str | None = None


class EnrolledTeacherCreate(EnrolledTeacherBase):
    requests_limit: int = Field(
        default=settings.DEFAULT_REQUESTS_LIMIT, ge=1, le=settings.MAX_REQUESTS_LIMIT
    )
    enrolled_by: str | None = None

    model_config = {"extra": "forbid"}


class EnrolledTeacherUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    position: str | None = Field(default=None, min_length=1, max_length=100)
    school: str | None = None
    requests_limit: int | None = Field(default=None, ge=1, le=settings.MAX_REQUESTS_LIMIT)

    model_config = {"extra": "forbid"}


class EnrolledTeacherPublic(EnrolledTeacherBase):
    id: int
    requests_used: int
    requests_limit: int
    last_usage_reset: datetime | None = None
    is_active: bool
    enrolled_by: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UsageStatus(BaseModel):
    """Result of a quota check; a full quota is a value, not an error."""
    can_submit: bool
    used: int
    limit: int
