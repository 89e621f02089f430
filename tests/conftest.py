"""Test configuration and fixtures."""

import os

# Must be set before concern2care.db.session builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AI_API_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from concern2care.core.errors import AIServiceError
from concern2care.db.base import Base
from concern2care.models import EnrolledTeacher, Submission
from concern2care.models.enums import SeverityLevel, SubmissionStatus, TaskType
from concern2care.schemas.submission import SubmissionCreate
from concern2care.services.ai_client import DISCLAIMER, Recommendation


# Fixed clock for service-level tests
NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


def naive(dt: datetime) -> datetime:
    """SQLite hands datetimes back without tzinfo."""
    return dt.replace(tzinfo=None)


class FakeAIClient:
    """Stands in for the AI recommendation service."""

    def __init__(self, text: str = "Use a visual schedule and check in every 10 minutes.", fail: bool = False):
        self.text = text
        self.fail = fail
        self.calls = []
        self.follow_up_calls = []

    def generate_recommendations(self, req):
        self.calls.append(req)
        if self.fail:
            raise AIServiceError("AI service request failed: timeout")
        return Recommendation(text=self.text, disclaimer=DISCLAIMER)

    def follow_up_assistance(self, *, original_recommendations, question, req):
        self.follow_up_calls.append((original_recommendations, question, req))
        return Recommendation(text=f"Guidance for: {question}", disclaimer="")


class FakeEmailSender:
    """Records sends; can fail everything or selected recipients."""

    def __init__(self, ok: bool = True, raises: Exception | None = None, fail_for=()):
        self.ok = ok
        self.raises = raises
        self.fail_for = set(fail_for)
        self.sent = []
        self._lock = threading.Lock()

    def send(self, recipient, subject, body, reply_to=None):
        with self._lock:
            self.sent.append({"recipient": recipient, "subject": subject, "body": body})
        if self.raises is not None:
            raise self.raises
        if recipient in self.fail_for:
            return False
        return self.ok


@pytest.fixture(scope="function")
def engine():
    """In-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def file_session_factory(tmp_path):
    """File-backed database so threads get real, separate connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def fake_ai():
    return FakeAIClient()


@pytest.fixture
def fake_sender():
    return FakeEmailSender()


def make_teacher(db, *, email="jordan.lee@school.org", used=0, limit=5, active=True, last_reset=NOW):
    teacher = EnrolledTeacher(
        first_name="Jordan",
        last_name="Lee",
        email=email,
        position="4th Grade Teacher",
        school="Maple Elementary",
        requests_used=used,
        requests_limit=limit,
        last_usage_reset=last_reset,
        is_active=active,
        created_at=last_reset or NOW,
    )
    db.add(teacher)
    db.commit()
    db.refresh(teacher)
    return teacher


def make_submission(
    db,
    teacher,
    *,
    status=SubmissionStatus.pending,
    auto_send_time=NOW,
    urgent=False,
    ai_draft="Seat the student near the teacher and chunk tasks.",
    severity=SeverityLevel.moderate,
):
    submission = Submission(
        teacher_id=teacher.id,
        student_first_name="Sam",
        student_last_initial="R",
        student_age=9,
        student_grade="4",
        task_type=TaskType.tier2_intervention,
        learning_profile=["ADHD"],
        concern_types=["attention"],
        concern_description="Has trouble staying on task during independent work.",
        severity_level=severity,
        actions_taken=["parent contact"],
        flagged_keywords=[],
        ai_draft=ai_draft,
        ai_disclaimer=DISCLAIMER,
        urgent_flag=urgent,
        status=status,
        auto_send_time=auto_send_time,
        created_at=NOW - timedelta(minutes=30),
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def submission_form(**overrides) -> SubmissionCreate:
    data = {
        "teacher_email": "jordan.lee@school.org",
        "student_first_name": "Sam",
        "student_last_initial": "r",
        "student_age": 9,
        "student_grade": "4",
        "task_type": "tier2_intervention",
        "learning_profile": ["ADHD"],
        "concern_types": ["attention", "work completion"],
        "concern_description": "Has trouble staying on task during independent reading.",
        "severity_level": "moderate",
        "actions_taken": ["parent contact", "seat change"],
    }
    data.update(overrides)
    return SubmissionCreate(**data)


@pytest.fixture
def teacher(db_session):
    return make_teacher(db_session)
