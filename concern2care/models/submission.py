# concern2care/models/submission.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from concern2care.db.base import Base
from concern2care.models.enums import (
    SeverityLevel,
    SubmissionStatus,
    TaskType,
)


class Submission(Base):
    __tablename__ = "classroom_submissions"

    id = Column(Integer, primary_key=True, index=True)

    teacher_id = Column(Integer, ForeignKey("enrolled_teachers.id"), nullable=False, index=True)

    # Anonymized student descriptors
    student_first_name = Column(String(100), nullable=False)
    student_last_initial = Column(String(1), nullable=False)
    student_age = Column(Integer, nullable=False)
    student_grade = Column(String(20), nullable=False)

    task_type = Column(SQLEnum(TaskType, native_enum=False, length=30), nullable=False)
    learning_profile = Column(JSON, default=list)
    concern_types = Column(JSON, default=list)
    concern_description = Column(Text, nullable=False)
    severity_level = Column(SQLEnum(SeverityLevel, native_enum=False, length=20), nullable=False)
    actions_taken = Column(JSON, default=list)
    flagged_keywords = Column(JSON, default=list)

    # Draft from the AI service, admin edit, and what actually went out
    ai_draft = Column(Text, nullable=True)
    ai_disclaimer = Column(Text, nullable=True)
    reviewed_text = Column(Text, nullable=True)
    sent_text = Column(Text, nullable=True)
    disclaimer_attached = Column(Boolean, nullable=False, default=False)

    urgent_flag = Column(Boolean, nullable=False, default=False, index=True)

    # pending / approved / urgent_flagged / hold / cancelled / sending / auto_sent / completed
    status = Column(
        SQLEnum(SubmissionStatus, native_enum=False, length=20),
        nullable=False,
        default=SubmissionStatus.pending,
        index=True,
    )

    auto_send_time = Column(DateTime(timezone=True), nullable=True, index=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)
    # State the claim was taken from; a stale claim goes back there
    claimed_from = Column(SQLEnum(SubmissionStatus, native_enum=False, length=20), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    send_attempts = Column(Integer, nullable=False, default=0)
    last_send_error = Column(Text, nullable=True)

    admin_reviewed_by = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    teacher = relationship("EnrolledTeacher", back_populates="submissions")
    notifications = relationship("AdminNotification", back_populates="submission")

    def __repr__(self):
        return f"<Submission(id={self.id}, status='{self.status.value if self.status else None}')>"

    @property
    def delivery_text(self) -> str | None:
        """Admin-edited text wins over the AI draft."""
        return self.reviewed_text or self.ai_draft
