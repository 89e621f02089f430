# concern2care/models/enrolled_teacher.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from concern2care.db.base import Base


class EnrolledTeacher(Base):
    """Classroom Solutions participant; not a full platform account."""

    __tablename__ = "enrolled_teachers"

    id = Column(Integer, primary_key=True, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    position = Column(String(100), nullable=False)
    school = Column(String(255), nullable=True)

    # Monthly quota; only a reset lowers requests_used
    requests_used = Column(Integer, nullable=False, default=0)
    requests_limit = Column(Integer, nullable=False, default=5)
    last_usage_reset = Column(DateTime(timezone=True), nullable=True)

    # Deactivated rather than deleted so submission history survives
    is_active = Column(Boolean, nullable=False, default=True)
    enrolled_by = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    submissions = relationship("Submission", back_populates="teacher")

    def __repr__(self):
        return f"<EnrolledTeacher(id={self.id}, email='{self.email}')>"
