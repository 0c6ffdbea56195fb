# services/user_management/models/grades.py
from sqlalchemy import Column, String, DateTime, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from shared.db import Base
import uuid

class Grade(Base):
    __tablename__ = "grades"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)           # E.g., "Grade 10"
    academic_year = Column(String, nullable=False)  # E.g., "2025"
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("name", "academic_year", name="uq_grade_name_year"),
    )

    subjects = relationship("Subject", back_populates="grade")
    subject_groups = relationship("SubjectGroup", back_populates="grade")
