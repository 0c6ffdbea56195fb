# services/user_management/models/subjects.py

from sqlalchemy import Column, String, Boolean, ForeignKey, UniqueConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from shared.db import Base
import uuid

# Course offered within exactly one grade
class Subject(Base):
    __tablename__ = "subjects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)  # e.g., "Physics"
    code = Column(String, nullable=False)  # e.g., "PHY10"
    grade_id = Column(UUID(as_uuid=True), ForeignKey("grades.id"), nullable=False)

    __table_args__ = (
        UniqueConstraint("grade_id", "code", name="uq_subject_grade_code"),
        Index("ix_subject_grade_id", "grade_id"),
    )

    grade = relationship("Grade", back_populates="subjects")


# Curriculum stream within a grade, e.g. "Grade 10 Science"
class SubjectGroup(Base):
    __tablename__ = "subject_groups"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    grade_id = Column(UUID(as_uuid=True), ForeignKey("grades.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("grade_id", "name", name="uq_subject_group_grade_name"),
    )

    grade = relationship("Grade", back_populates="subject_groups")
    assignments = relationship("SubjectGroupAssignment", back_populates="subject_group", cascade="all, delete-orphan")


# Subject bundled into a group
class SubjectGroupAssignment(Base):
    __tablename__ = "subject_group_assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    subject_group_id = Column(UUID(as_uuid=True), ForeignKey("subject_groups.id"), nullable=False)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)

    __table_args__ = (
        UniqueConstraint("subject_group_id", "subject_id", name="uq_subject_group_subject"),
    )

    subject_group = relationship("SubjectGroup", back_populates="assignments")
    subject = relationship("Subject")
