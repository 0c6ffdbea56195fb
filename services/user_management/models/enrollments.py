# services/user_management/models/enrollments.py
from sqlalchemy import Column, Boolean, DateTime, ForeignKey, UniqueConstraint, Index, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from shared.db import Base
import uuid

# Teacher may publish content into the subject
class TeacherAssignment(Base):
    __tablename__ = "teacher_assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    assigned_date = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("teacher_id", "subject_id", name="uq_teacher_assignment"),
        Index("ix_teacher_assignment_subject", "subject_id"),
    )

    teacher = relationship("User")
    subject = relationship("Subject")


# Student may read published content of the subject
class SubjectEnrollment(Base):
    __tablename__ = "subject_enrollments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    enrollment_date = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", name="uq_subject_enrollment"),
        Index("ix_subject_enrollment_subject", "subject_id"),
    )

    student = relationship("User")
    subject = relationship("Subject")


# A student's chosen grade + subject group; at most one active row per student
class StudentEnrollment(Base):
    __tablename__ = "student_enrollments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    grade_id = Column(UUID(as_uuid=True), ForeignKey("grades.id"), nullable=False)
    subject_group_id = Column(UUID(as_uuid=True), ForeignKey("subject_groups.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    enrollment_date = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index(
            "uq_student_enrollment_one_active",
            "student_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    grade = relationship("Grade")
    subject_group = relationship("SubjectGroup")
