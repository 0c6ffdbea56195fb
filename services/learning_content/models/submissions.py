# services/learning_content/models/submissions.py
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, JSON, UniqueConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from shared.db import Base
import uuid

# A student's hand-in for an assignment; one row per (assignment, student)
class Submission(Base):
    __tablename__ = "assignment_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assignment_id = Column(UUID(as_uuid=True), ForeignKey("assignments.id"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    submission_text = Column(Text)
    file_url = Column(String)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    grade = Column(Integer)  # points awarded, out of the assignment's max_points
    feedback = Column(Text)
    graded_at = Column(DateTime(timezone=True))
    graded_by = Column(UUID(as_uuid=True), ForeignKey("users.id"))

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
        Index("ix_submission_student", "student_id"),
    )

    assignment = relationship("Assignment")
    student = relationship("User", foreign_keys=[student_id])


# A student's single completed attempt at a quiz
class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(UUID(as_uuid=True), ForeignKey("quizzes.id"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    answers = Column(JSON, nullable=False, default=list)
    score = Column(Integer, nullable=False, default=0)
    max_score = Column(Integer, nullable=False, default=0)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("quiz_id", "student_id", name="uq_quiz_attempt_quiz_student"),
        Index("ix_quiz_attempt_student", "student_id"),
    )

    quiz = relationship("Quiz")
    student = relationship("User")
