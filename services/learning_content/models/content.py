# services/learning_content/models/content.py
from sqlalchemy import Column, String, Text, Boolean, Integer, DateTime, ForeignKey, JSON, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from shared.db import Base
import enum
import uuid

class ContentKind(str, enum.Enum):
    MATERIALS = "materials"
    ASSIGNMENTS = "assignments"
    QUIZZES = "quizzes"

# Learning material uploaded by a teacher (document, video, link)
class ContentItem(Base):
    __tablename__ = "learning_content"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    content_type = Column(String(50), nullable=False, default="document")
    file_url = Column(String)
    file_name = Column(String)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_learning_content_subject_published", "subject_id", "is_published"),
    )

    subject = relationship("Subject")


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    due_date = Column(DateTime(timezone=True), nullable=False)
    max_points = Column(Integer, nullable=False, default=100)
    file_url = Column(String)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_assignment_subject_published", "subject_id", "is_published"),
    )

    subject = relationship("Subject")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    time_limit_minutes = Column(Integer)
    questions = Column(JSON, nullable=False, default=list)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id"), nullable=False)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_quiz_subject_published", "subject_id", "is_published"),
    )

    subject = relationship("Subject")


MODELS_BY_KIND = {
    ContentKind.MATERIALS: ContentItem,
    ContentKind.ASSIGNMENTS: Assignment,
    ContentKind.QUIZZES: Quiz,
}
