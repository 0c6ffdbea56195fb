# services/learning_content/schemas/content.py

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ContentItemCreate(BaseModel):
    subject_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    content_type: str = "document"
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    is_published: bool = False

class ContentItemOut(BaseModel):
    id: UUID
    title: str
    description: Optional[str]
    content_type: str
    file_url: Optional[str]
    file_name: Optional[str]
    subject_id: UUID
    teacher_id: UUID
    is_published: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentCreate(BaseModel):
    subject_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    due_date: datetime
    max_points: int = Field(100, gt=0)
    file_url: Optional[str] = None
    is_published: bool = False

class AssignmentOut(BaseModel):
    id: UUID
    title: str
    description: Optional[str]
    due_date: datetime
    max_points: int
    file_url: Optional[str]
    subject_id: UUID
    teacher_id: UUID
    is_published: bool
    created_at: datetime

    class Config:
        from_attributes = True


class QuizCreate(BaseModel):
    subject_id: UUID
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    time_limit_minutes: Optional[int] = Field(None, gt=0)
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    is_published: bool = False

class QuizOut(BaseModel):
    id: UUID
    title: str
    description: Optional[str]
    time_limit_minutes: Optional[int]
    questions: List[Dict[str, Any]]
    subject_id: UUID
    teacher_id: UUID
    is_published: bool
    created_at: datetime

    class Config:
        from_attributes = True


class PublishToggle(BaseModel):
    is_published: bool


class ContentFeedOut(BaseModel):
    materials: List[ContentItemOut]
    assignments: List[AssignmentOut]
    quizzes: List[QuizOut]

    class Config:
        from_attributes = True
