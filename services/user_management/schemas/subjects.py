# services/user_management/schemas/subjects.py

from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID


class GradeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    academic_year: str = Field(..., min_length=1)

class GradeOut(BaseModel):
    id: UUID
    name: str
    academic_year: str

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    grade_id: UUID

class SubjectOut(BaseModel):
    id: UUID
    name: str
    code: str
    grade_id: UUID

    class Config:
        from_attributes = True

class SubjectGradeInfo(BaseModel):
    subject_name: str
    subject_code: str
    grade_name: Optional[str] = None


class SubjectGroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    grade_id: UUID

class SubjectGroupOut(BaseModel):
    id: UUID
    name: str
    grade_id: UUID
    is_active: bool
    subjects: List[SubjectOut] = []

class SkippedSubject(BaseModel):
    subject_id: UUID
    reason: str

class GroupMappingResult(BaseModel):
    mapped: List[UUID]
    skipped: List[SkippedSubject]


class SchoolStats(BaseModel):
    admins: int
    teachers: int
    students: int
    grades: int
    subjects: int
    active_teacher_assignments: int
    active_subject_enrollments: int
    published_items: int
