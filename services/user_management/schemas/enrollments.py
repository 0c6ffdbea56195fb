# services/user_management/schemas/enrollments.py

from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime
from uuid import UUID

from services.user_management.schemas.subjects import SubjectOut


class TeacherAssignmentCreate(BaseModel):
    teacher_id: UUID
    subject_id: UUID

class TeacherAssignmentOut(BaseModel):
    id: UUID
    teacher_id: UUID
    subject_id: UUID
    is_active: bool
    assigned_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubjectEnrollmentCreate(BaseModel):
    student_id: UUID
    subject_id: UUID

class SubjectEnrollmentOut(BaseModel):
    id: UUID
    student_id: UUID
    subject_id: UUID
    is_active: bool
    enrollment_date: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnrollmentSelectionRequest(BaseModel):
    grade_id: UUID
    subject_group_id: UUID

class StudentEnrollmentOut(BaseModel):
    id: UUID
    student_id: UUID
    grade_id: UUID
    subject_group_id: UUID
    is_active: bool
    enrollment_date: Optional[datetime] = None

    class Config:
        from_attributes = True

class EnrollmentSelectionOut(BaseModel):
    enrollment: StudentEnrollmentOut
    subjects: List[SubjectOut]


class SubjectAccessOut(BaseModel):
    subject_id: UUID
    has_access: bool

# Subjects keyed by grade name
SubjectsByGrade = Dict[str, List[SubjectOut]]

class TeacherStudentOut(BaseModel):
    student_id: UUID
    full_name: str
    email: str
    subjects: List[SubjectOut]
