# services/learning_content/schemas/submissions.py

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from services.learning_content.schemas.content import AssignmentOut, QuizOut


class SubmissionCreate(BaseModel):
    submission_text: Optional[str] = None
    file_url: Optional[str] = None

class SubmissionOut(BaseModel):
    id: UUID
    assignment_id: UUID
    student_id: UUID
    submission_text: Optional[str]
    file_url: Optional[str]
    submitted_at: datetime
    grade: Optional[int]
    feedback: Optional[str]
    graded_at: Optional[datetime]

    class Config:
        from_attributes = True

class StudentSubmissionOut(SubmissionOut):
    student_name: str
    student_email: str

class AssignmentSubmissionsOut(BaseModel):
    assignment: AssignmentOut
    submissions: List[StudentSubmissionOut]

class GradeSubmission(BaseModel):
    grade: int = Field(..., ge=0)
    feedback: Optional[str] = None


class QuizAttemptCreate(BaseModel):
    # one answer per question, in question order
    answers: List[Any] = Field(default_factory=list)

class QuizAttemptOut(BaseModel):
    id: UUID
    quiz_id: UUID
    student_id: UUID
    answers: List[Any]
    score: int
    max_score: int
    submitted_at: datetime

    class Config:
        from_attributes = True

class StudentQuizAttemptOut(QuizAttemptOut):
    student_name: str

class QuizResultsOut(BaseModel):
    quiz: QuizOut
    attempts: List[StudentQuizAttemptOut]


class StudentDashboardOut(BaseModel):
    enrolled_subjects: int
    pending_assignments: int
    submitted_assignments: int
    graded_assignments: int
    completed_quizzes: int

class TeacherDashboardOut(BaseModel):
    assigned_subjects: int
    total_students: int
    total_assignments: int
    ungraded_submissions: int
