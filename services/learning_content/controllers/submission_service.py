from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from shared.db import get_db
from shared.auth import require_roles
from services.user_management.models.users import UserRole
from services.learning_content.schemas.submissions import (
    AssignmentSubmissionsOut,
    GradeSubmission,
    QuizAttemptCreate,
    QuizAttemptOut,
    QuizResultsOut,
    SubmissionCreate,
    SubmissionOut,
)
from services.learning_content.submissions import (
    grade_submission,
    list_quiz_results,
    list_student_submissions,
    list_submissions,
    submit_assignment,
    submit_quiz_attempt,
)

router = APIRouter(prefix="/content", tags=["Submissions"])

teacher_only = require_roles(UserRole.TEACHER)
student_only = require_roles(UserRole.STUDENT)


# --- STUDENT SUBMITS ASSIGNMENT ---
@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
)
async def hand_in_assignment(
    assignment_id: UUID,
    payload: SubmissionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(student_only)
):
    return await submit_assignment(
        db, current_user["user_id"], assignment_id, payload.submission_text, payload.file_url
    )


# --- STUDENT'S OWN SUBMISSIONS ---
@router.get("/submissions/mine", response_model=List[SubmissionOut])
async def get_my_submissions(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(student_only)
):
    return await list_student_submissions(db, current_user["user_id"])


# --- SUBMISSIONS FOR GRADING ---
@router.get("/assignments/{assignment_id}/submissions", response_model=AssignmentSubmissionsOut)
async def get_assignment_submissions(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(teacher_only)
):
    assignment, rows = await list_submissions(db, current_user["user_id"], assignment_id)
    submissions = []
    for submission, student in rows:
        data = SubmissionOut.model_validate(submission).model_dump()
        data.update(student_name=student.full_name, student_email=student.email)
        submissions.append(data)
    return {"assignment": assignment, "submissions": submissions}


# --- GRADE SUBMISSION ---
@router.put("/submissions/{submission_id}/grade", response_model=SubmissionOut)
async def grade_assignment_submission(
    submission_id: UUID,
    payload: GradeSubmission,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(teacher_only)
):
    return await grade_submission(db, current_user["user_id"], submission_id, payload.grade, payload.feedback)


# --- STUDENT ATTEMPTS QUIZ ---
@router.post("/quizzes/{quiz_id}/attempts", response_model=QuizAttemptOut, status_code=status.HTTP_201_CREATED)
async def attempt_quiz(
    quiz_id: UUID,
    payload: QuizAttemptCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(student_only)
):
    return await submit_quiz_attempt(db, current_user["user_id"], quiz_id, payload.answers)


# --- QUIZ RESULTS ---
@router.get("/quizzes/{quiz_id}/results", response_model=QuizResultsOut)
async def get_quiz_results(
    quiz_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(teacher_only)
):
    quiz, rows = await list_quiz_results(db, current_user["user_id"], quiz_id)
    attempts = []
    for attempt, student in rows:
        data = QuizAttemptOut.model_validate(attempt).model_dump()
        data["student_name"] = student.full_name
        attempts.append(data)
    return {"quiz": quiz, "attempts": attempts}
