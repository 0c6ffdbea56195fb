from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from shared.db import get_db
from shared.auth import require_roles
from services.user_management.enrollment import get_active_subject_ids
from services.user_management.models.users import UserRole
from services.user_management.models.enrollments import SubjectEnrollment
from services.learning_content.models.content import Assignment
from services.learning_content.models.submissions import QuizAttempt, Submission
from services.learning_content.schemas.submissions import StudentDashboardOut, TeacherDashboardOut

router = APIRouter(prefix="/dashboard", tags=["Dashboards"])


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one()


# --- STUDENT DASHBOARD ---
@router.get("/student", response_model=StudentDashboardOut)
async def get_student_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.STUDENT))
):
    student_id = current_user["user_id"]
    subject_ids = await get_active_subject_ids(db, student_id, UserRole.STUDENT)

    pending = 0
    if subject_ids:
        handed_in = select(Submission.assignment_id).where(Submission.student_id == student_id)
        pending = await _count(
            db,
            select(func.count(Assignment.id)).where(
                Assignment.subject_id.in_(list(subject_ids)),
                Assignment.is_published.is_(True),
                Assignment.id.not_in(handed_in),
            ),
        )

    return StudentDashboardOut(
        enrolled_subjects=len(subject_ids),
        pending_assignments=pending,
        submitted_assignments=await _count(
            db, select(func.count(Submission.id)).where(Submission.student_id == student_id)
        ),
        graded_assignments=await _count(
            db,
            select(func.count(Submission.id)).where(
                Submission.student_id == student_id,
                Submission.graded_at.is_not(None),
            ),
        ),
        completed_quizzes=await _count(
            db, select(func.count(QuizAttempt.id)).where(QuizAttempt.student_id == student_id)
        ),
    )


# --- TEACHER DASHBOARD ---
@router.get("/teacher", response_model=TeacherDashboardOut)
async def get_teacher_dashboard(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.TEACHER))
):
    teacher_id = current_user["user_id"]
    subject_ids = list(await get_active_subject_ids(db, teacher_id, UserRole.TEACHER))

    students = ungraded = 0
    if subject_ids:
        students = await _count(
            db,
            select(func.count(func.distinct(SubjectEnrollment.student_id))).where(
                SubjectEnrollment.subject_id.in_(subject_ids),
                SubjectEnrollment.is_active.is_(True),
            ),
        )
        ungraded = await _count(
            db,
            select(func.count(Submission.id))
            .join(Assignment, Assignment.id == Submission.assignment_id)
            .where(Assignment.subject_id.in_(subject_ids), Submission.graded_at.is_(None)),
        )

    return TeacherDashboardOut(
        assigned_subjects=len(subject_ids),
        total_students=students,
        total_assignments=await _count(
            db, select(func.count(Assignment.id)).where(Assignment.teacher_id == teacher_id)
        ),
        ungraded_submissions=ungraded,
    )
