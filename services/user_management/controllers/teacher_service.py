from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from uuid import UUID

from services.user_management.models.users import User, UserRole
from services.user_management.models.subjects import Subject
from services.user_management.models.enrollments import SubjectEnrollment, TeacherAssignment
from services.user_management.enrollment import (
    deactivate_teacher_assignment,
    get_active_subject_ids,
    get_active_subjects,
    get_edge,
    group_subjects_by_grade,
    require_subject,
    require_user,
    upsert_teacher_assignment,
)
from services.user_management.schemas.enrollments import (
    TeacherAssignmentCreate,
    TeacherAssignmentOut,
    TeacherStudentOut,
)
from services.user_management.schemas.subjects import SubjectOut
from shared.db import get_db
from shared.auth import require_roles

router = APIRouter(prefix="/teachers", tags=["Teacher Assignments"])


# --- ASSIGN TEACHER TO SUBJECT (IDEMPOTENT) ---
@router.post("/assignments", response_model=TeacherAssignmentOut, status_code=status.HTTP_201_CREATED)
async def assign_teacher_to_subject(
    payload: TeacherAssignmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    """
    Grant a teacher publishing rights on a subject.
    Assigning twice, or re-assigning a deactivated edge, leaves one active row.
    """
    await require_user(db, payload.teacher_id, UserRole.TEACHER)
    await require_subject(db, payload.subject_id)

    await upsert_teacher_assignment(db, payload.teacher_id, payload.subject_id)
    await db.commit()
    return await get_edge(db, payload.teacher_id, payload.subject_id, UserRole.TEACHER)


# --- REMOVE TEACHER ASSIGNMENT (SOFT) ---
@router.delete("/assignments/{teacher_id}/{subject_id}", response_model=TeacherAssignmentOut)
async def unassign_teacher_from_subject(
    teacher_id: UUID,
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    return await deactivate_teacher_assignment(db, teacher_id, subject_id)


# --- LIST ACTIVE ASSIGNMENTS ---
@router.get("/assignments", response_model=List[TeacherAssignmentOut])
async def list_teacher_assignments(
    teacher_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    stmt = (
        select(TeacherAssignment)
        .where(TeacherAssignment.is_active.is_(True))
        .order_by(TeacherAssignment.assigned_date)
    )
    if teacher_id is not None:
        stmt = stmt.where(TeacherAssignment.teacher_id == teacher_id)
    result = await db.execute(stmt)
    return result.scalars().all()


# --- GET TEACHER'S SUBJECTS BY GRADE ---
@router.get("/my-subjects", response_model=Dict[str, List[SubjectOut]])
async def get_my_subjects(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.TEACHER))
):
    subjects = await get_active_subjects(db, current_user["user_id"], UserRole.TEACHER)
    return group_subjects_by_grade(subjects)


# --- GET STUDENTS TAUGHT BY TEACHER ---
@router.get("/my-students", response_model=List[TeacherStudentOut])
async def get_my_students(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.TEACHER))
):
    """Students actively enrolled in any subject the teacher is actively assigned to."""
    subject_ids = await get_active_subject_ids(db, current_user["user_id"], UserRole.TEACHER)
    if not subject_ids:
        return []

    result = await db.execute(
        select(User, Subject)
        .join(SubjectEnrollment, SubjectEnrollment.student_id == User.id)
        .join(Subject, Subject.id == SubjectEnrollment.subject_id)
        .where(
            SubjectEnrollment.subject_id.in_(list(subject_ids)),
            SubjectEnrollment.is_active.is_(True),
            User.is_active.is_(True),
        )
        .order_by(User.full_name, Subject.name)
    )

    students = {}
    for student, subject in result.all():
        if student.id not in students:
            students[student.id] = {
                "student_id": student.id,
                "full_name": student.full_name,
                "email": student.email,
                "subjects": [],
            }
        students[student.id]["subjects"].append(subject)

    return list(students.values())
