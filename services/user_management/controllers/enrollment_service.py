from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from shared.db import get_db
from shared.auth import require_roles
from services.user_management.models.users import UserRole
from services.user_management.enrollment import (
    deactivate_subject_enrollment,
    get_active_selection,
    get_active_subjects,
    get_edge,
    group_subjects_by_grade,
    require_subject,
    require_user,
    select_enrollment,
    upsert_subject_enrollment,
)
from services.user_management.schemas.enrollments import (
    EnrollmentSelectionOut,
    EnrollmentSelectionRequest,
    StudentEnrollmentOut,
    SubjectEnrollmentCreate,
    SubjectEnrollmentOut,
)
from services.user_management.schemas.subjects import SubjectOut

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


# --- STUDENT SELECTS GRADE AND SUBJECT GROUP ---
@router.post("/selection", response_model=EnrollmentSelectionOut)
async def select_grade_and_group(
    payload: EnrollmentSelectionRequest,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.STUDENT))
):
    """
    Replace the student's active grade/group choice and enroll them in every
    subject of the group. Safe to retry.
    """
    enrollment, subjects = await select_enrollment(
        db, current_user["user_id"], payload.grade_id, payload.subject_group_id
    )
    return {"enrollment": enrollment, "subjects": subjects}


# --- STUDENT'S CURRENT SELECTION ---
@router.get("/selection", response_model=StudentEnrollmentOut)
async def get_current_selection(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.STUDENT))
):
    enrollment = await get_active_selection(db, current_user["user_id"])
    if not enrollment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No grade and subject group selected yet"
        )
    return enrollment


# --- STUDENT'S SUBJECTS BY GRADE ---
@router.get("/my-subjects", response_model=Dict[str, List[SubjectOut]])
async def get_my_subjects(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.STUDENT))
):
    subjects = await get_active_subjects(db, current_user["user_id"], UserRole.STUDENT)
    return group_subjects_by_grade(subjects)


# --- ENROLL STUDENT IN SUBJECT (ADMIN, IDEMPOTENT) ---
@router.post("/subjects", response_model=SubjectEnrollmentOut, status_code=status.HTTP_201_CREATED)
async def enroll_student_in_subject(
    payload: SubjectEnrollmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    await require_user(db, payload.student_id, UserRole.STUDENT)
    await require_subject(db, payload.subject_id)

    await upsert_subject_enrollment(db, payload.student_id, payload.subject_id)
    await db.commit()
    return await get_edge(db, payload.student_id, payload.subject_id, UserRole.STUDENT)


# --- UNENROLL STUDENT FROM SUBJECT (ADMIN, SOFT) ---
@router.delete("/subjects/{student_id}/{subject_id}", response_model=SubjectEnrollmentOut)
async def unenroll_student_from_subject(
    student_id: UUID,
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    return await deactivate_subject_enrollment(db, student_id, subject_id)
