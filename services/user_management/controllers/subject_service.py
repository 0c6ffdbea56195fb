from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

from shared.db import get_db
from shared.auth import get_current_user, require_roles
from services.user_management.models.users import UserRole
from services.user_management.enrollment import get_subjects_for_grade, has_subject_access
from services.user_management.schemas.subjects import SubjectOut
from services.user_management.schemas.enrollments import SubjectAccessOut

router = APIRouter(prefix="/subjects", tags=["Subjects"])


# --- GET SUBJECTS FOR GRADE OR SUBJECT GROUP ---
@router.get("/for/{grade_or_group_id}", response_model=List[SubjectOut])
async def list_subjects_for_grade(
    grade_or_group_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    return await get_subjects_for_grade(db, grade_or_group_id)


# --- CHECK OWN ACCESS TO SUBJECT ---
@router.get("/{subject_id}/access", response_model=SubjectAccessOut)
async def check_subject_access(
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.TEACHER, UserRole.STUDENT))
):
    allowed = await has_subject_access(db, current_user["user_id"], subject_id, current_user["role"])
    return SubjectAccessOut(subject_id=subject_id, has_access=allowed)
