from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func
from sqlalchemy.orm import selectinload
from typing import List, Optional
from uuid import UUID

from shared.db import get_db
from shared.auth import get_current_user, require_roles
from services.user_management.models.users import User, UserRole
from services.user_management.models.grades import Grade
from services.user_management.models.subjects import Subject, SubjectGroup, SubjectGroupAssignment
from services.user_management.models.enrollments import TeacherAssignment, SubjectEnrollment
from services.user_management.enrollment import (
    get_subjects_for_group,
    provision_group_subjects,
    retract_group_subject,
)
from services.user_management.schemas.subjects import (
    GradeCreate,
    GradeOut,
    SubjectCreate,
    SubjectOut,
    SubjectGradeInfo,
    SubjectGroupCreate,
    SubjectGroupOut,
    GroupMappingResult,
    SchoolStats,
)
from services.learning_content.models.content import MODELS_BY_KIND


router = APIRouter(prefix="/school", tags=["School"])

admin_only = require_roles(UserRole.ADMIN)


async def _group_out(db: AsyncSession, group: SubjectGroup) -> SubjectGroupOut:
    subjects = await get_subjects_for_group(db, group.id)
    return SubjectGroupOut(
        id=group.id,
        name=group.name,
        grade_id=group.grade_id,
        is_active=group.is_active,
        subjects=[SubjectOut.model_validate(s) for s in subjects],
    )


# --- ADD GRADE ---
@router.post("/grades", response_model=GradeOut, status_code=status.HTTP_201_CREATED)
async def add_grade(
    payload: GradeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(admin_only)
):
    grade = Grade(name=payload.name, academic_year=payload.academic_year)
    db.add(grade)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Grade with this name already exists for the academic year"
        )

    await db.refresh(grade)
    return grade


# --- LIST GRADES ---
@router.get("/grades", response_model=List[GradeOut])
async def list_grades(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    result = await db.execute(select(Grade).order_by(Grade.name))
    return result.scalars().all()


# --- ADD SUBJECT TO GRADE ---
@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
async def add_subject(
    payload: SubjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(admin_only)
):
    # A subject must reference an existing grade
    if not await db.get(Grade, payload.grade_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grade not found")

    subject = Subject(name=payload.name, code=payload.code, grade_id=payload.grade_id)
    db.add(subject)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Subject with this code already exists in the grade"
        )

    await db.refresh(subject)
    return subject


# --- LIST SUBJECTS ---
@router.get("/subjects", response_model=List[SubjectOut])
async def list_subjects(
    grade_id: Optional[UUID] = Query(None, description="Only subjects of this grade"),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    stmt = select(Subject).order_by(Subject.name, Subject.code)
    if grade_id is not None:
        stmt = stmt.where(Subject.grade_id == grade_id)
    result = await db.execute(stmt)
    return result.scalars().all()


# --- SUBJECT GRADE INFO ---
@router.get("/subjects/{subject_id}/grade-info", response_model=SubjectGradeInfo)
async def get_subject_grade_info(
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Which cohort an upload into this subject will reach."""
    result = await db.execute(
        select(Subject).options(selectinload(Subject.grade)).where(Subject.id == subject_id)
    )
    subject = result.scalars().first()
    if not subject:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject not found")

    return SubjectGradeInfo(
        subject_name=subject.name,
        subject_code=subject.code,
        grade_name=subject.grade.name if subject.grade else None,
    )


# --- ADD SUBJECT GROUP ---
@router.post("/subject-groups", response_model=SubjectGroupOut, status_code=status.HTTP_201_CREATED)
async def add_subject_group(
    payload: SubjectGroupCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(admin_only)
):
    if not await db.get(Grade, payload.grade_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grade not found")

    group = SubjectGroup(name=payload.name, grade_id=payload.grade_id)
    db.add(group)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Subject group with this name already exists in the grade"
        )

    await db.refresh(group)
    return await _group_out(db, group)


# --- LIST SUBJECT GROUPS WITH THEIR SUBJECTS ---
@router.get("/subject-groups", response_model=List[SubjectGroupOut])
async def list_subject_groups(
    grade_id: Optional[UUID] = Query(None, description="Only groups of this grade"),
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    stmt = select(SubjectGroup).where(SubjectGroup.is_active.is_(True)).order_by(SubjectGroup.name)
    if grade_id is not None:
        stmt = stmt.where(SubjectGroup.grade_id == grade_id)
    result = await db.execute(stmt)
    return [await _group_out(db, group) for group in result.scalars().all()]


# --- BULK MAP SUBJECTS INTO GROUP ---
@router.post("/subject-groups/{group_id}/subjects", response_model=GroupMappingResult)
async def map_subjects_to_group(
    group_id: UUID,
    subject_ids: List[UUID],
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(admin_only)
):
    group = await db.get(SubjectGroup, group_id)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject group not found")

    existing = await db.execute(
        select(SubjectGroupAssignment.subject_id).where(SubjectGroupAssignment.subject_group_id == group_id)
    )
    already_mapped = set(existing.scalars().all())

    mapped, skipped = [], []
    for subject_id in dict.fromkeys(subject_ids):
        subject = await db.get(Subject, subject_id)
        if not subject:
            skipped.append({"subject_id": subject_id, "reason": "Subject not found"})
        elif subject.grade_id != group.grade_id:
            skipped.append({"subject_id": subject_id, "reason": "Subject belongs to another grade"})
        elif subject_id in already_mapped:
            skipped.append({"subject_id": subject_id, "reason": "Already mapped"})
        else:
            db.add(SubjectGroupAssignment(subject_group_id=group_id, subject_id=subject_id))
            mapped.append(subject_id)

    try:
        # students already on the group pick up the new subjects right away
        if mapped:
            await db.flush()
            await provision_group_subjects(db, group_id, mapped)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Error mapping subjects to group"
        )

    return {"mapped": mapped, "skipped": skipped}


# --- REMOVE SUBJECT FROM GROUP ---
@router.delete("/subject-groups/{group_id}/subjects/{subject_id}")
async def remove_subject_from_group(
    group_id: UUID,
    subject_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(admin_only)
):
    result = await db.execute(
        select(SubjectGroupAssignment).where(
            SubjectGroupAssignment.subject_group_id == group_id,
            SubjectGroupAssignment.subject_id == subject_id
        )
    )
    mapping = result.scalars().first()
    if not mapping:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subject is not part of this group")

    await db.delete(mapping)
    retracted = await retract_group_subject(db, group_id, subject_id)
    await db.commit()
    return {"message": "Subject removed from group", "retracted_enrollments": retracted}


# --- SCHOOL STATS ---
@router.get("/stats", response_model=SchoolStats)
async def get_school_stats(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(admin_only)
):
    role_counts = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
    by_role = {role: count for role, count in role_counts.all()}

    async def _count(stmt):
        return (await db.execute(stmt)).scalar_one()

    published = 0
    for model in MODELS_BY_KIND.values():
        published += await _count(select(func.count(model.id)).where(model.is_published.is_(True)))

    return SchoolStats(
        admins=by_role.get(UserRole.ADMIN, 0),
        teachers=by_role.get(UserRole.TEACHER, 0),
        students=by_role.get(UserRole.STUDENT, 0),
        grades=await _count(select(func.count(Grade.id))),
        subjects=await _count(select(func.count(Subject.id))),
        active_teacher_assignments=await _count(
            select(func.count(TeacherAssignment.id)).where(TeacherAssignment.is_active.is_(True))
        ),
        active_subject_enrollments=await _count(
            select(func.count(SubjectEnrollment.id)).where(SubjectEnrollment.is_active.is_(True))
        ),
        published_items=published,
    )
