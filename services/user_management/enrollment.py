# services/user_management/enrollment.py
"""
Enrollment graph: who may publish into, and who may read from, a subject.

Two edge tables carry the access rights. ``TeacherAssignment`` grants a
teacher publishing rights, ``SubjectEnrollment`` grants a student read rights.
Both are soft-deleted through ``is_active`` and written with natural-key
upserts so that admin tooling, teacher uploads and student self-selection can
write concurrently without duplicating rows.

``StudentEnrollment`` is the coarse grade + subject-group choice. Selecting a
new one replaces the old one and regenerates the per-subject edges inside a
single transaction.
"""
import logging
import uuid
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Set, Union

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shared.db import dialect_insert
from shared.errors import ConflictError, NotFoundError, PartialEnrollmentError, StoreUnavailableError
from services.user_management.models.enrollments import (
    StudentEnrollment,
    SubjectEnrollment,
    TeacherAssignment,
)
from services.user_management.models.grades import Grade
from services.user_management.models.subjects import Subject, SubjectGroup, SubjectGroupAssignment
from services.user_management.models.users import User, UserRole

logger = logging.getLogger(__name__)

Identifier = Union[str, uuid.UUID]

_EDGES = {
    UserRole.TEACHER: (TeacherAssignment, TeacherAssignment.teacher_id),
    UserRole.STUDENT: (SubjectEnrollment, SubjectEnrollment.student_id),
}


def _as_uuid(value: Identifier) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _edge_for(role: UserRole):
    try:
        return _EDGES[UserRole(role)]
    except (KeyError, ValueError):
        raise ValueError(f"Subject access is defined for teachers and students only, not {role!r}")


# --- ACCESS CHECKS ---

async def has_subject_access(db: AsyncSession, user_id: Identifier, subject_id: Identifier, role: UserRole) -> bool:
    """
    True iff exactly one active edge links the user to the subject.

    Teachers are looked up in ``teacher_assignments``, students in
    ``subject_enrollments``. Store failures are logged and answered with
    False so that callers deny by default.
    """
    model, owner_column = _edge_for(role)
    user_uuid, subject_uuid = _as_uuid(user_id), _as_uuid(subject_id)
    if user_uuid is None or subject_uuid is None:
        return False

    try:
        result = await db.execute(
            select(func.count(model.id)).where(
                owner_column == user_uuid,
                model.subject_id == subject_uuid,
                model.is_active.is_(True),
            )
        )
        active_edges = result.scalar_one()
    except SQLAlchemyError:
        logger.exception("access check failed for %s %s on subject %s; denying", role, user_id, subject_id)
        return False

    return active_edges == 1


async def get_active_subject_ids(db: AsyncSession, user_id: Identifier, role: UserRole) -> Set[uuid.UUID]:
    """Subjects the user currently holds an active edge for; empty on store failure."""
    model, owner_column = _edge_for(role)
    user_uuid = _as_uuid(user_id)
    if user_uuid is None:
        return set()

    try:
        result = await db.execute(
            select(model.subject_id).where(owner_column == user_uuid, model.is_active.is_(True))
        )
    except SQLAlchemyError:
        logger.exception("could not load active subjects for %s %s; treating as none", role, user_id)
        return set()
    return set(result.scalars().all())


async def get_active_subjects(db: AsyncSession, user_id: Identifier, role: UserRole) -> List[Subject]:
    subject_ids = await get_active_subject_ids(db, user_id, role)
    if not subject_ids:
        return []
    result = await db.execute(
        select(Subject)
        .options(selectinload(Subject.grade))
        .where(Subject.id.in_(subject_ids))
        .order_by(Subject.name)
    )
    return list(result.scalars().all())


# --- SUBJECT LOOKUPS ---

async def get_subjects_for_grade(db: AsyncSession, grade_or_group_id: Identifier) -> List[Subject]:
    """Subjects that belong to the grade, or are bundled into the subject group, with that id."""
    target = _as_uuid(grade_or_group_id)
    if target is None:
        return []

    in_group = select(SubjectGroupAssignment.subject_id).where(
        SubjectGroupAssignment.subject_group_id == target
    )
    result = await db.execute(
        select(Subject)
        .where(or_(Subject.grade_id == target, Subject.id.in_(in_group)))
        .order_by(Subject.name, Subject.code)
    )
    return list(result.scalars().unique().all())


async def get_subjects_for_group(db: AsyncSession, group_id: Identifier) -> List[Subject]:
    group_uuid = _as_uuid(group_id)
    if group_uuid is None:
        return []
    result = await db.execute(
        select(Subject)
        .join(SubjectGroupAssignment, SubjectGroupAssignment.subject_id == Subject.id)
        .where(SubjectGroupAssignment.subject_group_id == group_uuid)
        .order_by(Subject.name, Subject.code)
    )
    return list(result.scalars().all())


def group_subjects_by_grade(subjects: Iterable[Subject]) -> Dict[str, List[Subject]]:
    """Bucket subjects under their grade's name; subjects must have ``grade`` loaded."""
    grouped: Dict[str, List[Subject]] = OrderedDict()
    for subject in subjects:
        grade_name = subject.grade.name if subject.grade is not None else "Unassigned"
        grouped.setdefault(grade_name, []).append(subject)
    return grouped


# --- EDGE WRITES ---

async def _upsert_edge(db: AsyncSession, model, owner_field: str, owner_id: uuid.UUID, subject_id: uuid.UUID):
    insert = dialect_insert(db)
    stmt = insert(model).values(**{owner_field: owner_id, "subject_id": subject_id, "is_active": True})
    stmt = stmt.on_conflict_do_update(
        index_elements=[owner_field, "subject_id"],
        set_={"is_active": True},
    )
    await db.execute(stmt)


async def upsert_teacher_assignment(db: AsyncSession, teacher_id: uuid.UUID, subject_id: uuid.UUID) -> None:
    """Create or reactivate the (teacher, subject) edge. The caller commits."""
    await _upsert_edge(db, TeacherAssignment, "teacher_id", teacher_id, subject_id)


async def upsert_subject_enrollment(db: AsyncSession, student_id: uuid.UUID, subject_id: uuid.UUID) -> None:
    """Create or reactivate the (student, subject) edge. The caller commits."""
    await _upsert_edge(db, SubjectEnrollment, "student_id", student_id, subject_id)


async def get_edge(db: AsyncSession, user_id: uuid.UUID, subject_id: uuid.UUID, role: UserRole):
    model, owner_column = _edge_for(role)
    result = await db.execute(
        select(model)
        .where(owner_column == user_id, model.subject_id == subject_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _deactivate_edge(db: AsyncSession, user_id: uuid.UUID, subject_id: uuid.UUID, role: UserRole):
    edge = await get_edge(db, user_id, subject_id, role)
    if edge is None:
        raise NotFoundError(f"No {role.value} edge for this subject")
    edge.is_active = False
    await db.commit()
    await db.refresh(edge)
    return edge


async def deactivate_teacher_assignment(db: AsyncSession, teacher_id: uuid.UUID, subject_id: uuid.UUID):
    return await _deactivate_edge(db, teacher_id, subject_id, UserRole.TEACHER)


async def deactivate_subject_enrollment(db: AsyncSession, student_id: uuid.UUID, subject_id: uuid.UUID):
    return await _deactivate_edge(db, student_id, subject_id, UserRole.STUDENT)


async def require_user(db: AsyncSession, user_id: uuid.UUID, role: UserRole) -> User:
    user = await db.get(User, user_id)
    if user is None or user.role != role:
        raise NotFoundError(f"{role.value.capitalize()} not found")
    return user


async def require_subject(db: AsyncSession, subject_id: uuid.UUID) -> Subject:
    subject = await db.get(Subject, subject_id)
    if subject is None:
        raise NotFoundError("Subject not found")
    return subject


# --- GRADE / GROUP SELECTION ---

async def get_active_selection(db: AsyncSession, student_id: uuid.UUID) -> Optional[StudentEnrollment]:
    result = await db.execute(
        select(StudentEnrollment).where(
            StudentEnrollment.student_id == student_id,
            StudentEnrollment.is_active.is_(True),
        )
    )
    return result.scalar_one_or_none()


async def select_enrollment(db: AsyncSession, student_id: uuid.UUID, grade_id: uuid.UUID, group_id: uuid.UUID):
    """
    Make (grade, group) the student's single active selection and provision
    a SubjectEnrollment edge for every subject in the group.

    Everything happens in one transaction: the old selection is deactivated,
    the new one inserted, subjects only the old group carried are retracted
    and the new group's subjects are upserted. If any subject upsert fails the
    transaction is rolled back and ``PartialEnrollmentError`` names the failed
    subjects. Repeating the call with the same arguments leaves the active sets
    unchanged and re-creates any edge that went missing. Subjects removed from
    the group later are retracted at removal time by ``retract_group_subject``.

    Returns ``(enrollment, subjects)``.
    """
    await require_user(db, student_id, UserRole.STUDENT)

    grade = await db.get(Grade, grade_id)
    if grade is None:
        raise NotFoundError("Grade not found")
    group = await db.get(SubjectGroup, group_id)
    if group is None or group.grade_id != grade.id or not group.is_active:
        raise NotFoundError("Subject group not found in this grade")

    subjects = await get_subjects_for_group(db, group_id)
    subject_ids = [subject.id for subject in subjects]

    try:
        enrollment = await get_active_selection(db, student_id)
        if enrollment is None or (enrollment.grade_id, enrollment.subject_group_id) != (grade_id, group_id):
            retracted: Set[uuid.UUID] = set()
            if enrollment is not None:
                previous = await get_subjects_for_group(db, enrollment.subject_group_id)
                retracted = {s.id for s in previous} - set(subject_ids)
                enrollment.is_active = False
                # the partial unique index needs the old row inactive before the insert
                await db.flush()

            enrollment = StudentEnrollment(
                student_id=student_id,
                grade_id=grade_id,
                subject_group_id=group_id,
                is_active=True,
            )
            db.add(enrollment)
            await db.flush()

            if retracted:
                await db.execute(
                    update(SubjectEnrollment)
                    .where(
                        SubjectEnrollment.student_id == student_id,
                        SubjectEnrollment.subject_id.in_(list(retracted)),
                    )
                    .values(is_active=False)
                )

        failed = []
        for subject_id in subject_ids:
            try:
                # a failed statement must not poison the upserts that follow it
                async with db.begin_nested():
                    await upsert_subject_enrollment(db, student_id, subject_id)
            except SQLAlchemyError:
                logger.exception("subject enrollment failed for student %s subject %s", student_id, subject_id)
                failed.append(subject_id)

        if failed:
            await db.rollback()
            raise PartialEnrollmentError(failed)

        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Enrollment changed concurrently; retry the selection")
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("enrollment selection failed for student %s", student_id)
        raise StoreUnavailableError("Enrollment could not be saved; retry the selection")

    await db.refresh(enrollment)
    logger.info(
        "student %s selected grade %s group %s (%d subjects)", student_id, grade_id, group_id, len(subject_ids)
    )
    return enrollment, subjects


# --- GROUP MAPPING CHANGES ---

def _students_selecting(group_id: uuid.UUID):
    return select(StudentEnrollment.student_id).where(
        StudentEnrollment.subject_group_id == group_id,
        StudentEnrollment.is_active.is_(True),
    )


async def provision_group_subjects(db: AsyncSession, group_id: uuid.UUID, subject_ids: Iterable[uuid.UUID]) -> None:
    """Enroll every student currently on the group in newly mapped subjects. The caller commits."""
    subject_ids = list(subject_ids)
    result = await db.execute(_students_selecting(group_id))
    students = list(result.scalars().all())
    for student_id in students:
        for subject_id in subject_ids:
            await upsert_subject_enrollment(db, student_id, subject_id)
    if students:
        logger.info(
            "provisioned %d new subject(s) of group %s for %d student(s)", len(subject_ids), group_id, len(students)
        )


async def retract_group_subject(db: AsyncSession, group_id: uuid.UUID, subject_id: uuid.UUID) -> int:
    """
    Deactivate the subject's enrollment edges of every student whose active
    selection is the group. Returns the number of edges retracted; the caller
    commits.
    """
    result = await db.execute(
        update(SubjectEnrollment)
        .where(
            SubjectEnrollment.subject_id == subject_id,
            SubjectEnrollment.student_id.in_(_students_selecting(group_id)),
            SubjectEnrollment.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    logger.info("retracted subject %s from %d student(s) of group %s", subject_id, result.rowcount, group_id)
    return result.rowcount
