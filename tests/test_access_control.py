"""
Enrollment access control: ``has_subject_access`` and subject lookups.

The rule under test is exact: access holds iff one active edge links the user
to the subject, and any store failure denies.
"""
import random

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from services.user_management import enrollment
from services.user_management.enrollment import (
    deactivate_subject_enrollment,
    deactivate_teacher_assignment,
    get_active_subject_ids,
    get_subjects_for_grade,
    has_subject_access,
    upsert_subject_enrollment,
    upsert_teacher_assignment,
)
from services.user_management.models import SubjectEnrollment, TeacherAssignment, UserRole
from shared.errors import NotFoundError
from tests.factories import make_grade, make_subject, make_user, seed_grade_10

pytestmark = pytest.mark.anyio


async def _store_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


async def test_student_access_follows_edge_activation(db):
    school = await seed_grade_10(db)
    physics = school["subjects"]["PHY10"]
    student = await make_user(db, UserRole.STUDENT, "Thandi Nkosi")

    assert await has_subject_access(db, student.id, physics.id, UserRole.STUDENT) is False

    await upsert_subject_enrollment(db, student.id, physics.id)
    await db.commit()
    assert await has_subject_access(db, student.id, physics.id, UserRole.STUDENT) is True

    await deactivate_subject_enrollment(db, student.id, physics.id)
    assert await has_subject_access(db, student.id, physics.id, UserRole.STUDENT) is False

    # re-enrolling reactivates the same row
    await upsert_subject_enrollment(db, student.id, physics.id)
    await db.commit()
    assert await has_subject_access(db, student.id, physics.id, UserRole.STUDENT) is True
    rows = await db.execute(
        select(func.count(SubjectEnrollment.id)).where(SubjectEnrollment.student_id == student.id)
    )
    assert rows.scalar_one() == 1


async def test_teacher_access_uses_teacher_assignments_only(db):
    school = await seed_grade_10(db)
    chemistry = school["subjects"]["CHE10"]
    teacher = await make_user(db, UserRole.TEACHER, "Sipho Dlamini")

    # a student edge for the same user id must not grant teacher rights
    await upsert_subject_enrollment(db, teacher.id, chemistry.id)
    await db.commit()
    assert await has_subject_access(db, teacher.id, chemistry.id, UserRole.TEACHER) is False

    await upsert_teacher_assignment(db, teacher.id, chemistry.id)
    await db.commit()
    assert await has_subject_access(db, teacher.id, chemistry.id, UserRole.TEACHER) is True

    await deactivate_teacher_assignment(db, teacher.id, chemistry.id)
    assert await has_subject_access(db, teacher.id, chemistry.id, UserRole.TEACHER) is False


async def test_repeated_upserts_converge_on_one_edge(db):
    school = await seed_grade_10(db)
    maths = school["subjects"]["MAT10"]
    teacher = await make_user(db, UserRole.TEACHER, "Naledi Mokoena")

    for _ in range(3):
        await upsert_teacher_assignment(db, teacher.id, maths.id)
    await db.commit()

    rows = await db.execute(
        select(func.count(TeacherAssignment.id)).where(TeacherAssignment.teacher_id == teacher.id)
    )
    assert rows.scalar_one() == 1


async def test_access_matches_active_edge_set(db):
    school = await seed_grade_10(db)
    subjects = list(school["subjects"].values())
    students = [await make_user(db, UserRole.STUDENT, f"Student {i}") for i in range(4)]
    rng = random.Random(20251019)

    active = set()
    for _ in range(60):
        student, subject = rng.choice(students), rng.choice(subjects)
        if rng.random() < 0.6:
            await upsert_subject_enrollment(db, student.id, subject.id)
            await db.commit()
            active.add((student.id, subject.id))
        elif (student.id, subject.id) in active:
            await deactivate_subject_enrollment(db, student.id, subject.id)
            active.discard((student.id, subject.id))

    for student in students:
        for subject in subjects:
            expected = (student.id, subject.id) in active
            assert await has_subject_access(db, student.id, subject.id, UserRole.STUDENT) is expected
        assert await get_active_subject_ids(db, student.id, UserRole.STUDENT) == {
            subject_id for owner, subject_id in active if owner == student.id
        }


async def test_malformed_identifiers_are_denied(db):
    assert await has_subject_access(db, "not-a-uuid", "also-not", UserRole.STUDENT) is False
    assert await get_active_subject_ids(db, "nope", UserRole.TEACHER) == set()


async def test_admin_role_is_rejected(db):
    with pytest.raises(ValueError):
        await has_subject_access(db, "00000000-0000-0000-0000-000000000000", "x", UserRole.ADMIN)


async def test_store_failure_fails_closed(db, monkeypatch):
    school = await seed_grade_10(db)
    physics = school["subjects"]["PHY10"]
    student = await make_user(db, UserRole.STUDENT, "Lerato Khumalo")
    await upsert_subject_enrollment(db, student.id, physics.id)
    await db.commit()

    monkeypatch.setattr(db, "execute", _store_down)

    assert await has_subject_access(db, student.id, physics.id, UserRole.STUDENT) is False
    assert await get_active_subject_ids(db, student.id, UserRole.STUDENT) == set()


async def test_deactivating_unknown_edge_is_not_found(db):
    school = await seed_grade_10(db)
    student = await make_user(db, UserRole.STUDENT, "Ayanda Zulu")
    with pytest.raises(NotFoundError):
        await deactivate_subject_enrollment(db, student.id, school["subjects"]["BIO10"].id)


async def test_subjects_for_grade_and_for_group(db):
    school = await seed_grade_10(db)
    other_grade = await make_grade(db, "Grade 11")
    await make_subject(db, other_grade, "Physics", "PHY11")

    by_grade = await get_subjects_for_grade(db, school["grade"].id)
    assert [s.code for s in by_grade] == [
        "ACC10", "BIO10", "BUS10", "CHE10", "ECO10", "ENG10", "LO10", "MAT10", "PHY10", "ZUL10",
    ]
    assert [s.name for s in by_grade] == sorted(s.name for s in by_grade)

    by_group = await get_subjects_for_grade(db, school["science"].id)
    assert [s.name for s in by_group] == [
        "Biology", "Chemistry", "English", "Life Orientation", "Mathematics", "Physics", "isiZulu",
    ]

    assert await get_subjects_for_grade(db, other_grade.id) != []
    assert await get_subjects_for_grade(db, "garbage") == []


async def test_edge_lookup_is_fresh_after_upsert(db):
    school = await seed_grade_10(db)
    english = school["subjects"]["ENG10"]
    teacher = await make_user(db, UserRole.TEACHER, "Zanele Mthembu")

    await upsert_teacher_assignment(db, teacher.id, english.id)
    await db.commit()
    edge = await deactivate_teacher_assignment(db, teacher.id, english.id)
    assert edge.is_active is False

    await upsert_teacher_assignment(db, teacher.id, english.id)
    await db.commit()
    edge = await enrollment.get_edge(db, teacher.id, english.id, UserRole.TEACHER)
    assert edge.is_active is True
