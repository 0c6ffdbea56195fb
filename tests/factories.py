"""Row builders shared by the test modules."""
from datetime import datetime, timedelta

from shared.auth import create_access_token, get_password_hash
from services.user_management.models import (
    Grade,
    Subject,
    SubjectGroup,
    SubjectGroupAssignment,
    User,
    UserRole,
)
from services.learning_content.models import Assignment, ContentItem, Quiz

PASSWORD = "correct-horse-battery"
# bcrypt is slow; hash once per run
PASSWORD_HASH = get_password_hash(PASSWORD)

SCIENCE_SUBJECTS = [
    ("Physics", "PHY10"),
    ("Chemistry", "CHE10"),
    ("Biology", "BIO10"),
    ("Mathematics", "MAT10"),
    ("English", "ENG10"),
    ("isiZulu", "ZUL10"),
    ("Life Orientation", "LO10"),
]
ACCOUNTING_ONLY = [
    ("Accounting", "ACC10"),
    ("Business Studies", "BUS10"),
    ("Economics", "ECO10"),
]
SHARED_CODES = {"MAT10", "ENG10", "ZUL10", "LO10"}


async def make_user(db, role: UserRole, name: str = None, email: str = None, is_active: bool = True) -> User:
    name = name or f"{role.value.title()} User"
    email = email or f"{name.lower().replace(' ', '.')}@teachwave.co.za"
    user = User(
        email=email,
        full_name=name,
        hashed_password=PASSWORD_HASH,
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_grade(db, name: str = "Grade 10", year: str = "2025") -> Grade:
    grade = Grade(name=name, academic_year=year)
    db.add(grade)
    await db.commit()
    await db.refresh(grade)
    return grade


async def make_subject(db, grade: Grade, name: str, code: str) -> Subject:
    subject = Subject(name=name, code=code, grade_id=grade.id)
    db.add(subject)
    await db.commit()
    await db.refresh(subject)
    return subject


async def make_group(db, grade: Grade, name: str, subjects) -> SubjectGroup:
    group = SubjectGroup(name=name, grade_id=grade.id)
    db.add(group)
    await db.flush()
    for subject in subjects:
        db.add(SubjectGroupAssignment(subject_group_id=group.id, subject_id=subject.id))
    await db.commit()
    await db.refresh(group)
    return group


async def seed_grade_10(db):
    """Grade 10 with a Science stream (7 subjects) and an Accounting stream sharing four of them."""
    grade = await make_grade(db)
    subjects = {}
    for name, code in SCIENCE_SUBJECTS + ACCOUNTING_ONLY:
        subjects[code] = await make_subject(db, grade, name, code)

    science = await make_group(db, grade, "Grade 10 Science", [subjects[c] for _, c in SCIENCE_SUBJECTS])
    accounting = await make_group(
        db,
        grade,
        "Grade 10 Accounting",
        [subjects[c] for c in sorted(SHARED_CODES)] + [subjects[c] for _, c in ACCOUNTING_ONLY],
    )
    return {"grade": grade, "subjects": subjects, "science": science, "accounting": accounting}


async def make_material(db, teacher, subject, title="Notes", is_published=True, created_at=None) -> ContentItem:
    item = ContentItem(
        title=title,
        content_type="document",
        subject_id=subject.id,
        teacher_id=teacher.id,
        is_published=is_published,
    )
    if created_at is not None:
        item.created_at = created_at
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


async def make_assignment(db, teacher, subject, title="Worksheet", is_published=True, due_in_days=7) -> Assignment:
    item = Assignment(
        title=title,
        due_date=datetime(2025, 3, 1) + timedelta(days=due_in_days),
        subject_id=subject.id,
        teacher_id=teacher.id,
        is_published=is_published,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


async def make_quiz(db, teacher, subject, title="Quick quiz", is_published=True) -> Quiz:
    item = Quiz(
        title=title,
        questions=[{"prompt": "2 + 2", "answer": "4"}],
        subject_id=subject.id,
        teacher_id=teacher.id,
        is_published=is_published,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)
    return item


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.email, "user_id": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}
