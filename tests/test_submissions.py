"""Hand-ins and marking, both gated by the enrollment graph."""
import pytest

from services.learning_content.submissions import (
    grade_submission,
    list_quiz_results,
    list_student_submissions,
    list_submissions,
    score_quiz,
    submit_assignment,
    submit_quiz_attempt,
)
from services.user_management.enrollment import (
    deactivate_subject_enrollment,
    deactivate_teacher_assignment,
    select_enrollment,
    upsert_teacher_assignment,
)
from services.user_management.models import UserRole
from shared.errors import AccessDeniedError, BadRequestError, ConflictError, NotFoundError
from tests.factories import make_assignment, make_quiz, make_user, seed_grade_10

pytestmark = pytest.mark.anyio


@pytest.fixture
async def classroom(db):
    school = await seed_grade_10(db)
    physics = school["subjects"]["PHY10"]
    teacher = await make_user(db, UserRole.TEACHER, "Sipho Nkosi")
    await upsert_teacher_assignment(db, teacher.id, physics.id)
    await db.commit()
    student = await make_user(db, UserRole.STUDENT, "Zanele Mthembu")
    await select_enrollment(db, student.id, school["grade"].id, school["science"].id)
    return {"school": school, "physics": physics, "teacher": teacher, "student": student}


async def test_enrolled_student_submits_and_can_resubmit(db, classroom):
    assignment = await make_assignment(db, classroom["teacher"], classroom["physics"], "Forces worksheet")
    student = classroom["student"]

    first = await submit_assignment(db, student.id, assignment.id, "F = ma")
    assert first.grade is None and first.submission_text == "F = ma"

    second = await submit_assignment(db, student.id, assignment.id, file_url="https://files.example/forces.pdf")
    assert second.id == first.id
    assert second.submission_text is None
    assert second.file_url == "https://files.example/forces.pdf"
    assert [s.id for s in await list_student_submissions(db, student.id)] == [first.id]


async def test_student_cannot_submit_outside_enrolled_published_work(db, classroom):
    school, teacher, student = classroom["school"], classroom["teacher"], classroom["student"]
    draft = await make_assignment(db, teacher, classroom["physics"], "Draft", is_published=False)
    accounting = await make_assignment(db, teacher, school["subjects"]["ACC10"], "Trial balance")
    homework = await make_assignment(db, teacher, classroom["physics"], "Momentum")

    with pytest.raises(NotFoundError):
        await submit_assignment(db, student.id, draft.id, "early")
    with pytest.raises(AccessDeniedError):
        await submit_assignment(db, student.id, accounting.id, "not mine")
    with pytest.raises(BadRequestError):
        await submit_assignment(db, student.id, homework.id, "", None)

    await deactivate_subject_enrollment(db, student.id, classroom["physics"].id)
    with pytest.raises(AccessDeniedError):
        await submit_assignment(db, student.id, homework.id, "p = mv")


async def test_assigned_teacher_lists_and_grades(db, classroom):
    teacher, student = classroom["teacher"], classroom["student"]
    assignment = await make_assignment(db, teacher, classroom["physics"], "Vectors")
    submission = await submit_assignment(db, student.id, assignment.id, "resultant is 5 N")

    listed, rows = await list_submissions(db, teacher.id, assignment.id)
    assert listed.id == assignment.id
    assert [(s.id, u.full_name) for s, u in rows] == [(submission.id, "Zanele Mthembu")]

    graded = await grade_submission(db, teacher.id, submission.id, 87, "Show the diagram next time")
    assert graded.grade == 87
    assert graded.feedback == "Show the diagram next time"
    assert graded.graded_at is not None
    assert graded.graded_by == teacher.id


async def test_co_teacher_of_the_subject_may_grade(db, classroom):
    assignment = await make_assignment(db, classroom["teacher"], classroom["physics"], "Waves")
    submission = await submit_assignment(db, classroom["student"].id, assignment.id, "λ = v / f")
    colleague = await make_user(db, UserRole.TEACHER, "Precious Mabaso")
    await upsert_teacher_assignment(db, colleague.id, classroom["physics"].id)
    await db.commit()

    graded = await grade_submission(db, colleague.id, submission.id, 70)
    assert graded.graded_by == colleague.id


async def test_unassigned_teacher_cannot_read_or_grade(db, classroom):
    teacher = classroom["teacher"]
    assignment = await make_assignment(db, teacher, classroom["physics"], "Energy")
    submission = await submit_assignment(db, classroom["student"].id, assignment.id, "E = mc^2")
    outsider = await make_user(db, UserRole.TEACHER, "Thandeka Dlamini")

    with pytest.raises(AccessDeniedError):
        await list_submissions(db, outsider.id, assignment.id)
    with pytest.raises(AccessDeniedError):
        await grade_submission(db, outsider.id, submission.id, 50)

    # the author loses marking rights with the assignment edge
    await deactivate_teacher_assignment(db, teacher.id, classroom["physics"].id)
    with pytest.raises(AccessDeniedError):
        await grade_submission(db, teacher.id, submission.id, 50)
    assert submission.grade is None


async def test_grade_is_bounded_and_freezes_the_submission(db, classroom):
    teacher, student = classroom["teacher"], classroom["student"]
    assignment = await make_assignment(db, teacher, classroom["physics"], "Power")
    submission = await submit_assignment(db, student.id, assignment.id, "P = W / t")

    with pytest.raises(BadRequestError):
        await grade_submission(db, teacher.id, submission.id, assignment.max_points + 1)

    await grade_submission(db, teacher.id, submission.id, assignment.max_points)
    with pytest.raises(ConflictError):
        await submit_assignment(db, student.id, assignment.id, "second thoughts")


async def test_missing_items_are_not_found(db, classroom):
    teacher = classroom["teacher"]
    quiz = await make_quiz(db, teacher, classroom["physics"])
    student_id = classroom["student"].id

    with pytest.raises(NotFoundError):
        await list_submissions(db, teacher.id, quiz.id)
    with pytest.raises(NotFoundError):
        await grade_submission(db, teacher.id, quiz.id, 10)
    with pytest.raises(NotFoundError):
        await list_quiz_results(db, teacher.id, student_id)


async def test_quiz_attempt_is_scored_once(db, classroom):
    teacher, student = classroom["teacher"], classroom["student"]
    quiz = await make_quiz(db, teacher, classroom["physics"], "Arithmetic")

    attempt = await submit_quiz_attempt(db, student.id, quiz.id, [" 4 "])
    assert (attempt.score, attempt.max_score) == (1, 1)

    with pytest.raises(ConflictError):
        await submit_quiz_attempt(db, student.id, quiz.id, ["5"])

    listed, rows = await list_quiz_results(db, teacher.id, quiz.id)
    assert listed.id == quiz.id
    assert [(a.id, u.full_name) for a, u in rows] == [(attempt.id, "Zanele Mthembu")]


async def test_quiz_attempts_follow_the_same_gates(db, classroom):
    school, teacher, student = classroom["school"], classroom["teacher"], classroom["student"]
    unreleased = await make_quiz(db, teacher, classroom["physics"], "Unreleased", is_published=False)
    accounting = await make_quiz(db, teacher, school["subjects"]["ACC10"], "Ledgers")
    outsider = await make_user(db, UserRole.TEACHER, "Andile Ngema")

    with pytest.raises(NotFoundError):
        await submit_quiz_attempt(db, student.id, unreleased.id, ["4"])
    with pytest.raises(AccessDeniedError):
        await submit_quiz_attempt(db, student.id, accounting.id, ["4"])
    with pytest.raises(AccessDeniedError):
        await list_quiz_results(db, outsider.id, unreleased.id)


def test_score_quiz_marks_by_position():
    questions = [
        {"prompt": "Capital of France", "answer": "Paris"},
        {"prompt": "Describe a vector"},
        {"prompt": "3 x 3", "answer": 9, "points": 2},
        {"prompt": "Unit of force", "answer": "newton"},
    ]

    assert score_quiz(questions, ["paris ", "a quantity with direction", "9", "joule"]) == (3, 4)
    assert score_quiz(questions, ["Paris"]) == (1, 4)
    assert score_quiz(questions, []) == (0, 4)
    assert score_quiz([], ["anything"]) == (0, 0)
