# services/learning_content/submissions.py
"""
Student hand-ins and teacher grading.

Both sides go through the enrollment graph. A student may submit to a
published assignment, or attempt a published quiz, only while actively
enrolled in its subject. A teacher may read submissions and grade them only
while actively assigned to the subject; authorship is not required, so
co-teachers of a subject share the marking.
"""
import logging
import uuid
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import AccessDeniedError, BadRequestError, ConflictError, NotFoundError
from services.learning_content.models.content import Assignment, Quiz
from services.learning_content.models.submissions import QuizAttempt, Submission
from services.user_management.enrollment import has_subject_access
from services.user_management.models.users import User, UserRole

logger = logging.getLogger(__name__)


async def _published(db: AsyncSession, model, item_id: uuid.UUID, label: str):
    item = await db.get(model, item_id)
    # drafts are invisible to students, so they are reported as missing
    if item is None or not item.is_published:
        raise NotFoundError(f"{label} not found")
    return item


async def _require_enrolled(db: AsyncSession, student_id: uuid.UUID, subject_id: uuid.UUID) -> None:
    if not await has_subject_access(db, student_id, subject_id, UserRole.STUDENT):
        raise AccessDeniedError("You are not enrolled in this subject")


async def _require_assigned(db: AsyncSession, teacher_id: uuid.UUID, subject_id: uuid.UUID) -> None:
    if not await has_subject_access(db, teacher_id, subject_id, UserRole.TEACHER):
        logger.warning("teacher %s denied marking access to subject %s", teacher_id, subject_id)
        raise AccessDeniedError("You are not assigned to this subject")


# --- ASSIGNMENT SUBMISSIONS ---

async def submit_assignment(
    db: AsyncSession,
    student_id: uuid.UUID,
    assignment_id: uuid.UUID,
    submission_text: Optional[str] = None,
    file_url: Optional[str] = None,
) -> Submission:
    """
    Hand in (or replace) the student's submission for an assignment.

    Resubmitting overwrites the previous hand-in until it has been graded;
    after that the submission is frozen.
    """
    assignment = await _published(db, Assignment, assignment_id, "Assignment")
    await _require_enrolled(db, student_id, assignment.subject_id)
    if not (submission_text or file_url):
        raise BadRequestError("A submission needs text or a file")

    result = await db.execute(
        select(Submission).where(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
    )
    submission = result.scalar_one_or_none()
    if submission is not None and submission.graded_at is not None:
        raise ConflictError("This submission has already been graded")

    if submission is None:
        submission = Submission(assignment_id=assignment_id, student_id=student_id)
        db.add(submission)
    else:
        submission.submitted_at = func.now()
    submission.submission_text = submission_text
    submission.file_url = file_url

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Submission changed concurrently; retry")

    await db.refresh(submission)
    logger.info("student %s submitted assignment %s", student_id, assignment_id)
    return submission


async def list_submissions(
    db: AsyncSession, teacher_id: uuid.UUID, assignment_id: uuid.UUID
) -> Tuple[Assignment, List[Tuple[Submission, User]]]:
    assignment = await db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFoundError("Assignment not found")
    await _require_assigned(db, teacher_id, assignment.subject_id)

    result = await db.execute(
        select(Submission, User)
        .join(User, User.id == Submission.student_id)
        .where(Submission.assignment_id == assignment_id)
        .order_by(Submission.submitted_at.desc(), User.full_name)
    )
    return assignment, [(submission, student) for submission, student in result.all()]


async def grade_submission(
    db: AsyncSession,
    teacher_id: uuid.UUID,
    submission_id: uuid.UUID,
    grade: int,
    feedback: Optional[str] = None,
) -> Submission:
    submission = await db.get(Submission, submission_id)
    if submission is None:
        raise NotFoundError("Submission not found")
    assignment = await db.get(Assignment, submission.assignment_id)
    await _require_assigned(db, teacher_id, assignment.subject_id)

    if grade > assignment.max_points:
        raise BadRequestError(f"Grade exceeds the assignment's {assignment.max_points} points")

    submission.grade = grade
    submission.feedback = feedback
    submission.graded_at = func.now()
    submission.graded_by = teacher_id
    await db.commit()
    await db.refresh(submission)
    logger.info("teacher %s graded submission %s: %d/%d", teacher_id, submission_id, grade, assignment.max_points)
    return submission


async def list_student_submissions(db: AsyncSession, student_id: uuid.UUID) -> List[Submission]:
    result = await db.execute(
        select(Submission)
        .where(Submission.student_id == student_id)
        .order_by(Submission.submitted_at.desc())
    )
    return list(result.scalars().all())


# --- QUIZ ATTEMPTS ---

def _normalise(value: Any) -> str:
    return str(value).strip().lower()


def score_quiz(questions: Sequence[dict], answers: Sequence[Any]) -> Tuple[int, int]:
    """
    Mark answers against the quiz's answer key, position by position.

    Each question carrying an ``answer`` is worth its ``points`` (default 1);
    questions without a key are not marked. Comparison ignores case and
    surrounding whitespace. Returns ``(score, max_score)``.
    """
    score = max_score = 0
    for index, question in enumerate(questions or []):
        if not isinstance(question, dict) or "answer" not in question:
            continue
        points = int(question.get("points", 1))
        max_score += points
        if index < len(answers) and _normalise(answers[index]) == _normalise(question["answer"]):
            score += points
    return score, max_score


async def submit_quiz_attempt(
    db: AsyncSession, student_id: uuid.UUID, quiz_id: uuid.UUID, answers: Sequence[Any]
) -> QuizAttempt:
    """Record the student's one attempt at a quiz, scored on arrival."""
    quiz = await _published(db, Quiz, quiz_id, "Quiz")
    await _require_enrolled(db, student_id, quiz.subject_id)

    existing = await db.execute(
        select(QuizAttempt.id).where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student_id)
    )
    if existing.first() is not None:
        raise ConflictError("You have already attempted this quiz")

    score, max_score = score_quiz(quiz.questions, answers)
    attempt = QuizAttempt(
        quiz_id=quiz_id,
        student_id=student_id,
        answers=list(answers),
        score=score,
        max_score=max_score,
    )
    db.add(attempt)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("You have already attempted this quiz")

    await db.refresh(attempt)
    logger.info("student %s scored %d/%d on quiz %s", student_id, score, max_score, quiz_id)
    return attempt


async def list_quiz_results(
    db: AsyncSession, teacher_id: uuid.UUID, quiz_id: uuid.UUID
) -> Tuple[Quiz, List[Tuple[QuizAttempt, User]]]:
    quiz = await db.get(Quiz, quiz_id)
    if quiz is None:
        raise NotFoundError("Quiz not found")
    await _require_assigned(db, teacher_id, quiz.subject_id)

    result = await db.execute(
        select(QuizAttempt, User)
        .join(User, User.id == QuizAttempt.student_id)
        .where(QuizAttempt.quiz_id == quiz_id)
        .order_by(QuizAttempt.submitted_at.desc(), User.full_name)
    )
    return quiz, [(attempt, student) for attempt, student in result.all()]
