# services/learning_content/visibility.py
"""
Who can see and who can publish learning content.

A student sees an item only while it is published and the student holds an
active SubjectEnrollment for the item's subject. Nothing here is cached:
every call reads the current edges, so enrollment changes and publish toggles
are visible on the next request.

A teacher may create or publish into a subject only with an active
TeacherAssignment. With ``auto_grant`` enabled a missing assignment is
created on the spot instead of rejecting the upload.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import AccessDeniedError, ConflictError, NotFoundError
from services.learning_content.models.content import (
    MODELS_BY_KIND,
    Assignment,
    ContentItem,
    ContentKind,
    Quiz,
)
from services.user_management.enrollment import (
    get_active_subject_ids,
    has_subject_access,
    require_subject,
    require_user,
    upsert_teacher_assignment,
)
from services.user_management.models.users import UserRole

logger = logging.getLogger(__name__)


@dataclass
class VisibleContent:
    materials: List[ContentItem] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)
    quizzes: List[Quiz] = field(default_factory=list)


def _recency(model):
    # assignments are ordered by deadline, everything else by upload time
    if model is Assignment:
        return (Assignment.due_date.desc(), Assignment.created_at.desc())
    return (model.created_at.desc(),)


def _model_for(kind) -> Any:
    try:
        return MODELS_BY_KIND[ContentKind(kind)]
    except ValueError:
        raise NotFoundError(f"Unknown content kind {kind!r}")


# --- PUBLISH GATE ---

async def authorize_publish(db: AsyncSession, teacher_id: uuid.UUID, subject_id: uuid.UUID, auto_grant: bool) -> bool:
    """
    Allow the teacher to publish into the subject, or raise ``AccessDeniedError``.

    Returns True when the call had to provision a new TeacherAssignment
    (only possible with ``auto_grant``). The new edge is left uncommitted so
    it lands in the same transaction as the content that triggered it.
    """
    await require_subject(db, subject_id)

    if await has_subject_access(db, teacher_id, subject_id, UserRole.TEACHER):
        return False

    if not auto_grant:
        logger.warning("teacher %s denied publishing into subject %s", teacher_id, subject_id)
        raise AccessDeniedError("You are not assigned to this subject")

    await upsert_teacher_assignment(db, teacher_id, subject_id)
    logger.warning("auto-granted teacher %s publishing rights on subject %s", teacher_id, subject_id)
    return True


async def create_item(db: AsyncSession, teacher_id: uuid.UUID, kind: ContentKind, payload: Dict[str, Any], auto_grant: bool):
    model = _model_for(kind)
    await require_user(db, teacher_id, UserRole.TEACHER)
    await authorize_publish(db, teacher_id, payload["subject_id"], auto_grant)

    item = model(teacher_id=teacher_id, **payload)
    db.add(item)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Content could not be saved")
    await db.refresh(item)
    logger.info("teacher %s created %s %s in subject %s", teacher_id, ContentKind(kind).value, item.id, item.subject_id)
    return item


async def set_published(
    db: AsyncSession,
    teacher_id: uuid.UUID,
    kind: ContentKind,
    item_id: uuid.UUID,
    is_published: bool,
    auto_grant: bool,
):
    """Toggle the publish flag of the teacher's own item; publishing goes through the gate again."""
    model = _model_for(kind)
    item = await db.get(model, item_id)
    if item is None or item.teacher_id != teacher_id:
        raise NotFoundError("Content not found")

    if is_published and not item.is_published:
        await authorize_publish(db, teacher_id, item.subject_id, auto_grant)

    item.is_published = is_published
    await db.commit()
    await db.refresh(item)
    return item


# --- VISIBILITY QUERIES ---

async def _published_in(db: AsyncSession, model, subject_ids) -> list:
    result = await db.execute(
        select(model)
        .where(model.subject_id.in_(list(subject_ids)), model.is_published.is_(True))
        .order_by(*_recency(model))
    )
    return list(result.scalars().all())


async def get_visible_content(db: AsyncSession, student_id: uuid.UUID) -> VisibleContent:
    """Published materials, assignments and quizzes of every subject the student is actively enrolled in."""
    subject_ids = await get_active_subject_ids(db, student_id, UserRole.STUDENT)
    if not subject_ids:
        return VisibleContent()

    return VisibleContent(
        materials=await _published_in(db, ContentItem, subject_ids),
        assignments=await _published_in(db, Assignment, subject_ids),
        quizzes=await _published_in(db, Quiz, subject_ids),
    )


async def list_subject_content(db: AsyncSession, current_user: dict, subject_id: uuid.UUID, kind: ContentKind) -> list:
    model = _model_for(kind)
    await require_subject(db, subject_id)

    role = current_user["role"]
    stmt = select(model).where(model.subject_id == subject_id).order_by(*_recency(model))
    if role in (UserRole.TEACHER, UserRole.STUDENT):
        if not await has_subject_access(db, current_user["user_id"], subject_id, role):
            raise AccessDeniedError("You do not have access to this subject")
        if role == UserRole.STUDENT:
            stmt = stmt.where(model.is_published.is_(True))

    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_teacher_content(db: AsyncSession, teacher_id: uuid.UUID) -> VisibleContent:
    """Everything the teacher authored, drafts included."""
    found = {}
    for kind, model in MODELS_BY_KIND.items():
        result = await db.execute(
            select(model).where(model.teacher_id == teacher_id).order_by(*_recency(model))
        )
        found[kind.value] = list(result.scalars().all())
    return VisibleContent(**found)
