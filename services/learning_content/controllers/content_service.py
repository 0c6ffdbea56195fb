from typing import List, Union
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from shared.db import get_db
from shared.auth import require_roles
from shared.config import Settings, get_settings
from services.user_management.models.users import UserRole
from services.learning_content.models.content import ContentKind
from services.learning_content.schemas.content import (
    AssignmentCreate,
    AssignmentOut,
    ContentFeedOut,
    ContentItemCreate,
    ContentItemOut,
    PublishToggle,
    QuizCreate,
    QuizOut,
)
from services.learning_content.visibility import (
    create_item,
    get_visible_content,
    list_subject_content,
    list_teacher_content,
    set_published,
)

router = APIRouter(prefix="/content", tags=["Learning Content"])

AnyContentOut = Union[ContentItemOut, AssignmentOut, QuizOut]

teacher_only = require_roles(UserRole.TEACHER)


# --- TEACHER UPLOADS LEARNING MATERIAL ---
@router.post("/materials", response_model=ContentItemOut, status_code=status.HTTP_201_CREATED)
async def upload_material(
    payload: ContentItemCreate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(teacher_only)
):
    return await create_item(
        db, current_user["user_id"], ContentKind.MATERIALS, payload.model_dump(), settings.auto_grant_on_upload
    )


# --- TEACHER CREATES ASSIGNMENT ---
@router.post("/assignments", response_model=AssignmentOut, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(teacher_only)
):
    return await create_item(
        db, current_user["user_id"], ContentKind.ASSIGNMENTS, payload.model_dump(), settings.auto_grant_on_upload
    )


# --- TEACHER CREATES QUIZ ---
@router.post("/quizzes", response_model=QuizOut, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    payload: QuizCreate,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(teacher_only)
):
    return await create_item(
        db, current_user["user_id"], ContentKind.QUIZZES, payload.model_dump(), settings.auto_grant_on_upload
    )


# --- PUBLISH / UNPUBLISH ---
@router.patch("/{kind}/{item_id}/publish", response_model=AnyContentOut)
async def toggle_publish(
    kind: ContentKind,
    item_id: UUID,
    payload: PublishToggle,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(teacher_only)
):
    return await set_published(
        db, current_user["user_id"], kind, item_id, payload.is_published, settings.auto_grant_on_upload
    )


# --- TEACHER'S OWN CONTENT ---
@router.get("/mine", response_model=ContentFeedOut)
async def get_my_content(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(teacher_only)
):
    return await list_teacher_content(db, current_user["user_id"])


# --- STUDENT FEED ---
@router.get("/feed", response_model=ContentFeedOut)
async def get_student_feed(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.STUDENT))
):
    """Published content of every subject the student is actively enrolled in."""
    return await get_visible_content(db, current_user["user_id"])


# --- CONTENT OF ONE SUBJECT ---
@router.get("/subjects/{subject_id}/{kind}", response_model=List[AnyContentOut])
async def get_subject_content(
    subject_id: UUID,
    kind: ContentKind,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN, UserRole.TEACHER, UserRole.STUDENT))
):
    return await list_subject_content(db, current_user, subject_id, kind)
