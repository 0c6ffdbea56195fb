# services/user_management/controllers/user_service.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.exc import IntegrityError
from uuid import UUID

from shared.db import get_db
from shared.auth import (
    create_access_token,
    get_current_user,
    get_password_hash,
    require_roles,
    verify_password,
)
from services.user_management.models.users import User, UserRole
from services.user_management.schemas.users import (
    LoginRequest,
    LoginResponse,
    StudentSignup,
    UserCreate,
    UserOut,
    UserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


async def _create_user(db: AsyncSession, email: str, full_name: str, password: str, role: UserRole) -> User:
    # Check if email already exists
    result = await db.execute(select(User).where(User.email == email))
    if result.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    new_user = User(
        email=email,
        full_name=full_name,
        hashed_password=get_password_hash(password),
        role=role,
    )
    db.add(new_user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    await db.refresh(new_user)
    logger.info("created %s account %s", role.value, new_user.id)
    return new_user


# --- LOGIN (ALL ROLES) ---
@router.post("/auth/login", response_model=LoginResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == payload.email))
    user = result.scalars().first()

    if not user or not user.is_active or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    access_token = create_access_token({
        "sub": user.email,
        "user_id": str(user.id),
        "role": user.role.value,
    })

    return LoginResponse(
        access_token=access_token,
        full_name=user.full_name,
        role=user.role,
    )


# --- STUDENT SELF-SIGNUP ---
@router.post("/auth/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def signup(payload: StudentSignup, db: AsyncSession = Depends(get_db)):
    """Self-service signup only ever creates student profiles."""
    return await _create_user(db, payload.email, payload.full_name, payload.password, UserRole.STUDENT)


# --- CURRENT PROFILE ---
@router.get("/auth/me", response_model=UserOut)
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    return await db.get(User, current_user["user_id"])


# --- CREATE USER (ADMIN) ---
@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    return await _create_user(db, payload.email, payload.full_name, payload.password, UserRole(payload.role.value))


# --- LIST USERS (ADMIN) ---
@router.get("/users", response_model=List[UserOut])
async def list_users(
    role: Optional[UserRole] = None,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    stmt = select(User).order_by(User.full_name)
    if role is not None:
        stmt = stmt.where(User.role == role)
    result = await db.execute(stmt)
    return result.scalars().all()


# --- UPDATE USER (ADMIN) ---
@router.put("/users/{user_id}", response_model=UserOut)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: dict = Depends(require_roles(UserRole.ADMIN))
):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    await db.refresh(user)
    return user
