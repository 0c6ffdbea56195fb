# create_db.py
import asyncio
import logging
import os

from sqlalchemy.future import select

from shared.auth import get_password_hash
from shared.config import get_settings
from shared.db import engine, Base, SessionLocal
from shared.log_config import configure_logging

# Import all models here so they are registered with SQLAlchemy's metadata
import services.user_management.models
import services.learning_content.models
from services.user_management.models.users import User, UserRole

logger = logging.getLogger("create_db")


async def init_models():
    async with engine.begin() as conn:
        logger.info("Creating tables...")
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created.")


async def bootstrap_admin(email: str, password: str, full_name: str = "Administrator"):
    """Create the first admin account unless one with this email exists."""
    async with SessionLocal() as db:
        result = await db.execute(select(User).where(User.email == email))
        if result.scalars().first():
            logger.info("Admin %s already exists", email)
            return
        db.add(User(
            email=email,
            full_name=full_name,
            hashed_password=get_password_hash(password),
            role=UserRole.ADMIN,
        ))
        await db.commit()
        logger.info("Admin %s created", email)


async def main():
    await init_models()
    email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
    if email and password:
        await bootstrap_admin(email, password)
    await engine.dispose()


if __name__ == "__main__":
    configure_logging(get_settings().log_level)
    asyncio.run(main())
