# reset_db.py
import asyncio
import logging

from shared.config import get_settings
from shared.db import engine, Base
from shared.log_config import configure_logging

import services.user_management.models
import services.learning_content.models

logger = logging.getLogger("reset_db")


async def reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    logger.info("Database reset.")


if __name__ == "__main__":
    configure_logging(get_settings().log_level)
    asyncio.run(reset_db())
