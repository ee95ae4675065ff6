from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

# Set by the app lifespan; tool handlers run outside any request dependency
_global_session_factory: Optional[sessionmaker] = None


def set_global_session_factory(factory) -> None:
    global _global_session_factory
    _global_session_factory = factory
    logger.info("Scheduling tools session factory registered.")


@asynccontextmanager
async def tool_db_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per tool step; commits are left to the crud functions."""
    if _global_session_factory is None:
        logger.error("tool_db_session used before the app lifespan registered a session factory.")
        raise RuntimeError("Database session factory not initialized globally.")

    async with _global_session_factory() as session:
        try:
            yield session
        except Exception:
            logger.exception("Scheduling tool step failed inside its database session")
            raise
