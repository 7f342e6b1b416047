"""Database initialization script using SQLAlchemy create_all().

Creates the telemetry, alt-detection and performance tables. Schema changes
are applied by recreating tables rather than through migrations.

Usage:
    python -m app.init_db [init|drop|reset]
"""

import asyncio
import sys
from typing import Awaitable, Callable, Dict, NoReturn

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.config import get_global_settings
from app.core.models import Base

# Imported for their side effect of registering tables on Base.metadata
from app.features.alt_detection import orm_models as _alt_detection_models  # noqa: F401
from app.features.performance import orm_models as _performance_models  # noqa: F401

logger = structlog.get_logger(__name__)


def _create_engine() -> AsyncEngine:
    settings = get_global_settings()
    logger.info(
        "Connecting to database",
        database_url=settings.database_url.replace(settings.postgres_password, "***"),
    )
    return create_async_engine(settings.database_url, echo=settings.debug, future=True)


async def _run_on_metadata(action: str, fn: Callable) -> None:
    engine = _create_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(fn)
    except SQLAlchemyError as e:
        logger.error(
            f"Database {action} failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
    finally:
        await engine.dispose()


async def init_db() -> None:
    """Create every table registered on ``Base.metadata`` that does not exist."""
    await _run_on_metadata("initialization", Base.metadata.create_all)
    logger.info(
        "Database initialization completed successfully",
        tables_created=len(Base.metadata.tables),
        table_names=sorted(Base.metadata.tables),
    )


async def drop_all_tables() -> None:
    """Drop all tables. Destructive: only for development resets."""
    logger.warning("Dropping all database tables...")
    await _run_on_metadata("drop", Base.metadata.drop_all)
    logger.info("All database tables dropped successfully")


async def reset_db() -> None:
    """Drop and recreate all tables."""
    await drop_all_tables()
    await init_db()


COMMANDS: Dict[str, Callable[[], Awaitable[None]]] = {
    "init": init_db,
    "drop": drop_all_tables,
    "reset": reset_db,
}


def main() -> NoReturn:
    command = sys.argv[1] if len(sys.argv) > 1 else "init"
    handler = COMMANDS.get(command)
    if handler is None:
        logger.error("Unknown command", command=command)
        print("Usage: python -m app.init_db [init|drop|reset]")
        sys.exit(1)

    asyncio.run(handler())
    sys.exit(0)


if __name__ == "__main__":
    main()
