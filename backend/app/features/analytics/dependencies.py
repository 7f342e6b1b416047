"""Dependencies for the read-only analytics API."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import get_db
from app.features.alt_detection.repository import (
    AltDetectionRepositoryInterface,
    SQLAlchemyAltDetectionRepository,
)
from app.features.performance.repository import (
    PerformanceRepositoryInterface,
    SQLAlchemyPerformanceRepository,
)


async def get_alt_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AltDetectionRepositoryInterface:
    return SQLAlchemyAltDetectionRepository(db)


async def get_performance_repository(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PerformanceRepositoryInterface:
    return SQLAlchemyPerformanceRepository(db)


# Type aliases for cleaner dependency injection
AltRepositoryDep = Annotated[
    AltDetectionRepositoryInterface, Depends(get_alt_repository)
]
PerformanceRepositoryDep = Annotated[
    PerformanceRepositoryInterface, Depends(get_performance_repository)
]
