"""Dependencies for the resolution feature."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import get_db
from app.features.alt_detection.repository import SQLAlchemyAltDetectionRepository
from app.features.performance.repository import SQLAlchemyPerformanceRepository

from .service import ResolutionService


async def get_resolution_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ResolutionService:
    """Get resolution service instance.

    Both repositories share the request's session.

    :param db: Database session
    :returns: Resolution service with injected repositories
    """
    return ResolutionService(
        SQLAlchemyAltDetectionRepository(db),
        SQLAlchemyPerformanceRepository(db),
    )


# Type alias for cleaner dependency injection
ResolutionServiceDep = Annotated[ResolutionService, Depends(get_resolution_service)]
