"""Performance monitoring feature: tick rate, chunk load and lag findings."""

from .orm_models import ChunkRecordORM, ImpactSampleORM, LagFindingORM, TickSampleORM
from .repository import PerformanceRepositoryInterface, SQLAlchemyPerformanceRepository
from .service import PerformanceMonitorService
from .thresholds import ChunkClassification, classify_chunk, classify_tps

__all__ = [
    "ChunkRecordORM",
    "ImpactSampleORM",
    "LagFindingORM",
    "TickSampleORM",
    "PerformanceRepositoryInterface",
    "SQLAlchemyPerformanceRepository",
    "PerformanceMonitorService",
    "ChunkClassification",
    "classify_chunk",
    "classify_tps",
]
