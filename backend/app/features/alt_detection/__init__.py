"""Alt-account detection feature.

Tracks proxy connections by keyed address hash and groups accounts that share
an address for staff review.
"""

from .hashing import hash_address
from .orm_models import (
    AccountProfileORM,
    AddressRecordORM,
    AltGroupMemberORM,
    AltGroupORM,
    ConnectionEventORM,
)
from .repository import (
    AltDetectionRepositoryInterface,
    SQLAlchemyAltDetectionRepository,
    SiblingAccount,
)
from .scoring import calculate_risk_score, names_overlap
from .service import AltDetectionService

__all__ = [
    "hash_address",
    "calculate_risk_score",
    "names_overlap",
    "AccountProfileORM",
    "AddressRecordORM",
    "AltGroupMemberORM",
    "AltGroupORM",
    "ConnectionEventORM",
    "AltDetectionRepositoryInterface",
    "SQLAlchemyAltDetectionRepository",
    "SiblingAccount",
    "AltDetectionService",
]
