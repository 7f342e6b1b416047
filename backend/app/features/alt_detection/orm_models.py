"""SQLAlchemy 2.0 ORM models for connection tracking and alt detection.

Raw network addresses never appear in ``connection_events``; the keyed hash is
the only join key used by similarity queries. The raw value, when retained at
all, lives in ``address_records`` keyed by that hash.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    DateTime as SQLDateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.enums import AltGroupStatus, MemberRole
from app.core.models import (
    AccountIdField,
    AutoIncrementPK,
    Base,
    RequiredDateTime,
    utc_now,
)


class ConnectionEventORM(Base):
    """One proxy connection event. Immutable once written."""

    __tablename__ = "connection_events"
    __table_args__ = (
        Index("idx_connection_events_hash_account", "hashed_address", "account_id"),
        Index("idx_connection_events_timestamp", "timestamp"),
    )

    id: Mapped[AutoIncrementPK]
    account_id: Mapped[AccountIdField]
    display_name: Mapped[str] = mapped_column(String(32), nullable=False)
    hashed_address: Mapped[str] = mapped_column(String(64), nullable=False)
    server_id: Mapped[str] = mapped_column(String(64), nullable=False, default="proxy")
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    session_duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ping: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    timestamp: Mapped[RequiredDateTime]


class AddressRecordORM(Base):
    """Raw address retained apart from the hash-indexed connection log."""

    __tablename__ = "address_records"

    hashed_address: Mapped[str] = mapped_column(String(64), primary_key=True)
    raw_address: Mapped[str] = mapped_column(String(64), nullable=False)
    first_seen: Mapped[RequiredDateTime]
    last_seen: Mapped[datetime] = mapped_column(
        SQLDateTime(timezone=True), nullable=False, default=utc_now, index=True
    )


class AccountProfileORM(Base):
    """Aggregated per-account statistics, upserted on every connection."""

    __tablename__ = "account_profiles"

    account_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    first_seen: Mapped[RequiredDateTime]
    last_seen: Mapped[RequiredDateTime]
    connection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_playtime: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    session_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @property
    def average_session_length(self) -> float:
        """Mean session length in seconds, 0 when no session was reported."""
        if not self.session_count:
            return 0.0
        return self.total_playtime / self.session_count


class AltGroupORM(Base):
    """A cluster of accounts suspected to belong to one person (Rich Domain Model)."""

    __tablename__ = "alt_groups"
    __table_args__ = (Index("idx_alt_groups_status_risk", "status", "risk_score"),)

    id: Mapped[AutoIncrementPK]
    primary_account_id: Mapped[AccountIdField]
    primary_name: Mapped[str] = mapped_column(String(32), nullable=False)
    shared_address_hashes: Mapped[List[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=AltGroupStatus.PENDING.value
    )
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        SQLDateTime(timezone=True), nullable=True
    )
    created_at: Mapped[RequiredDateTime]

    members: Mapped[List["AltGroupMemberORM"]] = relationship(
        back_populates="group",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="AltGroupMemberORM.id",
    )

    @property
    def is_pending(self) -> bool:
        return self.status == AltGroupStatus.PENDING.value

    @property
    def linked_accounts(self) -> List[Dict[str, Any]]:
        """Linked (non-primary) accounts as ``{account_id, name}`` pairs."""
        return [
            {"account_id": m.account_id, "name": m.display_name}
            for m in self.members
            if m.role == MemberRole.LINKED.value
        ]


class AltGroupMemberORM(Base):
    """Membership row making "is this account already grouped?" an indexed lookup."""

    __tablename__ = "alt_group_members"

    id: Mapped[AutoIncrementPK]
    group_id: Mapped[int] = mapped_column(
        ForeignKey("alt_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[AccountIdField]
    display_name: Mapped[str] = mapped_column(String(32), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    connection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    group: Mapped[AltGroupORM] = relationship(back_populates="members")
