"""Repository pattern implementation for connection tracking and alt groups.

Isolates data access for the alt detector and the resolution workflow from
business logic.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import AltGroupStatus

from .orm_models import (
    AccountProfileORM,
    AddressRecordORM,
    AltGroupMemberORM,
    AltGroupORM,
    ConnectionEventORM,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SiblingAccount:
    """Another account seen on the same hashed address."""

    account_id: str
    display_name: str
    connection_count: int


class AltDetectionRepositoryInterface(ABC):
    """Interface for connection and alt-group data access.

    Enables in-memory fakes in tests.
    """

    @abstractmethod
    async def add_connection(
        self, connection: ConnectionEventORM
    ) -> ConnectionEventORM:
        """Append an immutable connection event.

        :param connection: Connection carrying the hashed address only
        :returns: Stored connection with generated id
        """
        pass

    @abstractmethod
    async def upsert_address(
        self, hashed_address: str, raw_address: str, seen_at: datetime
    ) -> None:
        """Record (or refresh) the raw address behind a hash.

        :param hashed_address: Keyed hash used everywhere else
        :param raw_address: Raw network address
        :param seen_at: Connection time
        """
        pass

    @abstractmethod
    async def upsert_profile(
        self,
        account_id: str,
        display_name: str,
        seen_at: datetime,
        session_duration: int = 0,
    ) -> AccountProfileORM:
        """Create or update the aggregated profile for an account.

        Increments the connection count; ``first_seen`` is only set on insert.
        A positive ``session_duration`` is added to the playtime totals.
        """
        pass

    @abstractmethod
    async def find_sibling_accounts(
        self, hashed_address: str, account_id: str
    ) -> List[SiblingAccount]:
        """Distinct other accounts that connected from ``hashed_address``.

        :returns: One entry per account with its most recent display name
        """
        pass

    @abstractmethod
    async def account_in_any_group(self, account_id: str) -> bool:
        """Whether the account is primary or linked member of any alt group."""
        pass

    @abstractmethod
    async def create_alt_group(self, group: AltGroupORM) -> AltGroupORM:
        """Persist a new alt group together with its members."""
        pass

    @abstractmethod
    async def get_alt_group(self, group_id: int) -> Optional[AltGroupORM]:
        pass

    @abstractmethod
    async def mark_alt_group_reviewed(
        self,
        group_id: int,
        status: AltGroupStatus,
        reviewed_by: str,
        reviewed_at: datetime,
    ) -> Optional[AltGroupORM]:
        """Move a pending group to a terminal status.

        :returns: The updated group, or None when the group was not pending
            (already reviewed, or missing)
        """
        pass

    @abstractmethod
    async def get_pending_alt_groups(self, limit: int) -> List[AltGroupORM]:
        """Pending groups, highest risk first."""
        pass

    @abstractmethod
    async def get_group_for_account(self, account_id: str) -> Optional[AltGroupORM]:
        pass

    @abstractmethod
    async def get_profile(self, account_id: str) -> Optional[AccountProfileORM]:
        pass

    @abstractmethod
    async def get_recent_connections(
        self, account_id: str, limit: int
    ) -> List[ConnectionEventORM]:
        pass


class SQLAlchemyAltDetectionRepository(AltDetectionRepositoryInterface):
    """SQLAlchemy implementation of the alt detection repository."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        :param db: Async database session
        """
        self.db = db

    async def add_connection(
        self, connection: ConnectionEventORM
    ) -> ConnectionEventORM:
        self.db.add(connection)
        await self.db.commit()
        await self.db.refresh(connection)

        logger.debug(
            "connection_recorded",
            account_id=connection.account_id,
            kind=connection.kind,
            server_id=connection.server_id,
        )
        return connection

    async def upsert_address(
        self, hashed_address: str, raw_address: str, seen_at: datetime
    ) -> None:
        stmt = (
            insert(AddressRecordORM)
            .values(
                hashed_address=hashed_address,
                raw_address=raw_address,
                first_seen=seen_at,
                last_seen=seen_at,
            )
            .on_conflict_do_update(
                index_elements=["hashed_address"],
                set_=dict(raw_address=raw_address, last_seen=seen_at),
            )
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def upsert_profile(
        self,
        account_id: str,
        display_name: str,
        seen_at: datetime,
        session_duration: int = 0,
    ) -> AccountProfileORM:
        session_increment = 1 if session_duration > 0 else 0
        stmt = insert(AccountProfileORM).values(
            account_id=account_id,
            display_name=display_name,
            first_seen=seen_at,
            last_seen=seen_at,
            connection_count=1,
            total_playtime=max(session_duration, 0),
            session_count=session_increment,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["account_id"],
            set_=dict(
                # Keep the stored name when the event carries none
                display_name=func.coalesce(
                    func.nullif(stmt.excluded.display_name, ""),
                    AccountProfileORM.display_name,
                ),
                last_seen=stmt.excluded.last_seen,
                connection_count=AccountProfileORM.connection_count + 1,
                total_playtime=AccountProfileORM.total_playtime
                + stmt.excluded.total_playtime,
                session_count=AccountProfileORM.session_count
                + stmt.excluded.session_count,
            ),
        ).returning(AccountProfileORM)

        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.scalar_one()

    async def find_sibling_accounts(
        self, hashed_address: str, account_id: str
    ) -> List[SiblingAccount]:
        per_account = (
            select(
                ConnectionEventORM.account_id.label("account_id"),
                func.max(ConnectionEventORM.timestamp).label("last_seen"),
                func.count().label("connection_count"),
            )
            .where(
                ConnectionEventORM.hashed_address == hashed_address,
                ConnectionEventORM.account_id != account_id,
            )
            .group_by(ConnectionEventORM.account_id)
            .subquery()
        )

        stmt = (
            select(
                per_account.c.account_id,
                ConnectionEventORM.display_name,
                per_account.c.connection_count,
            )
            .join(
                per_account,
                and_(
                    ConnectionEventORM.account_id == per_account.c.account_id,
                    ConnectionEventORM.timestamp == per_account.c.last_seen,
                ),
            )
            .where(ConnectionEventORM.hashed_address == hashed_address)
            .order_by(per_account.c.account_id, ConnectionEventORM.id.desc())
        )

        result = await self.db.execute(stmt)

        siblings: dict[str, SiblingAccount] = {}
        for row in result.all():
            # Same-timestamp duplicates: keep the newest row per account
            if row.account_id not in siblings:
                siblings[row.account_id] = SiblingAccount(
                    account_id=row.account_id,
                    display_name=row.display_name,
                    connection_count=int(row.connection_count),
                )

        logger.debug(
            "sibling_accounts_found",
            account_id=account_id,
            count=len(siblings),
        )
        return list(siblings.values())

    async def account_in_any_group(self, account_id: str) -> bool:
        stmt = (
            select(AltGroupORM.id)
            .outerjoin(AltGroupMemberORM, AltGroupMemberORM.group_id == AltGroupORM.id)
            .where(
                or_(
                    AltGroupORM.primary_account_id == account_id,
                    AltGroupMemberORM.account_id == account_id,
                )
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def create_alt_group(self, group: AltGroupORM) -> AltGroupORM:
        self.db.add(group)
        await self.db.commit()
        await self.db.refresh(group)

        logger.info(
            "alt_group_created",
            group_id=group.id,
            primary_account_id=group.primary_account_id,
            risk_score=group.risk_score,
            members=len(group.members),
        )
        return group

    async def get_alt_group(self, group_id: int) -> Optional[AltGroupORM]:
        stmt = (
            select(AltGroupORM)
            .where(AltGroupORM.id == group_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_alt_group_reviewed(
        self,
        group_id: int,
        status: AltGroupStatus,
        reviewed_by: str,
        reviewed_at: datetime,
    ) -> Optional[AltGroupORM]:
        stmt = (
            update(AltGroupORM)
            .where(
                AltGroupORM.id == group_id,
                AltGroupORM.status == AltGroupStatus.PENDING.value,
            )
            .values(
                status=status.value,
                reviewed_by=reviewed_by,
                reviewed_at=reviewed_at,
            )
            .returning(AltGroupORM.id)
        )
        result = await self.db.execute(stmt)
        updated_id = result.scalar_one_or_none()
        await self.db.commit()

        if updated_id is None:
            return None

        logger.info(
            "alt_group_reviewed",
            group_id=group_id,
            status=status.value,
            reviewed_by=reviewed_by,
        )
        return await self.get_alt_group(group_id)

    async def get_pending_alt_groups(self, limit: int) -> List[AltGroupORM]:
        stmt = (
            select(AltGroupORM)
            .where(AltGroupORM.status == AltGroupStatus.PENDING.value)
            .order_by(AltGroupORM.risk_score.desc(), AltGroupORM.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_group_for_account(self, account_id: str) -> Optional[AltGroupORM]:
        stmt = (
            select(AltGroupORM)
            .outerjoin(AltGroupMemberORM, AltGroupMemberORM.group_id == AltGroupORM.id)
            .where(
                or_(
                    AltGroupORM.primary_account_id == account_id,
                    AltGroupMemberORM.account_id == account_id,
                )
            )
            .order_by(AltGroupORM.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_profile(self, account_id: str) -> Optional[AccountProfileORM]:
        stmt = select(AccountProfileORM).where(
            AccountProfileORM.account_id == account_id
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_recent_connections(
        self, account_id: str, limit: int
    ) -> List[ConnectionEventORM]:
        stmt = (
            select(ConnectionEventORM)
            .where(ConnectionEventORM.account_id == account_id)
            .order_by(ConnectionEventORM.timestamp.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
