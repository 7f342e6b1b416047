"""Alt-account detection service.

Records every proxy connection and, on joins, links the account to other
accounts seen on the same hashed address.
"""

from typing import List, Optional

import structlog

from app.core.decorators import service_error_handler
from app.core.enums import AltGroupStatus, ConnectionKind, MemberRole
from app.core.models import utc_now
from app.features.alerts.dispatcher import AlertDispatcher
from app.features.alerts.rendering import alt_alert_key, build_alt_notification
from app.features.events.schemas import AltDetectedEvent, ConnectionEvent

from .hashing import hash_address
from .orm_models import AltGroupMemberORM, AltGroupORM, ConnectionEventORM
from .repository import AltDetectionRepositoryInterface, SiblingAccount
from .scoring import calculate_risk_score, names_overlap

logger = structlog.get_logger(__name__)


class AltDetectionService:
    """Thin orchestration over the alt detection repository.

    Two joins of the same account racing each other can both pass the
    "already grouped" check and create two groups; there is no database
    constraint preventing it.
    """

    def __init__(
        self,
        repository: AltDetectionRepositoryInterface,
        alerts: AlertDispatcher,
        hash_key: str,
        store_raw_addresses: bool = True,
    ):
        self.repository = repository
        self.alerts = alerts
        self.hash_key = hash_key
        self.store_raw_addresses = store_raw_addresses

    @service_error_handler("AltDetectionService")
    async def handle_connection(self, event: ConnectionEvent) -> Optional[AltGroupORM]:
        """Persist a connection and run alt detection for joins.

        :param event: Validated connection event
        :returns: The alt group created for this connection, if any
        """
        now = utc_now()
        hashed = hash_address(event.address, self.hash_key)

        await self.repository.add_connection(
            ConnectionEventORM(
                account_id=event.account_id,
                display_name=event.display_name,
                hashed_address=hashed,
                server_id=event.server_id,
                kind=event.kind.value,
                session_duration=event.session_duration,
                ping=event.ping,
                timestamp=now,
            )
        )
        if self.store_raw_addresses and event.address:
            await self.repository.upsert_address(hashed, event.address, now)

        profile = await self.repository.upsert_profile(
            event.account_id, event.display_name, now, event.session_duration
        )

        if event.kind is not ConnectionKind.JOIN or not event.address:
            return None

        siblings = await self.repository.find_sibling_accounts(
            hashed, event.account_id
        )
        if not siblings:
            return None

        if await self.repository.account_in_any_group(event.account_id):
            logger.debug(
                "Account already grouped, skipping alt detection",
                account_id=event.account_id,
            )
            return None

        overlap = names_overlap(event.display_name, (s.display_name for s in siblings))
        risk_score = calculate_risk_score(len(siblings), overlap)

        group = await self.repository.create_alt_group(
            self._build_group(
                event, hashed, risk_score, siblings, profile.connection_count
            )
        )
        logger.info(
            "Potential alt detected",
            account_id=event.account_id,
            group_id=group.id,
            risk_score=risk_score,
            siblings=len(siblings),
            name_overlap=overlap,
        )

        await self._forward_alert(event.account_id, group)
        return group

    @service_error_handler("AltDetectionService")
    async def handle_alt_detected(self, event: AltDetectedEvent) -> bool:
        """Re-forward the alert for a group another component already created.

        :returns: True when a notification was sent
        """
        group = await self.repository.get_alt_group(event.group_id)
        if group is None:
            logger.warning(
                "alt_detected event references unknown group",
                group_id=event.group_id,
                account_id=event.account_id,
            )
            return False

        return await self._forward_alert(event.account_id, group)

    async def _forward_alert(self, account_id: str, group: AltGroupORM) -> bool:
        notification = build_alt_notification(
            account_id=account_id,
            primary_name=group.primary_name,
            group_id=group.id,
            risk_score=group.risk_score,
            linked_names=[a["name"] for a in group.linked_accounts],
        )
        return await self.alerts.dispatch(alt_alert_key(account_id), notification)

    @staticmethod
    def _build_group(
        event: ConnectionEvent,
        hashed_address: str,
        risk_score: int,
        siblings: List[SiblingAccount],
        primary_connections: int,
    ) -> AltGroupORM:
        group = AltGroupORM(
            primary_account_id=event.account_id,
            primary_name=event.display_name,
            shared_address_hashes=[hashed_address],
            risk_score=risk_score,
            status=AltGroupStatus.PENDING.value,
            created_at=utc_now(),
        )
        group.members = [
            AltGroupMemberORM(
                account_id=event.account_id,
                display_name=event.display_name,
                role=MemberRole.PRIMARY.value,
                connection_count=primary_connections,
            )
        ] + [
            AltGroupMemberORM(
                account_id=s.account_id,
                display_name=s.display_name,
                role=MemberRole.LINKED.value,
                connection_count=s.connection_count,
            )
            for s in siblings
        ]
        return group
