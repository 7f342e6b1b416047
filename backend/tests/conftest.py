"""Shared fixtures: in-memory repositories, a controllable clock and a recording sink."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from app.core.enums import AltGroupStatus, MemberRole, Severity
from app.core.models import utc_now
from app.features.alerts.cooldown import CooldownController
from app.features.alerts.dispatcher import AlertDispatcher
from app.features.alerts.schemas import Notification
from app.features.alt_detection.orm_models import (
    AccountProfileORM,
    AltGroupMemberORM,
    AltGroupORM,
    ConnectionEventORM,
)
from app.features.alt_detection.repository import (
    AltDetectionRepositoryInterface,
    SiblingAccount,
)
from app.features.performance.orm_models import (
    ChunkRecordORM,
    ImpactSampleORM,
    LagFindingORM,
    TickSampleORM,
)
from app.features.performance.repository import PerformanceRepositoryInterface


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSink:
    def __init__(self, fail_with: Optional[Exception] = None):
        self.sent: List[Notification] = []
        self.fail_with = fail_with

    async def send(self, notification: Notification) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(notification)

    async def close(self) -> None:
        return None


class InMemoryAltDetectionRepository(AltDetectionRepositoryInterface):
    def __init__(self):
        self.connections: List[ConnectionEventORM] = []
        self.addresses: Dict[str, Dict[str, Any]] = {}
        self.profiles: Dict[str, AccountProfileORM] = {}
        self.groups: Dict[int, AltGroupORM] = {}

    async def add_connection(self, connection):
        connection.id = len(self.connections) + 1
        self.connections.append(connection)
        return connection

    async def upsert_address(self, hashed_address, raw_address, seen_at):
        record = self.addresses.setdefault(
            hashed_address, {"raw_address": raw_address, "first_seen": seen_at}
        )
        record.update(raw_address=raw_address, last_seen=seen_at)

    async def upsert_profile(self, account_id, display_name, seen_at, session_duration=0):
        profile = self.profiles.get(account_id)
        if profile is None:
            profile = AccountProfileORM(
                account_id=account_id,
                display_name=display_name,
                first_seen=seen_at,
                last_seen=seen_at,
                connection_count=0,
                total_playtime=0,
                session_count=0,
            )
            self.profiles[account_id] = profile
        if display_name:
            profile.display_name = display_name
        profile.last_seen = seen_at
        profile.connection_count += 1
        if session_duration > 0:
            profile.total_playtime += session_duration
            profile.session_count += 1
        return profile

    async def find_sibling_accounts(self, hashed_address, account_id):
        latest: Dict[str, str] = {}
        counts: Dict[str, int] = {}
        for c in self.connections:
            if c.hashed_address != hashed_address or c.account_id == account_id:
                continue
            latest[c.account_id] = c.display_name
            counts[c.account_id] = counts.get(c.account_id, 0) + 1
        return [
            SiblingAccount(account_id=a, display_name=latest[a], connection_count=counts[a])
            for a in latest
        ]

    async def account_in_any_group(self, account_id):
        return await self.get_group_for_account(account_id) is not None

    async def create_alt_group(self, group):
        group.id = len(self.groups) + 1
        for member in group.members:
            member.group_id = group.id
        self.groups[group.id] = group
        return group

    async def get_alt_group(self, group_id):
        return self.groups.get(group_id)

    async def mark_alt_group_reviewed(self, group_id, status, reviewed_by, reviewed_at):
        group = self.groups.get(group_id)
        if group is None or group.status != AltGroupStatus.PENDING.value:
            return None
        group.status = status.value
        group.reviewed_by = reviewed_by
        group.reviewed_at = reviewed_at
        return group

    async def get_pending_alt_groups(self, limit):
        pending = [g for g in self.groups.values() if g.is_pending]
        return sorted(pending, key=lambda g: -g.risk_score)[:limit]

    async def get_group_for_account(self, account_id):
        for group in self.groups.values():
            if group.primary_account_id == account_id or any(
                m.account_id == account_id for m in group.members
            ):
                return group
        return None

    async def get_profile(self, account_id):
        return self.profiles.get(account_id)

    async def get_recent_connections(self, account_id, limit):
        own = [c for c in self.connections if c.account_id == account_id]
        return list(reversed(own))[:limit]

    def linked_roles(self, group_id: int) -> Dict[str, str]:
        return {m.account_id: m.role for m in self.groups[group_id].members}


class InMemoryPerformanceRepository(PerformanceRepositoryInterface):
    def __init__(self):
        self.tick_samples: List[TickSampleORM] = []
        self.chunks: Dict[tuple, ChunkRecordORM] = {}
        self.findings: Dict[int, LagFindingORM] = {}
        self.impact_samples: List[ImpactSampleORM] = []

    async def add_tick_sample(self, sample):
        sample.id = len(self.tick_samples) + 1
        self.tick_samples.append(sample)
        return sample

    async def upsert_chunk(self, values):
        key = (values["server_id"], values["world"], values["chunk_x"], values["chunk_z"])
        chunk = self.chunks.get(key)
        if chunk is None:
            chunk = ChunkRecordORM(id=len(self.chunks) + 1)
            self.chunks[key] = chunk
        for column, value in values.items():
            setattr(chunk, column, value)
        return chunk

    async def add_lag_finding(self, finding):
        finding.id = len(self.findings) + 1
        if finding.resolved is None:
            finding.resolved = False
        self.findings[finding.id] = finding
        return finding

    async def add_impact_sample(self, sample):
        sample.id = len(self.impact_samples) + 1
        self.impact_samples.append(sample)
        return sample

    async def get_lag_finding(self, finding_id):
        return self.findings.get(finding_id)

    async def mark_lag_finding_resolved(self, finding_id, resolved_by, resolved_at):
        finding = self.findings.get(finding_id)
        if finding is None or finding.resolved:
            return None
        finding.resolved = True
        finding.resolved_by = resolved_by
        finding.resolved_at = resolved_at
        return finding

    async def get_latest_tick_samples(self):
        latest: Dict[str, TickSampleORM] = {}
        for sample in self.tick_samples:
            latest[sample.server_id] = sample
        return [latest[k] for k in sorted(latest)]

    async def get_latest_tick_sample(self, server_id):
        own = [s for s in self.tick_samples if s.server_id == server_id]
        return own[-1] if own else None

    async def get_flagged_chunks(self, server_id, limit):
        flagged = [
            c
            for c in self.chunks.values()
            if c.flagged and (server_id is None or c.server_id == server_id)
        ]
        return sorted(flagged, key=lambda c: -c.entity_count)[:limit]

    async def get_lag_findings(
        self, server_id, severity: Optional[Severity], unresolved_only, limit
    ):
        findings = [
            f
            for f in self.findings.values()
            if (server_id is None or f.server_id == server_id)
            and (severity is None or f.severity == severity.value)
            and (not unresolved_only or not f.resolved)
        ]
        return list(reversed(findings))[:limit]


def make_group(
    group_id: int,
    status: AltGroupStatus = AltGroupStatus.PENDING,
    created_at: Optional[datetime] = None,
) -> AltGroupORM:
    """Stand-alone alt group with one primary and one linked member."""
    group = AltGroupORM(
        id=group_id,
        primary_account_id="acc-new",
        primary_name="Steve2",
        shared_address_hashes=["abcdef0123456789"],
        risk_score=60,
        status=status.value,
        created_at=created_at or utc_now(),
    )
    group.members = [
        AltGroupMemberORM(
            account_id="acc-new", display_name="Steve2", role=MemberRole.PRIMARY.value
        ),
        AltGroupMemberORM(
            account_id="acc-old", display_name="Steve", role=MemberRole.LINKED.value
        ),
    ]
    return group


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def cooldowns(fake_clock):
    return CooldownController(window_seconds=3.0, clock=fake_clock)


@pytest.fixture
def alert_dispatcher(cooldowns, recording_sink):
    return AlertDispatcher(cooldowns, recording_sink)


@pytest.fixture
def alt_repository():
    return InMemoryAltDetectionRepository()


@pytest.fixture
def performance_repository():
    return InMemoryPerformanceRepository()


@pytest.fixture
def group_factory():
    return make_group
