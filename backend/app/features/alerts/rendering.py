"""Builders turning detection results into :class:`Notification` records.

Only structure is produced here (title, colour, fields, actions); sinks decide
how it is displayed.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from app.core.enums import LagKind, Severity

from .schemas import Notification, NotificationField, ResolutionAction

RED = 0xEF4444
AMBER = 0xF59E0B
YELLOW = 0xEAB308
BLUE = 0x3B82F6

SEVERITY_COLORS: Dict[Severity, int] = {
    Severity.CRITICAL: RED,
    Severity.HIGH: AMBER,
    Severity.MEDIUM: YELLOW,
    Severity.LOW: BLUE,
}

LAG_KIND_TITLES: Dict[LagKind, str] = {
    LagKind.TPS_DROP: "TPS Drop",
    LagKind.ENTITY_SPAM: "Entity Spam",
    LagKind.REDSTONE_LAG: "Redstone Lag",
    LagKind.CHUNK_OVERLOAD: "Chunk Overload",
    LagKind.HOPPER_LAG: "Hopper Lag",
    LagKind.PISTON_SPAM: "Piston Spam",
    LagKind.SUSPECTED_LAG_MACHINE: "Suspected Lag Machine",
}

ALT_CONFIRM_PREFIX = "alt_confirm_"
ALT_DENY_PREFIX = "alt_deny_"
LAG_RESOLVE_PREFIX = "lag_resolve_"

TOP_ENTITY_LIMIT = 5


def severity_color(severity: Severity | str) -> int:
    """Colour for a severity; unknown values fall back to amber."""
    try:
        return SEVERITY_COLORS[Severity(severity)]
    except ValueError:
        return AMBER


def risk_color(risk_score: int) -> int:
    """Red at 70 and above, amber at 50 and above, blue otherwise."""
    if risk_score >= 70:
        return RED
    if risk_score >= 50:
        return AMBER
    return BLUE


def alt_actions(group_id: int) -> List[ResolutionAction]:
    return [
        ResolutionAction(
            id=f"{ALT_CONFIRM_PREFIX}{group_id}",
            label="Confirm ALT",
            resolves_finding_id=group_id,
        ),
        ResolutionAction(
            id=f"{ALT_DENY_PREFIX}{group_id}",
            label="False Positive",
            resolves_finding_id=group_id,
        ),
    ]


def lag_resolve_action(finding_id: int) -> ResolutionAction:
    return ResolutionAction(
        id=f"{LAG_RESOLVE_PREFIX}{finding_id}",
        label="Mark Resolved",
        resolves_finding_id=finding_id,
    )


def alt_alert_key(account_id: str) -> str:
    return f"alt_{account_id}"


def tps_alert_key(server_id: str) -> str:
    return f"tps_{server_id}"


def chunk_alert_key(server_id: str, chunk_x: int, chunk_z: int) -> str:
    return f"chunk_{server_id}_{chunk_x}_{chunk_z}"


def lag_alert_key(server_id: str, kind: LagKind | str) -> str:
    return f"lag_{server_id}_{LagKind(kind).value}"


def build_alt_notification(
    *,
    account_id: str,
    primary_name: str,
    group_id: int,
    risk_score: int,
    linked_names: Sequence[str],
    reason: str = "Shared IP address",
) -> Notification:
    """Alert for a newly created (or re-forwarded) alt group."""
    linked = "\n".join(f"- {name}" for name in linked_names) or "None"
    return Notification(
        title="Potential ALT Detected",
        severity_color=risk_color(risk_score),
        description=f"Group ID: {group_id}",
        fields=[
            NotificationField(name="Primary", value=primary_name or account_id),
            NotificationField(name="Risk Score", value=f"{risk_score}/100"),
            NotificationField(name="Linked Accounts", value=linked),
            NotificationField(name="Detection Reason", value=reason),
        ],
        actions=alt_actions(group_id),
        alert_key=alt_alert_key(account_id),
    )


def build_tps_notification(
    *,
    server_id: str,
    finding_id: int,
    severity: Severity,
    ticks_per_second: float,
    millis_per_tick: float,
    entity_count: int,
    loaded_chunks: int,
    player_count: int,
) -> Notification:
    return Notification(
        title=f"TPS Drop Alert - {server_id}",
        severity_color=severity_color(severity),
        description="Server TPS has dropped below safe levels",
        fields=[
            NotificationField(name="TPS", value=f"{ticks_per_second:.2f}"),
            NotificationField(name="MSPT", value=f"{millis_per_tick:.2f}ms"),
            NotificationField(name="Severity", value=severity.value.upper()),
            NotificationField(name="Entities", value=str(entity_count)),
            NotificationField(name="Chunks", value=str(loaded_chunks)),
            NotificationField(name="Players", value=str(player_count)),
        ],
        actions=[lag_resolve_action(finding_id)],
        alert_key=tps_alert_key(server_id),
    )


def top_entities(
    breakdown: Mapping[str, int], limit: int = TOP_ENTITY_LIMIT
) -> List[tuple[str, int]]:
    """Largest entity types first, ties broken by name."""
    return sorted(breakdown.items(), key=lambda item: (-item[1], item[0]))[:limit]


def build_chunk_notification(
    *,
    server_id: str,
    finding_id: int,
    severity: Severity,
    world: str,
    chunk_x: int,
    chunk_z: int,
    flag_reason: str,
    entity_count: int,
    hopper_count: int,
    redstone_count: int,
    entity_breakdown: Optional[Mapping[str, int]] = None,
) -> Notification:
    fields = [
        NotificationField(name="Issue", value=flag_reason, inline=False),
        NotificationField(name="Entities", value=str(entity_count)),
        NotificationField(name="Hoppers", value=str(hopper_count)),
        NotificationField(name="Redstone", value=str(redstone_count)),
    ]
    if entity_breakdown:
        lines = "\n".join(
            f"{name}: {count}" for name, count in top_entities(entity_breakdown)
        )
        fields.append(NotificationField(name="Top Entities", value=lines, inline=False))

    return Notification(
        title=f"Problem Chunk Detected - {server_id}",
        severity_color=severity_color(severity),
        description=(
            f"World: {world}\nChunk: ({chunk_x}, {chunk_z})\n"
            f"Block Coords: ({chunk_x * 16}, {chunk_z * 16})"
        ),
        fields=fields,
        actions=[lag_resolve_action(finding_id)],
        alert_key=chunk_alert_key(server_id, chunk_x, chunk_z),
    )


def _format_location(location: Mapping[str, Any]) -> str:
    world = location.get("world", "unknown")
    x = location.get("x", location.get("block_x", "~"))
    y = location.get("y", "~")
    z = location.get("z", location.get("block_z", "~"))
    return f"World: {world}\nCoords: ({x}, {y}, {z})"


def build_lag_notification(
    *,
    server_id: str,
    finding_id: int,
    kind: LagKind,
    severity: Severity,
    details: str,
    location: Optional[Mapping[str, Any]] = None,
    player_nearby: Optional[Mapping[str, Any]] = None,
) -> Notification:
    fields = [NotificationField(name="Severity", value=severity.value.upper())]
    if location:
        fields.append(NotificationField(name="Location", value=_format_location(location)))
    if player_nearby:
        name = player_nearby.get("username") or player_nearby.get("name") or "Unknown"
        fields.append(NotificationField(name="Player Nearby", value=str(name)))

    return Notification(
        title=f"{LAG_KIND_TITLES.get(kind, kind.value)} - {server_id}",
        severity_color=severity_color(severity),
        description=details,
        fields=fields,
        actions=[lag_resolve_action(finding_id)],
        alert_key=lag_alert_key(server_id, kind),
    )
