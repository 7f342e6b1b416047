"""Pydantic response schemas for alt groups and account profiles."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import AltGroupStatus


class LinkedAccount(BaseModel):
    account_id: str
    name: str


class AltGroupResponse(BaseModel):
    """Alt group as returned by the resolution and read APIs."""

    id: int
    primary_account_id: str
    primary_name: str
    linked_accounts: List[LinkedAccount] = Field(default_factory=list)
    shared_address_hashes: List[str] = Field(default_factory=list)
    risk_score: int = Field(ge=0, le=100)
    status: AltGroupStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConnectionResponse(BaseModel):
    """A connection event; only the hashed address is ever exposed."""

    account_id: str
    display_name: str
    hashed_address: str
    server_id: str
    kind: str
    session_duration: int
    ping: int
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountProfileResponse(BaseModel):
    account_id: str
    display_name: str
    first_seen: datetime
    last_seen: datetime
    connection_count: int
    total_playtime: int
    session_count: int
    average_session_length: float

    model_config = ConfigDict(from_attributes=True)


class PlayerOverviewResponse(BaseModel):
    """Profile, recent connections and alt-group membership of one account."""

    profile: AccountProfileResponse
    recent_connections: List[ConnectionResponse] = Field(default_factory=list)
    alt_group: Optional[AltGroupResponse] = None
