"""Declarative base and reusable column types shared by feature ORM models."""

from datetime import datetime, timezone
from typing import Annotated

from sqlalchemy import DateTime as SQLDateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, mapped_column


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


AutoIncrementPK = Annotated[
    int, mapped_column(Integer, primary_key=True, autoincrement=True)
]
AccountIdField = Annotated[str, mapped_column(String(36), nullable=False, index=True)]
ServerIdField = Annotated[str, mapped_column(String(64), nullable=False, index=True)]
RequiredDateTime = Annotated[
    datetime,
    mapped_column(SQLDateTime(timezone=True), nullable=False, default=utc_now),
]
