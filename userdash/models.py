"""Domain models for records fetched from the users backend."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union


class BackendVersion(str, Enum):
    """Known shapes of the backend's user list response."""

    STRUCTURED = "structured"
    FLAT = "flat"


@dataclass(frozen=True)
class PersonName:
    """A name split into given and family parts."""

    first: str
    last: str

    @property
    def full(self) -> str:
        return " ".join(part for part in (self.first, self.last) if part)


@dataclass(frozen=True)
class UserRecord:
    """Represents a user account as returned by the backend."""

    uuid: str
    name: Union[PersonName, str]
    gender: str
    age: Optional[int]
    location: str


@dataclass(frozen=True)
class UserPage:
    """One fetched batch of users plus the count reported alongside it."""

    records: Tuple[UserRecord, ...]
    total: int
    version: BackendVersion


@dataclass(frozen=True)
class DailyAggregateRecord:
    """Server-computed daily summary of user counts and ages by gender."""

    id: Optional[str]
    date: datetime
    male_count: int
    female_count: int
    male_avg_age: Optional[float]
    female_avg_age: Optional[float]
    total_user: Optional[int] = None


__all__ = [
    "BackendVersion",
    "DailyAggregateRecord",
    "PersonName",
    "UserPage",
    "UserRecord",
]
