"""Immutable view state for the dashboard and the pure transitions between states."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

from .errors import DashboardError
from .models import DailyAggregateRecord, UserPage, UserRecord

T = TypeVar("T")


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class ResourceState(Generic[T]):
    """Lifecycle of one independently fetched resource.

    ``latest_request`` is the sequence number of the most recently issued
    fetch. Responses carrying an older number are stale and never applied, so
    the request issued last decides what is shown regardless of the order in
    which responses arrive. ``data`` always holds the last successfully
    loaded value, including while a newer fetch is loading or after it failed.
    """

    status: LoadStatus = LoadStatus.IDLE
    data: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    latest_request: int = 0
    loaded_request: int = 0

    @property
    def has_data(self) -> bool:
        return self.loaded_request > 0


def start_request(resource: ResourceState[T]) -> Tuple[ResourceState[T], int]:
    """Issue a new fetch, returning the updated state and its sequence number."""

    sequence = resource.latest_request + 1
    return replace(resource, status=LoadStatus.LOADING, latest_request=sequence), sequence


def is_stale(resource: ResourceState[T], sequence: int) -> bool:
    return sequence < resource.latest_request


def resolve_request(resource: ResourceState[T], sequence: int, data: T) -> ResourceState[T]:
    if is_stale(resource, sequence):
        return resource
    return replace(
        resource,
        status=LoadStatus.LOADED,
        data=data,
        error=None,
        error_kind=None,
        loaded_request=sequence,
    )


def fail_request(resource: ResourceState[T], sequence: int, error: DashboardError) -> ResourceState[T]:
    if is_stale(resource, sequence):
        return resource
    return replace(
        resource,
        status=LoadStatus.ERROR,
        error=str(error),
        error_kind=error.kind,
    )


@dataclass(frozen=True)
class ViewState:
    """Everything the dashboard shows, replaced wholesale on every change."""

    search_query: Optional[str] = None
    mounted: bool = False
    users: ResourceState[UserPage] = field(default_factory=ResourceState)
    daily_record: ResourceState[Optional[DailyAggregateRecord]] = field(default_factory=ResourceState)
    action_error: Optional[str] = None
    # Search the displayed user batch answered; lags search_query while a fetch is in flight.
    loaded_query: Optional[str] = None

    @property
    def records(self) -> Tuple[UserRecord, ...]:
        if self.users.data is None:
            return ()
        return self.users.data.records

    @property
    def total_count(self) -> int:
        if self.users.data is None:
            return 0
        return self.users.data.total

    @property
    def aggregate(self) -> Optional[DailyAggregateRecord]:
        return self.daily_record.data


def mount(state: ViewState) -> ViewState:
    return replace(state, mounted=True)


def change_search(state: ViewState, query: Optional[str]) -> ViewState:
    return replace(state, search_query=query)


def needs_fetch(state: ViewState, query: Optional[str]) -> bool:
    """True until mounted, and whenever the batch was fetched for another search."""

    return not state.mounted or state.search_query != query


def begin_users(state: ViewState) -> Tuple[ViewState, int]:
    users, sequence = start_request(state.users)
    return replace(state, users=users), sequence


def users_loaded(state: ViewState, sequence: int, page: UserPage, query: Optional[str]) -> ViewState:
    if is_stale(state.users, sequence):
        return state
    return replace(state, users=resolve_request(state.users, sequence, page), loaded_query=query)


def users_failed(state: ViewState, sequence: int, error: DashboardError) -> ViewState:
    return replace(state, users=fail_request(state.users, sequence, error))


def begin_daily_record(state: ViewState) -> Tuple[ViewState, int]:
    daily_record, sequence = start_request(state.daily_record)
    return replace(state, daily_record=daily_record), sequence


def daily_record_loaded(
    state: ViewState, sequence: int, record: Optional[DailyAggregateRecord]
) -> ViewState:
    return replace(state, daily_record=resolve_request(state.daily_record, sequence, record))


def daily_record_failed(state: ViewState, sequence: int, error: DashboardError) -> ViewState:
    return replace(state, daily_record=fail_request(state.daily_record, sequence, error))


def action_failed(state: ViewState, message: str) -> ViewState:
    return replace(state, action_error=message)


def clear_action_error(state: ViewState) -> ViewState:
    if state.action_error is None:
        return state
    return replace(state, action_error=None)


__all__ = [
    "LoadStatus",
    "ResourceState",
    "ViewState",
    "action_failed",
    "begin_daily_record",
    "begin_users",
    "change_search",
    "clear_action_error",
    "daily_record_failed",
    "daily_record_loaded",
    "fail_request",
    "is_stale",
    "mount",
    "needs_fetch",
    "resolve_request",
    "start_request",
    "users_failed",
    "users_loaded",
]
