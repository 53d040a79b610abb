"""Controller that owns the dashboard view state and drives backend fetches."""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Dict, List, Optional

import anyio

from . import state as transitions
from .client import UsersAPIClient
from .config import DEFAULT_DATE_FORMAT
from .errors import DashboardError
from .mapping import map_daily_rows, map_user_rows
from .state import ViewState

logger = logging.getLogger("userdash.controller")


class DashboardController:
    """Fetch, refresh and delete on behalf of the dashboard page.

    The controller is the only writer of :class:`~userdash.state.ViewState`.
    Each change swaps in a new state produced by the pure functions in
    :mod:`userdash.state`, and the state is re-read after every ``await``
    so concurrent fetches never overwrite each other's results.
    """

    def __init__(
        self,
        client: UsersAPIClient,
        *,
        zone: tzinfo,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> None:
        self._client = client
        self._zone = zone
        self._date_format = date_format
        self._state = ViewState()

    @property
    def state(self) -> ViewState:
        return self._state

    async def show(self, query: Optional[str], *, reuse: bool = False) -> ViewState:
        """Mount the page for ``query`` and fetch both resources.

        With ``reuse`` the current batch is kept when it already answers
        ``query``; only in-memory filtering changes between such loads.
        """

        if reuse and not transitions.needs_fetch(self._state, query):
            return self._state
        self._state = transitions.mount(transitions.change_search(self._state, query))
        await self.refresh()
        return self._state

    async def refresh(self) -> ViewState:
        """Fetch the user list and the daily record concurrently."""

        async with anyio.create_task_group() as task_group:
            task_group.start_soon(self.fetch_users)
            task_group.start_soon(self.fetch_daily_record)
        return self._state

    async def fetch_users(self) -> None:
        self._state, sequence = transitions.begin_users(self._state)
        query = self._state.search_query
        try:
            page = await self._client.list_users(query)
        except DashboardError as exc:
            logger.warning("Failed to fetch users (search=%r): %s", query, exc)
            self._state = transitions.users_failed(self._state, sequence, exc)
            return

        if transitions.is_stale(self._state.users, sequence):
            logger.debug("Discarding stale user list response #%d", sequence)
        self._state = transitions.users_loaded(self._state, sequence, page, query)

    async def fetch_daily_record(self) -> None:
        self._state, sequence = transitions.begin_daily_record(self._state)
        try:
            record = await self._client.get_daily_record()
        except DashboardError as exc:
            logger.warning("Failed to fetch daily record: %s", exc)
            self._state = transitions.daily_record_failed(self._state, sequence, exc)
            return

        self._state = transitions.daily_record_loaded(self._state, sequence, record)

    async def delete_user(self, uuid: str) -> bool:
        """Delete ``uuid`` and refetch everything; on failure keep the current rows."""

        self._state = transitions.clear_action_error(self._state)
        try:
            await self._client.delete_user(uuid)
        except DashboardError as exc:
            logger.warning("Failed to delete user %s: %s", uuid, exc)
            self._state = transitions.action_failed(self._state, f"Could not delete user: {exc}")
            return False

        await self.refresh()
        return True

    def user_rows(self) -> List[Dict[str, object]]:
        return map_user_rows(self._state.records)

    def daily_rows(self) -> List[Dict[str, object]]:
        return map_daily_rows(self._state.aggregate, self._zone, self._date_format)


__all__ = ["DashboardController"]
