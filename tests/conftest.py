from __future__ import annotations

import json
from typing import Dict, List, Optional

import httpx
import pytest

from userdash.backend import adapter_for
from userdash.client import UsersAPIClient

BASE_URL = "http://backend.test"


def structured_user(uuid: str, first: str, last: str, gender: str, age: int, location: str) -> Dict[str, object]:
    return {
        "uuid": uuid,
        "name": json.dumps({"first": first, "last": last}),
        "gender": gender,
        "age": age,
        "location": location,
    }


class FakeBackend:
    """In-memory stand-in for the users REST API, served through ``httpx.MockTransport``."""

    def __init__(self, users: List[Dict[str, object]], *, flat: bool = False) -> None:
        self.users = list(users)
        self.flat = flat
        self.daily_record: Optional[Dict[str, object]] = {
            "uuid": "rec-1",
            "date": "2024-03-01T12:00:00Z",
            "male_count": 1,
            "female_count": 1,
            "male_avg_age": 41.5,
            "female_avg_age": 30,
        }
        self.delete_status = 204
        self.list_status = 200
        self.requests: List[httpx.Request] = []

    def _matches(self, user: Dict[str, object], term: str) -> bool:
        haystack = " ".join(str(value) for value in user.values()).lower()
        return term.lower() in haystack

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "GET" and path == "/api/users":
            if self.list_status != 200:
                return httpx.Response(self.list_status, json={"message": "list failed"})
            term = request.url.params.get("search")
            users = self.users if term is None else [u for u in self.users if self._matches(u, term)]
            body: Dict[str, object] = {"data": users}
            if self.flat:
                body["meta"] = {"total": len(users)}
            return httpx.Response(200, json=body)

        if request.method == "GET" and path == "/api/daily-record":
            return httpx.Response(200, json={"data": self.daily_record})

        if request.method == "DELETE" and path.startswith("/api/users/"):
            uuid = path.rsplit("/", 1)[-1]
            if self.delete_status >= 400:
                return httpx.Response(self.delete_status, json={"detail": "delete failed"})
            self.users = [user for user in self.users if user["uuid"] != uuid]
            return httpx.Response(self.delete_status)

        return httpx.Response(404, json={"detail": "Not found"})

    def client(self, version: str = "auto") -> UsersAPIClient:
        return UsersAPIClient(
            BASE_URL,
            adapter=adapter_for(version),
            transport=httpx.MockTransport(self.handler),
        )

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend(
        [
            structured_user("a", "Jo", "Doe", "F", 30, "NY"),
            structured_user("b", "Sam", "Reed", "M", 41, "Boston"),
            structured_user("c", "Ada", "Stone", "M", 42, "Denver"),
        ]
    )
