"""Shared fixtures: a scripted TrueConf server behind ``httpx.MockTransport``."""
from __future__ import annotations

from typing import Any, Callable
from urllib.parse import parse_qs

import httpx
import pytest

from patient_room.core.config import Settings

WEB_IFRAME = '<iframe src="https://video.example.com/webrtc/42" onload="evil()"></iframe>'

Handler = Callable[[httpx.Request], httpx.Response]


class FakeTrueConf:
    """Answers the four TrueConf endpoints; any route can be overridden."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.conference_id: Any = "42"
        self.clients: list[dict[str, Any]] = [
            {"type": "desktop", "platform": "windows", "link": "trueconf:42"},
            {"type": "web", "platform": "webrtc", "iframe": WEB_IFRAME},
        ]
        self.overrides: dict[tuple[str, str], Handler] = {}

    @property
    def paths(self) -> list[tuple[str, str]]:
        return [(request.method, request.url.path) for request in self.requests]

    def override(self, method: str, path: str, handler: Handler) -> None:
        self.overrides[(method, path)] = handler

    def fail(self, method: str, path: str, status_code: int, body: Any = None) -> None:
        self.override(method, path, lambda _request: httpx.Response(status_code, json=body))

    def form(self, index: int = 0) -> dict[str, str]:
        parsed = parse_qs(self.requests[index].content.decode())
        return {key: values[0] for key, values in parsed.items()}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.overrides:
            return self.overrides[key](request)

        conference_path = f"/api/v3.11/conferences/{self.conference_id}"
        if key == ("POST", "/oauth2/v1/token"):
            return httpx.Response(200, json={"access_token": "token-123", "token_type": "bearer"})
        if key == ("POST", "/api/v3.11/conferences"):
            return httpx.Response(200, json={"conference": {"id": self.conference_id}})
        if key == ("POST", f"{conference_path}/run"):
            return httpx.Response(200, json={"state": "running"})
        if key == ("GET", conference_path):
            return httpx.Response(200, json={"conference": {"id": self.conference_id, "state": "running"}})
        if key == ("GET", "/api/v3.11/software/clients"):
            return httpx.Response(200, json={"clients": self.clients})
        return httpx.Response(404, json={"error": {"message": "not found"}})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def trueconf() -> FakeTrueConf:
    return FakeTrueConf()


@pytest.fixture
def configured_settings() -> Settings:
    return Settings(
        _env_file=None,
        server="video.example.com/",
        client_id="client-id",
        client_secret="client-secret-value",
        conf_owner_trueconf_id="123",
    )
