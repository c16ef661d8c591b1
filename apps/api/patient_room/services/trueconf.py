"""Async client for the TrueConf Server REST API.

Covers the calls needed to open a patient room: the OAuth client-credentials
token exchange, the conference lifecycle (create, run, refresh) and the
lookup of join-capable clients for a conference.
"""
from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from ..core.config import Settings
from ..core.errors import ApiError, AuthError
from ..core.logs import log_action
from .naming import build_user_identity

TOKEN_ENDPOINT = "/oauth2/v1/token"
CONFERENCE_ENDPOINT = "/api/v3.11/conferences"
WEBCLIENT_ENDPOINT = "/api/v3.11/software/clients"
JOIN_CASE = "join_conference_button"

logger = logging.getLogger(__name__)


class ConferenceApi(Protocol):
    """The steps the conference flow drives, one call each."""

    async def fetch_access_token(self) -> str: ...

    async def create_conference(self, config: dict[str, Any]) -> str: ...

    async def run_conference(self, conference_id: str) -> None: ...

    async def refresh_conference(self, conference_id: str) -> None: ...

    async def fetch_clients(self, conference_id: str, display_name: str) -> list[dict[str, Any]]: ...


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class TrueConfClient:
    """One-request session against the TrueConf API.

    The bearer token is kept on the instance only, so every request that
    builds a new client authenticates again.
    """

    def __init__(self, config: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "TrueConfClient":
        self._http = httpx.AsyncClient(
            base_url=self._config.server_url,
            timeout=self._config.request_timeout,
            verify=self._config.verify_tls,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("TrueConfClient must be used as an async context manager")
        return self._http

    async def fetch_access_token(self) -> str:
        """Exchange the client credentials for a bearer token."""

        log_action(logger, "oauth:request_token:start", server=self._config.server_url)
        form = {
            "grant_type": "client_credentials",
            "client_id": self._config.client_id,
            "client_secret": self._config.client_secret,
        }
        try:
            response = await self.http.post(TOKEN_ENDPOINT, data=form)
        except httpx.HTTPError as exc:
            raise AuthError(f"OAuth token request failed: {exc}") from exc

        payload = _json_or_none(response)
        if response.is_error:
            raise AuthError(
                f"OAuth server returned {response.status_code}",
                status_code=response.status_code,
                payload=payload,
            )

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthError("OAuth server did not return an access_token")

        self.http.headers["Authorization"] = f"Bearer {token}"
        self.http.headers["Content-Type"] = "application/json"
        log_action(logger, "oauth:request_token:success", has_token=True)
        return token

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise ApiError(f"{method} {path} failed: {exc}") from exc

        payload = _json_or_none(response)
        if response.is_error:
            raise ApiError(
                f"TrueConf API returned {response.status_code} for {method} {path}",
                status_code=response.status_code,
                payload=payload,
            )
        return payload

    async def create_conference(self, config: dict[str, Any]) -> str:
        log_action(logger, "conference:create:start", topic=config.get("topic"), owner=config.get("owner"))
        payload = await self._call("POST", CONFERENCE_ENDPOINT, json=config)
        conference = payload.get("conference") if isinstance(payload, dict) else None
        conference_id = conference.get("id") if isinstance(conference, dict) else None
        if conference_id in (None, ""):
            raise ApiError("API did not return a conference ID")

        log_action(logger, "conference:create:success", conference_id=conference_id)
        return str(conference_id)

    async def run_conference(self, conference_id: str) -> None:
        await self._call("POST", f"{CONFERENCE_ENDPOINT}/{conference_id}/run")
        log_action(logger, "conference:run", conference_id=conference_id)

    async def refresh_conference(self, conference_id: str) -> None:
        await self._call("GET", f"{CONFERENCE_ENDPOINT}/{conference_id}")
        log_action(logger, "conference:refresh", conference_id=conference_id)

    async def fetch_clients(self, conference_id: str, display_name: str) -> list[dict[str, Any]]:
        """Return the raw client list for joining ``conference_id``."""

        log_action(logger, "conference:clients:request", conference_id=conference_id, patient_name=display_name)
        params = {
            "call_id": conference_id,
            "user": build_user_identity(display_name),
            "case": JOIN_CASE,
        }
        payload = await self._call("GET", WEBCLIENT_ENDPOINT, params=params)
        clients = payload.get("clients") if isinstance(payload, dict) else None
        if not isinstance(clients, list) or not clients:
            raise ApiError("TrueConf Web did not return a list of clients")

        log_action(logger, "conference:clients:received", conference_id=conference_id, total=len(clients))
        return clients
