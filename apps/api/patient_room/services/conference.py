"""Conference flow: token, create, run, refresh and client lookup."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..core.config import Settings
from ..core.errors import PatientRoomError, ValidationError
from ..core.logs import log_action
from .naming import infer_display_name
from .trueconf import ConferenceApi, TrueConfClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConferenceClients:
    clients: list[dict[str, Any]]
    conference_id: str


def extract_conference_config(body: Any) -> dict[str, Any]:
    """Return the ``conference`` object of a request body or raise ValidationError."""

    config = body.get("conference") if isinstance(body, dict) else None
    if not isinstance(config, dict):
        raise ValidationError("Provide a conference object")
    return config


async def generate_conference_clients(api: ConferenceApi, config: dict[str, Any]) -> ConferenceClients:
    """Authenticate, create, run and refresh a conference, then fetch its clients.

    Steps run strictly in order and the first failure aborts the flow. A
    conference that was already created is left on the server as is.
    """

    log_action(logger, "conference:flow:start", topic=config.get("topic"), owner=config.get("owner"))
    await api.fetch_access_token()
    conference_id = await api.create_conference(config)
    try:
        await api.run_conference(conference_id)
        await api.refresh_conference(conference_id)
        display_name = infer_display_name(config)
        clients = await api.fetch_clients(conference_id, display_name)
    except PatientRoomError:
        log_action(logger, "conference:abandoned", logging.WARNING, conference_id=conference_id)
        raise

    log_action(logger, "conference:flow:success", conference_id=conference_id, topic=config.get("topic"))
    return ConferenceClients(clients=clients, conference_id=conference_id)


async def open_patient_room(
    config: dict[str, Any],
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ConferenceClients:
    """Run the whole flow with a fresh, per-request TrueConf session."""

    settings.assert_configured()
    async with TrueConfClient(settings, transport=transport) as api:
        return await generate_conference_clients(api, config)
