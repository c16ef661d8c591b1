"""Data contracts for the conference endpoint."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ConferenceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    clients: list[dict[str, Any]] = Field(..., description="Join-capable TrueConf clients, unfiltered")
    conference_id: str = Field(..., alias="conferenceId", description="Server-assigned conference id")


class ErrorResponse(BaseModel):
    message: str = Field(..., description="Human readable failure reason")
