"""Display-name heuristics used to build the synthetic TrueConf user identity."""
from __future__ import annotations

import re
from typing import Any

from unidecode import unidecode

SLUG_MAX_LENGTH = 100
SLUG_PLACEHOLDER = "guest_user"
GUEST_NAME = "guest"

_PATIENT_RE = re.compile(r"patient\s+(.+)$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9_]")


def slugify_name(value: str | None) -> str:
    """Return an ASCII ``[a-z0-9_]`` slug of at most 100 characters."""

    slug = unidecode(value or "").lower()
    slug = _WHITESPACE_RE.sub("_", slug)
    slug = _DISALLOWED_RE.sub("", slug)
    return slug[:SLUG_MAX_LENGTH] or SLUG_PLACEHOLDER


def infer_display_name(config: Any) -> str:
    """Guess the patient name from a conference payload.

    Presentation only: the topic's trailing ``patient <name>`` phrase wins,
    then the topic itself, the first named invitation, the owner id and
    finally ``"guest"``.
    """

    if not isinstance(config, dict):
        return GUEST_NAME

    topic = config.get("topic")
    topic = topic.strip() if isinstance(topic, str) else ""
    if topic:
        match = _PATIENT_RE.search(topic)
        if match and match.group(1).strip():
            return match.group(1).strip()
        return topic

    invitations = config.get("invitations")
    if isinstance(invitations, list):
        for invitation in invitations:
            if isinstance(invitation, dict) and invitation.get("display_name"):
                return str(invitation["display_name"])

    owner = config.get("owner")
    if owner:
        return str(owner)
    return GUEST_NAME


def build_user_identity(display_name: str) -> str:
    """Return the ``2$<slug>*<name>`` value of the clients ``user`` parameter."""

    return f"2${slugify_name(display_name)}*{display_name}"
