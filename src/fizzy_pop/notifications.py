"""
Notification records parsed from the Fizzy JSON payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Creator:
    id: Any
    name: str


@dataclass(frozen=True)
class Notification:
    id: str
    read: bool
    creator: Creator | None
    title: str = ""
    body: str = ""
    card_url: str = ""

    @property
    def card_number(self) -> str:
        return self.card_url.rstrip("/").split("/")[-1] if self.card_url else ""


def _text(v: Any) -> str:
    return "" if v is None else str(v)


def parse_notification(raw: Any) -> Notification | None:
    """Return a Notification, or None when the entry is not usable."""
    if not isinstance(raw, dict) or raw.get("id") in (None, ""):
        return None
    creator_raw = raw.get("creator")
    creator = None
    if isinstance(creator_raw, dict):
        creator = Creator(id=creator_raw.get("id"), name=_text(creator_raw.get("name")))
    card = raw.get("card") if isinstance(raw.get("card"), dict) else {}
    return Notification(
        id=str(raw["id"]),
        read=bool(raw.get("read")),
        creator=creator,
        title=_text(raw.get("title")),
        body=_text(raw.get("body")),
        card_url=_text(card.get("url")),
    )


def parse_notifications(raw: Any) -> list[Notification]:
    """Keep source order; drop malformed entries."""
    if not isinstance(raw, list):
        logger.warning("Notifications payload is not a list: %s", type(raw).__name__)
        return []
    out: list[Notification] = []
    for entry in raw:
        n = parse_notification(entry)
        if n is None:
            logger.warning("Skipping malformed notification entry")
            continue
        out.append(n)
    return out


def first_unread(notifications: list[Notification]) -> Notification | None:
    for n in notifications:
        if not n.read:
            return n
    return None
