"""
One configured Fizzy identity: resolves its accounts once, then polls them.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import Any

from .breadcrumbs import BreadcrumbTrail
from .delivery import DeliveryQueue
from .fizzy import FizzyApiError, FizzyClient
from .logs import log_event
from .message import render_message
from .notifications import Notification, first_unread, parse_notifications

logger = logging.getLogger(__name__)

STEP_GET_IDENTITY = "get_identity"
STEP_GET_NOTIFICATIONS = "get_notifications"
STEP_READ_NOTIFICATION = "read_notification"


def is_bot_user(user_id: Any, bot_user_ids: Collection[Any]) -> bool:
    if user_id is None:
        return False
    return str(user_id) in {str(u) for u in bot_user_ids}


def is_mentioned(body: str | None, agent_name: str) -> bool:
    return f"@{agent_name.lower()}" in (body or "").lower()


def should_forward(
    notification: Notification, agent_name: str, bot_user_ids: Collection[Any]
) -> bool:
    """Bot-loop guard.

    Human notifications always pass. Notifications created by another
    configured agent pass only when the body @mentions this agent.
    """
    if notification.creator is None:
        return False
    if not is_bot_user(notification.creator.id, bot_user_ids):
        return True
    return is_mentioned(notification.body, agent_name)


class Agent:
    def __init__(self, name: str, client: FizzyClient, dry_run: bool = False) -> None:
        self.name = name
        self.client = client
        self.dry_run = dry_run
        self.accounts: list[dict[str, Any]] = []
        self.user_id: Any = None

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, accounts={len(self.accounts)}, user_id={self.user_id!r})"

    @property
    def active(self) -> bool:
        return bool(self.accounts)

    def _log(self, msg: str, level: int = logging.INFO, **fields: Any) -> None:
        log_event(logger, msg, level, agent=self.name, **fields)

    def fetch_identity(self, trail: BreadcrumbTrail) -> Agent:
        trail.add(STEP_GET_IDENTITY, self.name)
        try:
            identity = self.client.identity()
        except FizzyApiError as e:
            self.accounts = []
            self._log(
                "identity_error",
                logging.ERROR,
                step=f"{STEP_GET_IDENTITY}:{self.name}",
                status=e.status,
                error=str(e),
            )
            return self

        accounts = identity.get("accounts")
        if not isinstance(accounts, list):
            accounts = []
        self.accounts = [a for a in accounts if isinstance(a, dict)]
        if self.accounts:
            user = self.accounts[0].get("user")
            self.user_id = user.get("id") if isinstance(user, dict) else None
        self._log("identity_ok", accounts=len(self.accounts), user_id=self.user_id)
        return self

    def poll_cycle(
        self,
        queue: DeliveryQueue,
        bot_user_ids: Collection[Any],
        trail: BreadcrumbTrail,
    ) -> int:
        """Process at most one unread notification per account.

        Returns the number of messages enqueued.
        """
        enqueued = 0
        for account in self.accounts:
            if self._poll_account(account, queue, bot_user_ids, trail):
                enqueued += 1
        return enqueued

    def _poll_account(
        self,
        account: dict[str, Any],
        queue: DeliveryQueue,
        bot_user_ids: Collection[Any],
        trail: BreadcrumbTrail,
    ) -> bool:
        slug = str(account.get("slug") or "")

        trail.add(STEP_GET_NOTIFICATIONS, self.name)
        try:
            raw = self.client.notifications(slug)
        except FizzyApiError as e:
            self._log(
                "notifications_error",
                logging.ERROR,
                step=f"{STEP_GET_NOTIFICATIONS}:{self.name}",
                slug=slug,
                status=e.status,
                error=str(e),
            )
            return False

        unread = first_unread(parse_notifications(raw))
        if unread is None:
            return False

        if self.dry_run:
            self._log("dry_run_mark_read", slug=slug, notification=unread.id)
        else:
            trail.add(STEP_READ_NOTIFICATION, self.name)
            try:
                self.client.mark_read(slug, unread.id)
                self._log("marked_read", slug=slug, notification=unread.id)
            except FizzyApiError as e:
                # still forwarded below; delivery does not depend on read state
                self._log(
                    "mark_read_error",
                    logging.WARNING,
                    step=f"{STEP_READ_NOTIFICATION}:{self.name}",
                    slug=slug,
                    notification=unread.id,
                    status=e.status,
                    error=str(e),
                )

        if unread.creator is None:
            self._log("ignored_system_notification", level=logging.DEBUG, notification=unread.id)
            return False

        if not should_forward(unread, self.name, bot_user_ids):
            self._log(
                "ignored_bot_notification",
                notification=unread.id,
                creator=unread.creator.name,
                creator_id=unread.creator.id,
            )
            return False
        if is_bot_user(unread.creator.id, bot_user_ids):
            self._log(
                "bot_mention_delivered",
                notification=unread.id,
                creator=unread.creator.name,
                creator_id=unread.creator.id,
            )

        item = queue.push(self.name, render_message(unread))
        self._log("enqueued", notification=unread.id, seq=item.enqueued_at)
        return True
