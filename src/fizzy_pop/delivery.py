"""
Delivery queue shared by all agents, and the dispatcher that drains it.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass, field

from .breadcrumbs import BreadcrumbTrail
from .logs import log_event
from .webhook import WebhookClient, WebhookError

logger = logging.getLogger(__name__)

STEP_SEND_WEBHOOK = "send_webhook"


@dataclass(frozen=True)
class QueueItem:
    agent_name: str
    message: str = field(repr=False)
    enqueued_at: int = 0


class DeliveryQueue:
    """Unbounded, lock-protected FIFO."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: deque[QueueItem] = deque()
        self._seq = itertools.count(1)

    def push(self, agent_name: str, message: str) -> QueueItem:
        with self._lock:
            item = QueueItem(agent_name, message, next(self._seq))
            self._items.append(item)
        return item

    def drain(self) -> list[QueueItem]:
        """Remove and return every queued item, oldest first."""
        with self._lock:
            items = list(self._items)
            self._items.clear()
        return items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class Dispatcher:
    def __init__(
        self,
        queue: DeliveryQueue,
        client: WebhookClient,
        trail: BreadcrumbTrail | None = None,
        dry_run: bool = False,
    ) -> None:
        self.queue = queue
        self.client = client
        self.trail = trail or BreadcrumbTrail()
        self.dry_run = dry_run
        self.delivered = 0
        self.failed = 0

    def tick(self) -> int:
        """Deliver everything queued right now; failed items are dropped."""
        items = self.queue.drain()
        for item in items:
            self.trail.add(STEP_SEND_WEBHOOK, item.agent_name)
            if self.dry_run:
                url, payload = self.client.build_request(item.agent_name, item.message)
                log_event(
                    logger,
                    "dry_run_webhook",
                    agent=item.agent_name,
                    url=url,
                    body=payload,
                )
                continue
            try:
                self.client.send(item.agent_name, item.message)
            except WebhookError as e:
                self.failed += 1
                log_event(
                    logger,
                    "webhook_error",
                    logging.ERROR,
                    agent=item.agent_name,
                    step=f"{STEP_SEND_WEBHOOK}:{item.agent_name}",
                    status=e.status,
                    error=str(e),
                )
                continue
            self.delivered += 1
            log_event(logger, "webhook_delivered", agent=item.agent_name, seq=item.enqueued_at)
        return len(items)
