"""
Drives the agents' poll passes and the dispatcher on independent cadences.

Polling runs on the caller's thread; the dispatcher gets a daemon thread.
Both wait on the same stop event so ``stop()`` interrupts either sleep.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Any

from .agent import Agent
from .breadcrumbs import BreadcrumbTrail
from .config import (
    DEFAULT_INTERVAL_AGENT_POLL,
    DEFAULT_INTERVAL_POLLING,
    DEFAULT_INTERVAL_WEBHOOK,
    ConfigError,
)
from .delivery import DeliveryQueue, Dispatcher
from .logs import log_event

logger = logging.getLogger(__name__)


class NoActiveAgentsError(ConfigError):
    """Every configured agent failed identity resolution."""


def build_bot_registry(agents: Iterable[Agent]) -> frozenset[Any]:
    return frozenset(a.user_id for a in agents if a.active and a.user_id is not None)


class Scheduler:
    def __init__(
        self,
        agents: list[Agent],
        queue: DeliveryQueue,
        dispatcher: Dispatcher,
        trail: BreadcrumbTrail | None = None,
        interval_polling: float = DEFAULT_INTERVAL_POLLING,
        interval_webhook: float = DEFAULT_INTERVAL_WEBHOOK,
        interval_agent_poll: float = DEFAULT_INTERVAL_AGENT_POLL,
    ) -> None:
        self.agents = list(agents)
        self.queue = queue
        self.dispatcher = dispatcher
        self.trail = trail or dispatcher.trail
        self.interval_polling = interval_polling
        self.interval_webhook = interval_webhook
        self.interval_agent_poll = interval_agent_poll
        self.bot_user_ids: frozenset[Any] = frozenset()
        self._stop = threading.Event()
        self._dispatch_thread: threading.Thread | None = None

    # ----- Startup -----
    def start(self) -> list[Agent]:
        """Resolve every identity, then keep only the active agents.

        The bot registry is complete before any agent polls.
        """
        for agent in self.agents:
            agent.fetch_identity(self.trail)
        self.bot_user_ids = build_bot_registry(self.agents)
        inactive = [a.name for a in self.agents if not a.active]
        self.agents = [a for a in self.agents if a.active]
        if inactive:
            log_event(logger, "agents_inactive", logging.WARNING, agents=inactive)
        if not self.agents:
            raise NoActiveAgentsError("No agents with accounts. Check tokens and --url.")
        log_event(
            logger,
            "scheduler_ready",
            agents=[a.name for a in self.agents],
            bot_users=len(self.bot_user_ids),
        )
        return self.agents

    # ----- Polling -----
    def run_pass(self) -> int:
        """Poll every active agent once; return the number of messages enqueued."""
        self.trail.reset()
        enqueued = 0
        for i, agent in enumerate(self.agents):
            if self._stop.is_set():
                break
            if i and self._stop.wait(self.interval_agent_poll):
                break
            enqueued += agent.poll_cycle(self.queue, self.bot_user_ids, self.trail)
        return enqueued

    def run_forever(self) -> None:
        self._start_dispatcher()
        log_event(
            logger,
            "polling_started",
            interval_polling=self.interval_polling,
            interval_webhook=self.interval_webhook,
            interval_agent_poll=self.interval_agent_poll,
        )
        try:
            while not self._stop.is_set():
                try:
                    self.run_pass()
                except Exception as e:
                    logger.exception("Poll pass failed")
                    log_event(
                        logger,
                        "poll_pass_error",
                        logging.ERROR,
                        step=self.trail.last,
                        breadcrumbs=str(self.trail),
                        error=str(e),
                    )
                self._stop.wait(self.interval_polling)
        except KeyboardInterrupt:
            log_event(logger, "interrupted", breadcrumbs=str(self.trail))
        finally:
            self.stop()
            log_event(
                logger,
                "shutdown",
                breadcrumbs=str(self.trail),
                pending=len(self.queue),
                delivered=self.dispatcher.delivered,
                failed=self.dispatcher.failed,
            )

    def stop(self) -> None:
        self._stop.set()
        t = self._dispatch_thread
        if t and t.is_alive() and t is not threading.current_thread():
            t.join(timeout=self.interval_webhook + 1)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    # ----- Delivery -----
    def _start_dispatcher(self) -> None:
        self._dispatch_thread = threading.Thread(
            target=self._dispatch_loop, daemon=True, name="fizzy-pop-dispatcher"
        )
        self._dispatch_thread.start()

    def _dispatch_loop(self) -> None:
        while not self._stop.wait(self.interval_webhook):
            try:
                self.dispatcher.tick()
            except Exception as e:
                logger.exception("Dispatcher tick failed")
                log_event(
                    logger,
                    "dispatch_error",
                    logging.ERROR,
                    step=self.trail.last,
                    breadcrumbs=str(self.trail),
                    error=str(e),
                )
