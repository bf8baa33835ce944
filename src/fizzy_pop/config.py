"""
Configuration loading and validation.

Sources, highest precedence first: explicit arguments (CLI flags), the YAML
config file, environment variables, then the defaults below.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_INTERVAL_POLLING = 10.0
DEFAULT_INTERVAL_WEBHOOK = 3.0
DEFAULT_INTERVAL_AGENT_POLL = 0.5
DEFAULT_AGENT_NAME = "default"

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Configuration is unusable; the process must not start polling."""


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v is not None else default


@dataclass(frozen=True)
class AgentConfig:
    name: str
    token: str = field(repr=False)


@dataclass(frozen=True)
class Settings:
    url: str
    agents: tuple[AgentConfig, ...]
    webhook_url: str | None = None
    webhook_token: str | None = field(default=None, repr=False)
    interval_polling: float = DEFAULT_INTERVAL_POLLING
    interval_webhook: float = DEFAULT_INTERVAL_WEBHOOK
    interval_agent_poll: float = DEFAULT_INTERVAL_AGENT_POLL
    dry_run: bool = False
    verbose: bool = False


def read_config_file(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"Config file not found: {p}")
    try:
        with open(p, encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Config file unreadable: {p}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"Config must be a mapping, got {type(cfg).__name__}")
    return cfg


def _interval(raw: Any, name: str, default: float) -> float:
    if raw is None:
        return default
    if isinstance(raw, bool):
        raise ConfigError(f"interval.{name} must be a number, got {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"interval.{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"interval.{name} must be positive, got {raw!r}")
    return value


def _agents_from(raw: Any) -> list[AgentConfig]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("Config 'agents' must be a list")
    agents: list[AgentConfig] = []
    seen: set[str] = set()
    for i, entry in enumerate(raw):
        entry = entry if isinstance(entry, dict) else {}
        name = str(entry.get("name") or "").strip()
        token = str(entry.get("token") or "").strip()
        if not name or not token:
            raise ConfigError(f"Agent #{i + 1} needs both 'name' and 'token'")
        # names double as @mention tokens, which are matched case-insensitively
        key = name.lower()
        if key in seen:
            raise ConfigError(f"Duplicate agent name: {name}")
        seen.add(key)
        agents.append(AgentConfig(name=name, token=token))
    return agents


def load_settings(
    url: str | None = None,
    token: str | None = None,
    config_path: str | Path | None = None,
    webhook_url: str | None = None,
    webhook_token: str | None = None,
    dry_run: bool = False,
    verbose: bool = False,
) -> Settings:
    """Merge CLI values, the YAML file and the environment into Settings."""

    config_path = config_path or _env("FIZZY_POP_CONFIG")
    cfg = read_config_file(config_path) if config_path else {}

    if cfg.get("polling") is not None:
        logger.warning(
            "'polling' is deprecated, use 'interval' instead. Defaulting to "
            "interval.polling: %ss, interval.webhook: %ss, interval.agent_poll: %ss",
            DEFAULT_INTERVAL_POLLING,
            DEFAULT_INTERVAL_WEBHOOK,
            DEFAULT_INTERVAL_AGENT_POLL,
        )
    intervals = cfg.get("interval")
    if intervals is not None and not isinstance(intervals, dict):
        raise ConfigError("Config 'interval' must be a mapping")
    intervals = intervals or {}

    agents = _agents_from(cfg.get("agents"))
    token = token or _env("FIZZY_TOKEN")
    if token and not agents:
        agents = [AgentConfig(name=DEFAULT_AGENT_NAME, token=token)]

    base_url = url or cfg.get("url") or _env("FIZZY_URL")
    if not base_url:
        raise ConfigError("Missing required --url")
    if not agents:
        raise ConfigError("No agents configured. Use --token or --config with agents list")

    dry_run = dry_run or (_env("FIZZY_POP_DRY_RUN", "") or "").lower() in ("1", "true", "yes")
    webhook_url = webhook_url or cfg.get("webhook_url") or _env("OPENCLAW_WEBHOOK_URL")
    webhook_token = webhook_token or cfg.get("webhook_token") or _env("OPENCLAW_WEBHOOK_TOKEN")
    if not dry_run and not (webhook_url and webhook_token):
        raise ConfigError("Missing required --webhook-url and --webhook-token")

    return Settings(
        url=str(base_url).rstrip("/"),
        agents=tuple(agents),
        webhook_url=str(webhook_url).rstrip("/") if webhook_url else None,
        webhook_token=str(webhook_token) if webhook_token else None,
        interval_polling=_interval(
            intervals.get("polling"), "polling", DEFAULT_INTERVAL_POLLING
        ),
        interval_webhook=_interval(
            intervals.get("webhook"), "webhook", DEFAULT_INTERVAL_WEBHOOK
        ),
        interval_agent_poll=_interval(
            intervals.get("agent_poll"), "agent_poll", DEFAULT_INTERVAL_AGENT_POLL
        ),
        dry_run=dry_run,
        verbose=verbose,
    )
