"""
Logging setup and structured event records.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from typing import Any

REDACTED = "[REDACTED]"
_SECRET_HEADERS = ("authorization",)


def configure_logging(verbose: bool = False) -> None:
    level_name = "DEBUG" if verbose else (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    root.setLevel(level)


def log_event(logger: logging.Logger, msg: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one JSON line ``{"msg": ..., **fields}``."""
    if not logger.isEnabledFor(level):
        return
    try:
        rec = {"msg": msg, **fields}
        logger.log(level, json.dumps(rec, ensure_ascii=False, default=str))
    except Exception:
        logger.log(level, "%s | %s", msg, fields)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    return {
        k: (REDACTED if k.lower() in _SECRET_HEADERS else v) for k, v in headers.items()
    }


# ----- Request/response tracing -----
def trace_request(
    logger: logging.Logger,
    method: str,
    url: str,
    headers: Mapping[str, str],
    body: str | None = None,
    verbose: bool = False,
) -> None:
    logger.debug("--> %s %s", method.upper(), url)
    if not verbose:
        return
    for k, v in redact_headers(headers).items():
        logger.debug("    %s: %s", k, v)
    if body:
        logger.debug("    Body: %s", body)


def trace_response(
    logger: logging.Logger,
    label: str,
    status: int | None,
    body: bytes,
    headers: Mapping[str, str] | None = None,
    verbose: bool = False,
) -> None:
    logger.debug("<-- %s %s (%d bytes)", label, status, len(body))
    if not verbose:
        return
    for k, v in (headers or {}).items():
        logger.debug("    %s: %s", k, v)
    if not body:
        return
    text = body.decode("utf-8", errors="replace")
    try:
        text = json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        pass
    logger.debug("    Body:\n%s", text)
