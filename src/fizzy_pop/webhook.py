"""
OpenClaw agent webhook client.

Docs: https://docs.openclaw.ai/automation/webhook#post-/hooks/agent
"""

from __future__ import annotations

import http.client
import json
import urllib.error

from .fizzy import USER_AGENT, http_call


class WebhookError(Exception):
    def __init__(self, agent_name: str, status: int | None = None, detail: str = "") -> None:
        self.agent_name = agent_name
        self.status = status
        self.detail = detail
        super().__init__(
            "Webhook delivery failed" + (f" ({status})" if status else "") + (
                f": {detail}" if detail else ""
            )
        )


class WebhookClient:
    def __init__(
        self, base_url: str, token: str | None, timeout: float = 8, verbose: bool = False
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.verbose = verbose
        self._headers = {
            "Authorization": f"Bearer {token or ''}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def build_request(self, agent_name: str, message: str) -> tuple[str, str]:
        url = f"{self.base_url}/hooks/agent"
        payload = json.dumps(
            {"agentId": agent_name, "message": message, "mode": "now", "deliver": False},
            ensure_ascii=False,
        )
        return url, payload

    def send(self, agent_name: str, message: str) -> None:
        url, payload = self.build_request(agent_name, message)
        try:
            http_call(
                "POST",
                url,
                self._headers,
                "Webhook",
                body=payload.encode("utf-8"),
                timeout=self.timeout,
                verbose=self.verbose,
            )
        except urllib.error.HTTPError as e:
            raise WebhookError(agent_name, e.code, str(e.reason)) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            raise WebhookError(agent_name, None, str(e)) from e
