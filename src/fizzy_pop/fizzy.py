"""
Minimal Fizzy API client using stdlib urllib.
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from . import __version__
from .logs import trace_request, trace_response

logger = logging.getLogger(__name__)

USER_AGENT = f"FizzyPop/{__version__}"


class FizzyApiError(Exception):
    def __init__(self, label: str, status: int | None = None, detail: str = "") -> None:
        self.label = label
        self.status = status
        self.detail = detail
        super().__init__(f"{label} failed" + (f" ({status})" if status else "") + (
            f": {detail}" if detail else ""
        ))


def http_call(
    method: str,
    url: str,
    headers: dict[str, str],
    label: str,
    body: bytes | None = None,
    timeout: float = 8,
    verbose: bool = False,
) -> bytes:
    """Perform one request; return the body of a 2xx response.

    Raises ``urllib.error.URLError``/``HTTPError``, ``http.client.HTTPException``
    or ``OSError`` unchanged, or ``ValueError`` for a non-2xx status that
    urllib did not raise on.
    """
    trace_request(
        logger, method, url, headers, body.decode("utf-8") if body else None, verbose=verbose
    )
    req = urllib.request.Request(url, data=body, headers=headers, method=method)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            status = resp.status
            data = resp.read()
            resp_headers = dict(resp.headers.items())
    except urllib.error.HTTPError as e:
        err_body = e.read() or b""
        trace_response(logger, label, e.code, err_body, dict(e.headers.items()), verbose)
        raise
    except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
        logger.debug("<-- %s error: %s", label, e)
        raise
    trace_response(logger, label, status, data, resp_headers, verbose)
    if not 200 <= status < 300:
        raise ValueError(f"unexpected status {status}")
    return data


class FizzyClient:
    def __init__(
        self, base_url: str, token: str, timeout: float = 8, verbose: bool = False
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.verbose = verbose
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    # ----- Helpers -----
    def _url(self, slug: str, path: str = "") -> str:
        slug = "/" + slug.strip("/") if slug else ""
        return self.base_url + slug + path

    def _request(self, method: str, url: str, label: str, body: bytes | None = None) -> bytes:
        try:
            return http_call(
                method,
                url,
                self._headers,
                label,
                body=body,
                timeout=self.timeout,
                verbose=self.verbose,
            )
        except urllib.error.HTTPError as e:
            raise FizzyApiError(label, e.code, str(e.reason)) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            raise FizzyApiError(label, None, str(e)) from e

    def _get_json(self, url: str, label: str) -> Any:
        data = self._request("GET", url, label)
        try:
            return json.loads(data.decode("utf-8"))
        except ValueError as e:
            raise FizzyApiError(label, None, f"invalid JSON: {e}") from e

    # ----- Public APIs -----
    def identity(self) -> dict[str, Any]:
        data = self._get_json(self._url("", "/my/identity"), "Identity")
        return data if isinstance(data, dict) else {}

    def notifications(self, slug: str) -> Any:
        return self._get_json(self._url(slug, "/notifications"), "Notifications")

    def mark_read(self, slug: str, notification_id: str) -> None:
        nid = urllib.parse.quote(str(notification_id), safe="")
        self._request("POST", self._url(slug, f"/notifications/{nid}/reading"), "Mark read")
