"""Shared JSON GET helper used by every HTTP collaborator."""
from __future__ import annotations

import time
from typing import Any, Dict

import requests

from solargain.core.debug import DebugCollector, NullDebugCollector
from solargain.core.errors import UpstreamHttpError

DEFAULT_TIMEOUT_S = 30


def get_json(
    session: requests.Session,
    url: str,
    params: Dict[str, Any],
    *,
    attempts: int = 1,
    backoff_s: float = 0.5,
    timeout: float = DEFAULT_TIMEOUT_S,
    debug: DebugCollector | None = None,
    redact: tuple[str, ...] = ("appid",),
) -> Any:
    """GET ``url`` and decode JSON, raising :class:`UpstreamHttpError` on failure.

    ``attempts`` > 1 retries transport errors and non-2xx answers with linear
    backoff. Keys listed in ``redact`` are masked in debug events.
    """

    debug = debug or NullDebugCollector()
    shown = {k: ("***" if k in redact else v) for k, v in params.items()}
    debug.emit("http.request", {"url": url, "params": shown})

    attempts = max(1, int(attempts))
    for attempt in range(1, attempts + 1):
        status = None
        try:
            resp = session.get(url, params=params, timeout=timeout)
            status = getattr(resp, "status_code", None)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            if attempt == attempts:
                debug.emit("http.error", {"url": url, "status": status, "error": str(exc)})
                raise UpstreamHttpError(f"Request to {url} failed: {exc}", status=status, url=url) from exc
            debug.emit("http.retry", {"url": url, "attempt": attempt, "error": str(exc)})
            time.sleep(backoff_s * attempt)


__all__ = ["get_json", "DEFAULT_TIMEOUT_S"]
