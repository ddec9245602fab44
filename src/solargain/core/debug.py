"""Deterministic debug collectors for structured JSON events.

Every collaborator takes an optional collector and reports what it requested,
what came back and which fallbacks fired. Nothing here affects results.
"""
from __future__ import annotations

import json
import datetime as _dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol


class DebugCollector(Protocol):
    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, source: Optional[str] = None) -> None:
        ...


def _json_safe_scalar(val: Any) -> Any:
    """Convert dates/timestamps to ISO strings, leave everything else alone."""
    if isinstance(val, (_dt.datetime, _dt.date, _dt.time)) or hasattr(val, "isoformat"):
        try:
            return val.isoformat()
        except Exception:
            return str(val)
    return val


def _ordered(obj: Any) -> Any:
    """Recursively order mappings for deterministic JSON dumps."""
    if isinstance(obj, dict):
        return {k: _ordered(obj[k]) for k in sorted(obj)}
    if isinstance(obj, (list, tuple)):
        return [_ordered(v) for v in obj]
    return _json_safe_scalar(obj)


def _event(stage: str, payload: Dict[str, Any], ts: Any, source: Optional[str]) -> Dict[str, Any]:
    return {
        "stage": stage,
        "ts": _json_safe_scalar(ts),
        "source": source,
        "payload": _ordered(payload),
    }


class NullDebugCollector:
    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, source: Optional[str] = None) -> None:  # noqa: D401
        """Discard events (no-op)."""
        return


@dataclass
class ListDebugCollector:
    events: List[Dict[str, Any]] = field(default_factory=list)

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, source: Optional[str] = None) -> None:
        self.events.append(_event(stage, payload, ts, source))

    def stages(self) -> List[str]:
        return [e["stage"] for e in self.events]


class JsonlDebugWriter:
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self.path.open("a", encoding="utf-8")

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, source: Optional[str] = None) -> None:
        json.dump(_event(stage, payload, ts, source), self._fh, sort_keys=True)
        self._fh.write("\n")
        self._fh.flush()

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()


class JsonDebugWriter:
    """Collect all events in memory then write a single JSON array.

    Used when callers pass a ``--debug`` path ending with ``.json`` so a whole
    run can be audited from one file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._events: List[Dict[str, Any]] = []

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, source: Optional[str] = None) -> None:
        self._events.append(_event(stage, payload, ts, source))

    def close(self) -> None:
        self.path.write_text(json.dumps(self._events, indent=2, sort_keys=True))


def build_debug_collector(path: str | Path):
    """Factory: .json -> JsonDebugWriter, otherwise JsonlDebugWriter."""
    if str(path).lower().endswith(".json"):
        return JsonDebugWriter(path)
    return JsonlDebugWriter(path)


class ScopedDebugCollector:
    """Wrapper that injects a fixed source name into every emit."""

    def __init__(self, inner: DebugCollector, *, source: Optional[str] = None):
        self.inner = inner
        self.source = source

    def emit(self, stage: str, payload: Dict[str, Any], *, ts: Any = None, source: Optional[str] = None) -> None:
        self.inner.emit(stage, payload, ts=ts, source=source if source is not None else self.source)


__all__ = [
    "DebugCollector",
    "NullDebugCollector",
    "ListDebugCollector",
    "JsonlDebugWriter",
    "JsonDebugWriter",
    "ScopedDebugCollector",
    "build_debug_collector",
]
