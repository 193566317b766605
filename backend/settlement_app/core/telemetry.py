"""
Logging setup and the background failure report.

Failures in the post-response stage (folder, upload, ledger) cannot reach the
caller, so they are logged and kept in a bounded in-memory report that the
status endpoint and the tests can read back.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from settlement_app.core.errors import ErrorClass

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(h, "_settlement_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._settlement_handler = True
        root.addHandler(handler)


@dataclass(frozen=True)
class BackgroundFailure:
    record_id: str
    stage: str
    error_class: ErrorClass
    detail: str
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["error_class"] = self.error_class.value
        return d


class FailureReport:
    def __init__(self, max_entries: int = 500):
        self._entries: Deque[BackgroundFailure] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def record(self, failure: BackgroundFailure) -> None:
        with self._lock:
            self._entries.append(failure)

    def recent(self, limit: Optional[int] = None) -> List[BackgroundFailure]:
        with self._lock:
            entries = list(self._entries)
        return entries if limit is None else entries[-limit:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
