"""Observability helpers (correlation IDs, timing)."""
from __future__ import annotations
import time
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping

from .logger import log_performance

REQUEST_ID_HEADER = "X-Request-ID"

def ensure_request_id(headers: Mapping[str, str]) -> str:
    return headers.get(REQUEST_ID_HEADER, None) or str(uuid.uuid4())

def request_id_of(headers: Mapping[str, str]) -> str:
    """Correlation id for log lines; handlers never mint one themselves."""
    return headers.get(REQUEST_ID_HEADER, None) or "unknown"

@contextmanager
def timed(operation: str, **context: Any) -> Iterator[Dict[str, Any]]:
    """Log the block's wall-clock duration via ``log_performance``.

    Yields the context dict so the block can attach result figures; nothing is
    logged when the block raises.
    """
    start = time.time()
    yield context
    log_performance(operation, (time.time() - start) * 1000, context or None)

__all__ = ["ensure_request_id", "request_id_of", "timed", "REQUEST_ID_HEADER"]
