"""Medição de latência das chamadas externas do turno."""

from __future__ import annotations

import contextlib
import time
from collections.abc import Iterator

from wally.observability.logging import get_logger

logger = get_logger(__name__)


@contextlib.contextmanager
def timed(component: str) -> Iterator[None]:
    """Loga `component_latency` com `elapsed_ms` e `outcome` (ok | error).

    Uso:
        with timed("intent_classifier"):
            outcome = await classifier.classify(...)
    """
    start = time.perf_counter()
    outcome = "error"
    try:
        yield
        outcome = "ok"
    finally:
        logger.info(
            "component_latency",
            extra={
                "component": component,
                "elapsed_ms": round((time.perf_counter() - start) * 1000, 2),
                "outcome": outcome,
            },
        )
