"""Testes dos helpers de observabilidade."""

from __future__ import annotations

import logging

import pytest

from wally.observability.logging import CorrelationIdFilter, log_fallback, mask_user_id
from wally.observability.timing import timed


@pytest.mark.parametrize(
    ("user_id", "expected"),
    [("5511988887777", "***7777"), ("1234", "***"), ("", ""), (None, "")],
)
def test_mask_user_id(user_id, expected):
    assert mask_user_id(user_id) == expected


def test_log_fallback_fields(caplog):
    caplog.set_level(logging.INFO)
    logger = logging.getLogger("wally.test")

    log_fallback(logger, "knowledge_retrieval", reason="PersistenceError", elapsed_ms=12.5)

    record = caplog.records[-1]
    assert record.fallback_used is True
    assert record.component == "knowledge_retrieval"
    assert record.reason == "PersistenceError"
    assert record.elapsed_ms == 12.5


def test_timed_logs_even_on_error(caplog):
    caplog.set_level(logging.INFO)

    with pytest.raises(RuntimeError), timed("intent_classifier"):
        raise RuntimeError("boom")

    latency = [r for r in caplog.records if r.getMessage() == "component_latency"]
    assert latency and latency[0].component == "intent_classifier"
    assert latency[0].outcome == "error"


def test_correlation_filter_adds_fields():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

    assert CorrelationIdFilter("wally").filter(record) is True
    assert record.service == "wally"
    assert record.correlation_id == ""
