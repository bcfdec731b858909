"""Testes da codificação dos estados de esclarecimento."""

from __future__ import annotations

import logging

import pytest

from wally.domain.clarification import (
    AWAITING_EXPENSE,
    IDLE,
    AwaitingUnknownClarification,
    decode_state,
    encode_state,
)


class TestEncodeState:
    def test_idle_encodes_to_none(self):
        assert encode_state(IDLE) is None

    def test_expense(self):
        assert encode_state(AWAITING_EXPENSE) == "awaiting_clarification_expense"

    def test_unknown_carries_original(self):
        state = AwaitingUnknownClarification(original="quero ver meu saldo")
        assert encode_state(state) == "awaiting_clarification_unknown:quero ver meu saldo"


class TestDecodeState:
    def test_none_is_idle(self):
        assert decode_state(None) == IDLE

    def test_expense(self):
        assert decode_state("awaiting_clarification_expense") == AWAITING_EXPENSE

    def test_unknown_preserves_colons_in_original(self):
        state = decode_state("awaiting_clarification_unknown:horário: 10:30")
        assert state == AwaitingUnknownClarification(original="horário: 10:30")

    def test_unrecognized_value_logs_and_is_idle(self, caplog):
        caplog.set_level(logging.WARNING)

        assert decode_state("something_else") == IDLE
        assert any(r.getMessage() == "unrecognized_session_state" for r in caplog.records)

    @pytest.mark.parametrize(
        "state",
        [AWAITING_EXPENSE, AwaitingUnknownClarification(original="oi"), IDLE],
    )
    def test_encode_decode_preserves_state(self, state):
        assert decode_state(encode_state(state)) == state
