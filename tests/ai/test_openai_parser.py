"""Testes do parser de respostas do classificador."""

from __future__ import annotations

from wally.ai.openai_parser import (
    UNPARSEABLE_RESPONSE_ERROR,
    parse_intent_response,
    strip_code_fences,
)
from wally.ai.prompts import (
    LEARNED_CONTEXT_HEADER,
    build_capabilities_prompt,
    build_classification_prompt,
)


class TestParseIntentResponse:
    def test_plain_json(self):
        outcome = parse_intent_response(
            '{"action": "add_expense", "parameters": {"amount": "10", "category": "café"}}'
        )

        assert outcome.action == "add_expense"
        assert outcome.parameters == {"amount": "10", "category": "café"}
        assert outcome.error is None

    def test_fenced_json(self):
        text = '```json\n{"action": "show_menu", "parameters": {}}\n```'

        assert parse_intent_response(text).action == "show_menu"

    def test_numeric_parameters_become_strings(self):
        outcome = parse_intent_response(
            '{"action": "add_expense", "parameters": {"amount": 25.5, "description": null}}'
        )

        assert outcome.parameters == {"amount": "25.5"}

    def test_null_action_is_empty(self):
        outcome = parse_intent_response('{"action": null}')

        assert outcome.action == ""
        assert outcome.is_actionable is False

    def test_invalid_json_degrades_to_unknown_intent(self):
        outcome = parse_intent_response("não sei responder")

        assert outcome.action == "unknown_intent"
        assert outcome.error == UNPARSEABLE_RESPONSE_ERROR

    def test_non_object_degrades(self):
        assert parse_intent_response('["show_menu"]').action == "unknown_intent"

    def test_wrong_shape_degrades(self):
        outcome = parse_intent_response('{"action": "add_expense", "parameters": "50 reais"}')

        assert outcome.action == "unknown_intent"


class TestStripCodeFences:
    def test_without_fences(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_plain_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'


class TestPrompts:
    def test_classification_prompt_without_context(self):
        prompt = build_classification_prompt("gastei 10")

        assert LEARNED_CONTEXT_HEADER not in prompt
        assert prompt.endswith('\nMensagem do usuário: "gastei 10"')
        assert '"add_expense"' in prompt

    def test_classification_prompt_with_context(self):
        prompt = build_classification_prompt("oi", "Anteriormente, ...\n")

        assert prompt.startswith(LEARNED_CONTEXT_HEADER + "\nAnteriormente, ...\n")

    def test_capabilities_prompt_quotes_message(self):
        prompt = build_capabilities_prompt("qual meu saldo?")

        assert 'O usuário perguntou: "qual meu saldo?"' in prompt
