"""Testes da renderização do contexto aprendido."""

from __future__ import annotations

from wally.domain.knowledge import KnowledgeEntry, format_parameters, render_knowledge_context


def _entry(entry_id: int, original: str, clarification: str = "", **params: str) -> KnowledgeEntry:
    return KnowledgeEntry(
        id=entry_id,
        user_id="u1",
        original_query=original,
        clarification_query=clarification,
        resulting_action="add_expense",
        resulting_parameters=params,
    )


def test_format_parameters_sorts_keys():
    assert format_parameters({"category": "lazer", "amount": "50"}) == "map[amount:50 category:lazer]"


def test_format_parameters_empty():
    assert format_parameters({}) == "map[]"


def test_render_empty():
    assert render_knowledge_context([]) == ""


def test_render_without_clarification():
    context = render_knowledge_context([_entry(1, "gastei 50", amount="50")])

    assert context == (
        "Anteriormente, quando o usuário disse algo como 'gastei 50', "
        "a intenção foi 'add_expense' com parâmetros 'map[amount:50]'.\n"
    )


def test_render_oldest_first():
    """Entradas chegam do mais recente para o mais antigo."""
    newest_first = [_entry(3, "c", "cc"), _entry(2, "b"), _entry(1, "a")]

    lines = render_knowledge_context(newest_first).splitlines()

    assert [line.split("'")[1] for line in lines] == ["a", "b", "c"]
    assert "e depois esclareceu com 'cc'" in lines[2]
