"""Textos de resposta ao usuário (pt-BR)."""

from __future__ import annotations

CLASSIFIER_APOLOGY = "Erro ao conectar com a inteligência artificial. Tente novamente mais tarde."

FALLBACK_CANNED_REPLY = (
    "Desculpe, não consegui entender sua solicitação. Você pode tentar algo como: "
    "'Adicionar despesa de 20 em comida' ou pedir o 'menu'."
)

DEFAULT_EXPENSE_ERROR = "Não consegui identificar o valor ou a categoria da despesa."

EXPENSE_USAGE_HINT = "Poderia tentar novamente? Ex: Adicionar despesa de 50 na categoria Lazer"

MAIN_MENU_OPTIONS = (
    "1️⃣ Adicionar Despesa",
    "2️⃣ Adicionar Categoria",
    "3️⃣ Ver extrato",
    "4️⃣ Ajuda",
)


def build_main_menu(name: str) -> str:
    greeting = f"Olá {name}, sou o Wally, seu assistente virtual. Como posso ajudar você hoje?"
    return greeting + "\n\n" + "\n".join(MAIN_MENU_OPTIONS)


def build_expense_added(amount: float, category: str) -> str:
    """Confirmação com valor em duas casas decimais (ex: R$100.50)."""
    return f"✅ Despesa de R${amount:.2f} na categoria '{category}' adicionada com sucesso!"


def build_expense_retry(error: str | None) -> str:
    """Erro do classificador (ou padrão) + exemplo de uso."""
    return f"{error or DEFAULT_EXPENSE_ERROR} {EXPENSE_USAGE_HINT}"


def build_invalid_amount(amount: str) -> str:
    return f"O valor '{amount}' não parece ser um número válido. Poderia tentar novamente?"


def build_unhandled(name: str) -> str:
    return f"Desculpe {name}, não consegui processar sua solicitação. Tente pedir o 'menu'."
