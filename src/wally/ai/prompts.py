"""Prompts para o classificador de intenção (pt-BR)."""

from __future__ import annotations

CLASSIFICATION_PROMPT = """
Analise a seguinte mensagem do usuário para um bot de finanças pessoais.
Extraia a intenção principal e quaisquer parâmetros relevantes.
Responda APENAS com um objeto JSON no seguinte formato:
{
  "action": "SUA_ACAO_DETECTADA",
  "parameters": {
    "amount": "valor_da_despesa",
    "category": "categoria_da_despesa",
    "description": "descricao_detalhada_da_despesa"
  },
  "error": "mensagem_de_erro_se_houver"
}

Ações possíveis e seus parâmetros:
- "add_expense": Adicionar uma nova despesa.
  - Parâmetros esperados: "amount" (número como string, ex: "100.50"), "category" (texto, ex: "lazer"), "description" (texto opcional, ex: "Assinatura do GPT").
- "show_menu": Se o usuário pedir o menu, ajuda, ou saudações iniciais (oi, olá, etc.).
  - Sem parâmetros.
- "unknown_intent": Se a intenção não for clara, não corresponder a nenhuma ação conhecida, ou se faltarem informações cruciais.
  - Parâmetro opcional "error" com uma breve descrição do problema.

Exemplos de mensagens e respostas JSON esperadas:
1. Usuário: "adicionar despesa de 100 reais com assinatura do GPT"
   JSON: {"action": "add_expense", "parameters": {"amount": "100", "category": "Assinatura", "description": "Assinatura do GPT"}}
2. Usuário: "gastei 25.50 com café"
   JSON: {"action": "add_expense", "parameters": {"amount": "25.50", "category": "café", "description": "café"}}
3. Usuário: "menu"
   JSON: {"action": "show_menu", "parameters": {}}
4. Usuário: "quero ver meu saldo"
   JSON: {"action": "unknown_intent", "parameters": {}, "error": "Funcionalidade 'ver saldo' ainda não suportada."}
"""

LEARNED_CONTEXT_HEADER = (
    "Contexto aprendido de interações anteriores "
    "(use isso para ajudar a entender a mensagem atual):"
)

CAPABILITIES_PROMPT = (
    "Você é um assistente financeiro simpático. O usuário perguntou: \"{message}\"\n"
    "Se não for possível executar a ação, responda de forma educada, explique o que "
    "você pode fazer e sugira exemplos de comandos válidos."
)


def build_classification_prompt(message: str, context: str = "") -> str:
    """Monta o prompt de classificação com contexto aprendido opcional."""
    prompt = CLASSIFICATION_PROMPT
    if context:
        prompt = f"{LEARNED_CONTEXT_HEADER}\n{context}\n\n{prompt}"
    return prompt + f'\nMensagem do usuário: "{message}"'


def build_capabilities_prompt(message: str) -> str:
    """Prompt conversacional para "explique o que você pode fazer"."""
    return CAPABILITIES_PROMPT.format(message=message)
