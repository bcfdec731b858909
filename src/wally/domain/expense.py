"""Despesas e normalização de valores monetários."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime

from wally.domain.errors import ValidationError

_NON_AMOUNT_CHARS = re.compile(r"[^0-9.]")  # só dígitos ASCII


@dataclass(frozen=True, slots=True)
class Expense:
    """Despesa registrada a partir de uma intenção `add_expense`."""

    user_id: str
    amount: float
    category: str
    timestamp: datetime


def normalize_amount(raw: str) -> str:
    """Troca vírgulas por pontos e remove tudo que não for dígito ou ponto.

    "100,50" → "100.50"; "R$ 25.50" → "25.50". Idempotente.
    """
    return _NON_AMOUNT_CHARS.sub("", raw.replace(",", "."))


def parse_amount(raw: str) -> float:
    """Normaliza e converte o valor para float.

    Valores com mais de um ponto após a normalização ("1.2.3") são rejeitados;
    não há tentativa de interpretação por locale.

    Raises:
        ValidationError: valor vazio, malformado ou não finito
    """
    normalized = normalize_amount(raw)
    try:
        amount = float(normalized)
    except ValueError as exc:
        raise ValidationError(f"valor inválido: '{normalized}'", field="amount") from exc

    if not math.isfinite(amount):
        raise ValidationError(f"valor inválido: '{normalized}'", field="amount")
    return amount
