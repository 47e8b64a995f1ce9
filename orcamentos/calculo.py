# orcamentos/calculo.py
from __future__ import annotations

"""
Cálculo do valor total de um orçamento a partir dos itens.

Mesma fórmula do backend: SUM(quantidade * valor_unitario).
O valor calculado aqui é uma prévia; o valor gravado pelo backend é o oficial.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

CENTAVO = Decimal("0.01")


def _decimal(valor: Any) -> Decimal:
    if isinstance(valor, Decimal):
        return valor
    # str() evita carregar o erro binário do float para o Decimal
    return Decimal(str(valor))


def _campo(item: Any, nome: str) -> Any:
    if isinstance(item, dict):
        return item[nome]
    return getattr(item, nome)


def quantizar(valor: Any) -> Decimal:
    return _decimal(valor).quantize(CENTAVO, rounding=ROUND_HALF_UP)


def subtotal_item(item: Any) -> Decimal:
    """quantidade × valor_unitario de um item (objeto ou dict)."""
    return quantizar(int(_campo(item, "quantidade")) * _decimal(_campo(item, "valor_unitario")))


def calcular_total(itens: Iterable[Any]) -> Decimal:
    total = sum(
        (int(_campo(i, "quantidade")) * _decimal(_campo(i, "valor_unitario")) for i in itens),
        Decimal("0"),
    )
    return quantizar(total)
