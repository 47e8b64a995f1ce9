# orcamentos/dashboard.py
from __future__ import annotations

"""
Filtros e números do dashboard.

- Filtro por cliente ("todos" ou um id) e por período [inicio, fim], inclusivo, por dia.
- Cada aplicação parte SEMPRE da lista completa; filtros não se acumulam.
- Resumo: contagem e soma por status, total geral e os 5 mais recentes.
"""

import calendar
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from .calculo import quantizar
from .models import Cliente, OrcamentoLeitura, StatusOrcamento

TODOS = "todos"
QTD_RECENTES = 5


def periodo_mes_atual(hoje: Optional[date] = None) -> Tuple[date, date]:
    """Primeiro e último dia do mês de `hoje`."""
    hoje = hoje or date.today()
    ultimo = calendar.monthrange(hoje.year, hoje.month)[1]
    return hoje.replace(day=1), hoje.replace(day=ultimo)


def _dia(valor: Union[date, datetime, str]) -> date:
    # compara só o dia; hora nunca pode excluir a data limite
    if isinstance(valor, datetime):
        return valor.date()
    if isinstance(valor, date):
        return valor
    return date.fromisoformat(str(valor)[:10])


class FiltroDashboard(BaseModel):
    cliente: str = TODOS
    inicio: Optional[date] = None
    fim: Optional[date] = None

    @classmethod
    def padrao(cls, hoje: Optional[date] = None) -> "FiltroDashboard":
        inicio, fim = periodo_mes_atual(hoje)
        return cls(cliente=TODOS, inicio=inicio, fim=fim)


def filtrar_orcamentos(
    orcamentos: Sequence[OrcamentoLeitura], filtro: FiltroDashboard
) -> List[OrcamentoLeitura]:
    resultado = list(orcamentos)

    if filtro.cliente != TODOS:
        resultado = [o for o in resultado if str(o.cliente_id) == str(filtro.cliente)]

    if filtro.inicio and filtro.fim:
        inicio, fim = _dia(filtro.inicio), _dia(filtro.fim)
        resultado = [o for o in resultado if inicio <= _dia(o.data) <= fim]

    return resultado


def _recentes(itens: Sequence, n: int = QTD_RECENTES) -> list:
    # sorted é estável: empates em created_at mantêm a ordem de carga
    def chave(obj):
        criado = getattr(obj, "created_at", None)
        return (criado is not None, criado.timestamp() if criado else 0.0)

    return sorted(itens, key=chave, reverse=True)[:n]


class ResumoDashboard(BaseModel):
    filtro: FiltroDashboard
    total_orcamentos: int = 0
    contagem_por_status: Dict[StatusOrcamento, int] = Field(default_factory=dict)
    valor_por_status: Dict[StatusOrcamento, Decimal] = Field(default_factory=dict)
    valor_total: Decimal = Decimal("0.00")
    ultimos_orcamentos: List[OrcamentoLeitura] = Field(default_factory=list)
    total_clientes: int = 0
    orcamentos_por_cliente: str = "0.0"
    ultimos_clientes: List[Cliente] = Field(default_factory=list)


def resumir(
    orcamentos: Sequence[OrcamentoLeitura],
    filtro: FiltroDashboard,
    clientes: Sequence[Cliente] = (),
) -> ResumoDashboard:
    filtrados = filtrar_orcamentos(orcamentos, filtro)

    contagem = {s: 0 for s in StatusOrcamento}
    valores = {s: Decimal("0") for s in StatusOrcamento}
    for orc in filtrados:
        status = StatusOrcamento(orc.status)
        contagem[status] += 1
        valores[status] += Decimal(str(orc.valor_total))

    total = sum(valores.values(), Decimal("0"))
    razao = f"{len(filtrados) / len(clientes):.1f}" if clientes else "0.0"

    return ResumoDashboard(
        filtro=filtro,
        total_orcamentos=len(filtrados),
        contagem_por_status=contagem,
        valor_por_status={s: quantizar(v) for s, v in valores.items()},
        valor_total=quantizar(total),
        ultimos_orcamentos=_recentes(filtrados),
        total_clientes=len(clientes),
        orcamentos_por_cliente=razao,
        ultimos_clientes=_recentes(clientes),
    )
