# orcamentos/status.py
from __future__ import annotations

from typing import Dict, Tuple

from .errors import TransicaoInvalida
from .models import StatusOrcamento

# Ações rápidas: só existem a partir de "pendente".
# Reabrir (aprovado/rejeitado -> pendente) só pela edição completa do orçamento.
ACOES_RAPIDAS: Dict[StatusOrcamento, Tuple[StatusOrcamento, ...]] = {
    StatusOrcamento.pendente: (StatusOrcamento.aprovado, StatusOrcamento.rejeitado),
    StatusOrcamento.aprovado: (),
    StatusOrcamento.rejeitado: (),
}

# cor do badge por status (fundo, texto)
CORES_STATUS: Dict[StatusOrcamento, Tuple[str, str]] = {
    StatusOrcamento.pendente: ("#FEFCBF", "#744210"),
    StatusOrcamento.aprovado: ("#C6F6D5", "#22543D"),
    StatusOrcamento.rejeitado: ("#FED7D7", "#822727"),
}


def acoes_rapidas(status: StatusOrcamento | str) -> Tuple[StatusOrcamento, ...]:
    return ACOES_RAPIDAS[StatusOrcamento(status)]


def transicao_rapida(atual: StatusOrcamento | str, destino: StatusOrcamento | str) -> StatusOrcamento:
    """
    Valida uma ação rápida de status e devolve o novo status.
    Levanta TransicaoInvalida quando a ação não é oferecida para o status atual
    (inclusive aprovar de novo um orçamento já aprovado).
    """
    atual = StatusOrcamento(atual)
    destino = StatusOrcamento(destino)
    if destino not in ACOES_RAPIDAS[atual]:
        raise TransicaoInvalida(
            f"Não é possível marcar como '{destino.value}' um orçamento '{atual.value}'."
        )
    return destino
