# orcamentos/servicos.py
from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional

from loguru import logger

from .backend import Backend
from .dashboard import FiltroDashboard, ResumoDashboard, resumir
from .documento import CarregarImagem, DocumentoOrcamento, montar_documento, renderizar_pdf
from .errors import EmpresaNaoConfigurada, ErroBackend, ErroCampo, ErroValidacao, NaoEncontrado
from .models import Cliente, InformacoesEmpresa, OrcamentoLeitura, StatusOrcamento
from .status import transicao_rapida
from .validacao import normalizar_cliente, normalizar_empresa, normalizar_orcamento


def salvar_cliente(backend: Backend, dados: Mapping[str, Any], cliente_id: Optional[int] = None) -> Cliente:
    entrada = normalizar_cliente(dados)
    if cliente_id is None:
        cliente = backend.inserir_cliente(entrada)
        logger.info("Cliente {} cadastrado", cliente.id)
        return cliente
    return backend.atualizar_cliente(cliente_id, entrada)


def salvar_empresa(backend: Backend, dados: Mapping[str, Any]) -> InformacoesEmpresa:
    return backend.salvar_empresa(normalizar_empresa(dados))


def obter_orcamento(backend: Backend, orcamento_id: int) -> OrcamentoLeitura:
    orcamento = backend.obter_orcamento(orcamento_id)
    if orcamento is None:
        raise NaoEncontrado("Orçamento não encontrado.")
    return orcamento


def salvar_orcamento(
    backend: Backend, dados: Mapping[str, Any], orcamento_id: Optional[int] = None
) -> OrcamentoLeitura:
    """
    Cria ou atualiza (edição completa) um orçamento e seus itens.
    Na edição, o status pode voltar para "pendente"; os itens são todos trocados.
    """
    entrada = normalizar_orcamento(dados)
    if backend.obter_cliente(entrada.cliente_id) is None:
        raise ErroValidacao([ErroCampo(campo="cliente_id", mensagem="Cliente não encontrado")])

    if orcamento_id is None:
        return backend.criar_orcamento(entrada)
    return backend.atualizar_orcamento(orcamento_id, entrada)


def aplicar_acao_rapida(
    backend: Backend, orcamento: OrcamentoLeitura, destino: StatusOrcamento | str
) -> OrcamentoLeitura:
    """
    Aprovar/rejeitar a partir de "pendente". Só o status muda; se o backend
    falhar, o status em memória volta ao valor anterior.
    """
    novo = transicao_rapida(orcamento.status, destino)
    anterior = orcamento.status
    orcamento.status = novo
    try:
        backend.atualizar_status(orcamento.id, novo)
    except (ErroBackend, NaoEncontrado):
        orcamento.status = anterior
        raise
    logger.info("Orçamento {}: {} -> {}", orcamento.id, StatusOrcamento(anterior).value, novo.value)
    return orcamento


def carregar_dashboard(
    backend: Backend, filtro: Optional[FiltroDashboard] = None, hoje: Optional[date] = None
) -> ResumoDashboard:
    filtro = filtro or FiltroDashboard.padrao(hoje)
    orcamentos = backend.listar_orcamentos()
    clientes = backend.listar_clientes()
    return resumir(orcamentos, filtro, clientes)


def montar_impressao(backend: Backend, orcamento_id: int) -> DocumentoOrcamento:
    empresa = backend.obter_empresa()
    if empresa is None:
        raise EmpresaNaoConfigurada()
    orcamento = obter_orcamento(backend, orcamento_id)
    cliente = backend.obter_cliente(orcamento.cliente_id)
    if cliente is None:
        raise NaoEncontrado("Cliente do orçamento não encontrado.")
    return montar_documento(orcamento, cliente, empresa)


def gerar_pdf(backend: Backend, orcamento_id: int, carregar_imagem: Optional[CarregarImagem] = None) -> bytes:
    return renderizar_pdf(montar_impressao(backend, orcamento_id), carregar_imagem)
