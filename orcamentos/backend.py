# orcamentos/backend.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Cliente, InformacoesEmpresa, OrcamentoLeitura, StatusOrcamento
from .validacao import ClienteEntrada, EmpresaEntrada, OrcamentoEntrada


class Backend(ABC):
    """
    Operações que o sistema faz no banco remoto.
    Toda falha de rede/banco sai como ErroBackend; busca por id inexistente
    devolve None (obter_*) ou levanta NaoEncontrado (atualizar/excluir).
    """

    @abstractmethod
    def sondar(self) -> None:
        """Leitura mínima para checar a conexão (pode não retornar linhas)."""

    # clientes
    @abstractmethod
    def listar_clientes(self) -> List[Cliente]: ...

    @abstractmethod
    def obter_cliente(self, cliente_id: int) -> Optional[Cliente]: ...

    @abstractmethod
    def inserir_cliente(self, dados: ClienteEntrada) -> Cliente: ...

    @abstractmethod
    def atualizar_cliente(self, cliente_id: int, dados: ClienteEntrada) -> Cliente: ...

    @abstractmethod
    def excluir_cliente(self, cliente_id: int) -> None: ...

    # informações da empresa (0 ou 1 linha)
    @abstractmethod
    def obter_empresa(self) -> Optional[InformacoesEmpresa]: ...

    @abstractmethod
    def salvar_empresa(self, dados: EmpresaEntrada) -> InformacoesEmpresa: ...

    # orçamentos
    @abstractmethod
    def listar_orcamentos(self) -> List[OrcamentoLeitura]:
        """Orçamentos com itens, mais recentes primeiro (created_at desc)."""

    @abstractmethod
    def obter_orcamento(self, orcamento_id: int) -> Optional[OrcamentoLeitura]: ...

    @abstractmethod
    def criar_orcamento(self, dados: OrcamentoEntrada) -> OrcamentoLeitura: ...

    @abstractmethod
    def atualizar_orcamento(self, orcamento_id: int, dados: OrcamentoEntrada) -> OrcamentoLeitura:
        """Atualização completa: os itens antigos são todos trocados pelos novos."""

    @abstractmethod
    def atualizar_status(self, orcamento_id: int, status: StatusOrcamento) -> None: ...

    @abstractmethod
    def excluir_orcamento(self, orcamento_id: int) -> None: ...

    def fechar(self) -> None:
        """Libera recursos do handle (opcional)."""
