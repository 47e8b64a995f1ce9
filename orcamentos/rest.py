# orcamentos/rest.py
from __future__ import annotations

"""
Backend hospedado com API REST no padrão PostgREST (ex.: Supabase).

- Endpoint: {url}/rest/v1/{tabela}
- A chave vai em `apikey` e como Bearer token.
- valor_total é recalculado pelo trigger do banco; relemos o orçamento após gravar.
- Não há transação entre duas tabelas via REST: se os itens falharem depois do
  orçamento gravado, desfazemos (apaga o orçamento novo / restaura o orçamento e os
  itens antigos).

Dependências: httpx
"""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from .backend import Backend
from .calculo import calcular_total, quantizar
from .config import HTTP_TIMEOUT
from .errors import ErroBackend, NaoEncontrado
from .models import Cliente, InformacoesEmpresa, OrcamentoLeitura, StatusOrcamento
from .validacao import ClienteEntrada, EmpresaEntrada, OrcamentoEntrada

_SELECT_ORCAMENTO = "*,itens:itens_orcamento(*)"


def _mensagem_erro(r: httpx.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text[:200] or f"HTTP {r.status_code}"
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data)
    return str(data)


class RestBackend(Backend):
    def __init__(
        self,
        url: str,
        chave: str,
        *,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url.rstrip("/")
        self._http = httpx.Client(
            base_url=f"{self.url}/rest/v1",
            headers={
                "apikey": chave,
                "Authorization": f"Bearer {chave}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def fechar(self) -> None:
        self._http.close()

    # ---------- Low level ----------
    def _req(
        self,
        method: str,
        tabela: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        headers = {"Prefer": prefer} if prefer else None
        try:
            r = self._http.request(method, f"/{tabela}", params=params, json=json, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("{} /{} falhou: {}", method, tabela, e)
            raise ErroBackend(f"Falha de rede: {e}") from e
        logger.debug("{} /{} -> {}", method, tabela, r.status_code)
        if r.status_code >= 400:
            raise ErroBackend(_mensagem_erro(r))
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ErroBackend("Resposta inválida do backend.") from e

    def _lista(self, tabela: str, **params: Any) -> List[Dict[str, Any]]:
        return self._req("GET", tabela, params=params) or []

    def _inserir(self, tabela: str, linhas: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return self._req("POST", tabela, json=linhas, prefer="return=representation") or []

    def _atualizar(self, tabela: str, registro_id: int, dados: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._req(
            "PATCH", tabela, params={"id": f"eq.{registro_id}"}, json=dados,
            prefer="return=representation",
        ) or []

    def _excluir(self, tabela: str, **filtros: Any) -> List[Dict[str, Any]]:
        return self._req("DELETE", tabela, params=filtros, prefer="return=representation") or []

    def sondar(self) -> None:
        self._lista("orcamentos", select="id", limit=1)

    # ---------- clientes ----------
    def listar_clientes(self) -> List[Cliente]:
        return [Cliente.model_validate(c) for c in self._lista("clientes", select="*", order="nome")]

    def obter_cliente(self, cliente_id: int) -> Optional[Cliente]:
        linhas = self._lista("clientes", select="*", id=f"eq.{cliente_id}")
        return Cliente.model_validate(linhas[0]) if linhas else None

    def inserir_cliente(self, dados: ClienteEntrada) -> Cliente:
        linhas = self._inserir("clientes", [dados.model_dump(mode="json")])
        return Cliente.model_validate(linhas[0])

    def atualizar_cliente(self, cliente_id: int, dados: ClienteEntrada) -> Cliente:
        linhas = self._atualizar("clientes", cliente_id, dados.model_dump(mode="json"))
        if not linhas:
            raise NaoEncontrado("Cliente não encontrado.")
        return Cliente.model_validate(linhas[0])

    def excluir_cliente(self, cliente_id: int) -> None:
        if not self._excluir("clientes", id=f"eq.{cliente_id}"):
            raise NaoEncontrado("Cliente não encontrado.")

    # ---------- empresa ----------
    def obter_empresa(self) -> Optional[InformacoesEmpresa]:
        # 0 linhas é um estado normal (empresa ainda não cadastrada)
        linhas = self._lista("informacoes_empresa", select="*", order="id", limit=1)
        return InformacoesEmpresa.model_validate(linhas[0]) if linhas else None

    def salvar_empresa(self, dados: EmpresaEntrada) -> InformacoesEmpresa:
        atual = self.obter_empresa()
        payload = dados.model_dump(mode="json")
        if atual is None:
            linhas = self._inserir("informacoes_empresa", [payload])
        else:
            linhas = self._atualizar("informacoes_empresa", atual.id, payload)
        return InformacoesEmpresa.model_validate(linhas[0])

    # ---------- orçamentos ----------
    def listar_orcamentos(self) -> List[OrcamentoLeitura]:
        linhas = self._lista("orcamentos", select=_SELECT_ORCAMENTO, order="created_at.desc")
        return [self._leitura(o) for o in linhas]

    @staticmethod
    def _leitura(linha: Dict[str, Any]) -> OrcamentoLeitura:
        dados = dict(linha)
        itens = dados.get("itens")
        itens = sorted(itens, key=lambda i: i.get("id") or 0) if isinstance(itens, list) else []
        dados["itens"] = itens
        return OrcamentoLeitura.model_validate(dados)

    def obter_orcamento(self, orcamento_id: int) -> Optional[OrcamentoLeitura]:
        linhas = self._lista("orcamentos", select=_SELECT_ORCAMENTO, id=f"eq.{orcamento_id}")
        return self._leitura(linhas[0]) if linhas else None

    @staticmethod
    def _payload_orcamento(dados: OrcamentoEntrada) -> Dict[str, Any]:
        payload = dados.model_dump(mode="json", exclude={"itens"})
        # prévia; o trigger sobrescreve com o valor oficial
        payload["valor_total"] = str(calcular_total(dados.itens))
        return payload

    @staticmethod
    def _linhas_itens(orcamento_id: int, itens) -> List[Dict[str, Any]]:
        return [
            {
                "orcamento_id": orcamento_id,
                "descricao": i.descricao,
                "quantidade": i.quantidade,
                "valor_unitario": str(i.valor_unitario),
            }
            for i in itens
        ]

    def _reler(self, orcamento_id: int) -> OrcamentoLeitura:
        orc = self.obter_orcamento(orcamento_id)
        if orc is None:
            raise ErroBackend("Orçamento gravado não foi encontrado na releitura.")
        return orc

    def criar_orcamento(self, dados: OrcamentoEntrada) -> OrcamentoLeitura:
        criado = self._inserir("orcamentos", [self._payload_orcamento(dados)])
        if not criado:
            raise ErroBackend("O backend não devolveu o orçamento criado.")
        orcamento_id = int(criado[0]["id"])

        if dados.itens:
            try:
                self._inserir("itens_orcamento", self._linhas_itens(orcamento_id, dados.itens))
            except ErroBackend:
                logger.error("Itens do orçamento {} falharam; removendo o orçamento", orcamento_id)
                try:
                    self._excluir("orcamentos", id=f"eq.{orcamento_id}")
                except ErroBackend:
                    logger.error("Orçamento {} ficou sem itens no backend", orcamento_id)
                raise
        return self._reler(orcamento_id)

    @staticmethod
    def _payload_anterior(anterior: OrcamentoLeitura) -> Dict[str, Any]:
        return {
            "cliente_id": anterior.cliente_id,
            "data": anterior.data.isoformat(),
            "status": StatusOrcamento(anterior.status).value,
            "observacoes": anterior.observacoes,
            "valor_total": str(quantizar(anterior.valor_total)),
        }

    def _restaurar(self, anterior: OrcamentoLeitura, itens_removidos: bool) -> None:
        """Volta o orçamento e os itens ao estado lido antes da edição."""
        orcamento_id = anterior.id
        try:
            self._atualizar("orcamentos", orcamento_id, self._payload_anterior(anterior))
        except ErroBackend:
            logger.error("Não foi possível restaurar o orçamento {}", orcamento_id)
        if itens_removidos and anterior.itens:
            try:
                self._inserir("itens_orcamento", self._linhas_itens(orcamento_id, anterior.itens))
            except ErroBackend:
                logger.error("Não foi possível restaurar os itens do orçamento {}", orcamento_id)

    def atualizar_orcamento(self, orcamento_id: int, dados: OrcamentoEntrada) -> OrcamentoLeitura:
        anterior = self.obter_orcamento(orcamento_id)
        if anterior is None:
            raise NaoEncontrado("Orçamento não encontrado.")

        self._atualizar("orcamentos", orcamento_id, self._payload_orcamento(dados))
        itens_removidos = False
        try:
            self._excluir("itens_orcamento", orcamento_id=f"eq.{orcamento_id}")
            itens_removidos = True
            if dados.itens:
                self._inserir("itens_orcamento", self._linhas_itens(orcamento_id, dados.itens))
        except ErroBackend:
            logger.error("Edição do orçamento {} falhou; restaurando o estado anterior", orcamento_id)
            self._restaurar(anterior, itens_removidos)
            raise
        return self._reler(orcamento_id)

    def atualizar_status(self, orcamento_id: int, status: StatusOrcamento) -> None:
        linhas = self._atualizar("orcamentos", orcamento_id, {"status": StatusOrcamento(status).value})
        if not linhas:
            raise NaoEncontrado("Orçamento não encontrado.")

    def excluir_orcamento(self, orcamento_id: int) -> None:
        # itens saem pelo ON DELETE CASCADE
        if not self._excluir("orcamentos", id=f"eq.{orcamento_id}"):
            raise NaoEncontrado("Orçamento não encontrado.")
