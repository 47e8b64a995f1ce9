# orcamentos/errors.py
from __future__ import annotations

from typing import List

from pydantic import BaseModel


class ErroCampo(BaseModel):
    campo: str
    mensagem: str


class ErroOrcamentos(Exception):
    """Base de todos os erros tratados na fronteira das operações."""

    mensagem = "Erro inesperado."

    def __init__(self, mensagem: str | None = None):
        super().__init__(mensagem or self.mensagem)
        if mensagem:
            self.mensagem = mensagem


class ConfiguracaoAusente(ErroOrcamentos):
    mensagem = "Credenciais do backend não encontradas. Configure a conexão."


class ErroValidacao(ErroOrcamentos):
    mensagem = "Dados inválidos."

    def __init__(self, erros: List[ErroCampo], mensagem: str | None = None):
        super().__init__(mensagem)
        self.erros = list(erros)


class ErroBackend(ErroOrcamentos):
    mensagem = "Erro ao conectar com o banco de dados."


class NaoEncontrado(ErroOrcamentos):
    mensagem = "Registro não encontrado."


class TransicaoInvalida(ErroOrcamentos):
    mensagem = "Ação de status não disponível para este orçamento."


class EmpresaNaoConfigurada(ErroOrcamentos):
    mensagem = "Configure as informações da empresa antes de imprimir orçamentos."
