# orcamentos/conexao.py
from __future__ import annotations

import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from loguru import logger

from .errors import ErroBackend

if TYPE_CHECKING:
    from .contexto import ContextoApp


class StatusConexao(str, Enum):
    conectado = "connected"
    desconectado = "disconnected"


class SondaConexao:
    """
    Verifica se o backend responde.

    - Sem credenciais: desconectado, sem nenhuma chamada de rede.
    - Com credenciais: uma leitura mínima; sucesso (mesmo sem linhas) = conectado.
    - Enquanto conectado, refaz a leitura a cada `intervalo` segundos.
    - Enquanto desconectado, só verifica de novo quando forçado.
    """

    def __init__(
        self,
        contexto: "ContextoApp",
        intervalo: float,
        relogio: Callable[[], float] = time.monotonic,
    ):
        self._contexto = contexto
        self.intervalo = intervalo
        self._relogio = relogio
        self.atual: Optional[StatusConexao] = None
        self._ultima: Optional[float] = None

    def reiniciar(self) -> None:
        self.atual = None
        self._ultima = None

    def verificar(self) -> StatusConexao:
        self.atual = self._sondar()
        self._ultima = self._relogio()
        return self.atual

    def _sondar(self) -> StatusConexao:
        if not self._contexto.configurado():
            return StatusConexao.desconectado
        try:
            self._contexto.backend().sondar()
        except ErroBackend as e:
            logger.warning("Backend indisponível: {}", e)
            return StatusConexao.desconectado
        return StatusConexao.conectado

    def precisa_verificar(self) -> bool:
        if self.atual is None or self._ultima is None:
            return True
        if self.atual is StatusConexao.conectado:
            return self._relogio() - self._ultima >= self.intervalo
        return False

    def status(self, forcar: bool = False) -> StatusConexao:
        if forcar or self.precisa_verificar():
            return self.verificar()
        return self.atual
