# orcamentos/contexto.py
from __future__ import annotations

import threading
from typing import Callable, Optional

from loguru import logger

from .backend import Backend
from .config import (
    INTERVALO_CONEXAO,
    ConfigStore,
    Credenciais,
    gravar_credenciais,
    ler_credenciais,
)
from .conexao import SondaConexao, StatusConexao
from .db import SqlBackend
from .errors import ConfiguracaoAusente
from .rest import RestBackend
from .validacao import normalizar_credenciais

FabricaBackend = Callable[[Credenciais], Backend]


def criar_backend(credenciais: Credenciais) -> Backend:
    """
    http(s)://...  -> API REST hospedada (PostgREST/Supabase)
    outra URL      -> banco acessado via SQLAlchemy (sqlite:///..., postgresql://...)
    """
    if credenciais.url.startswith(("http://", "https://")):
        return RestBackend(credenciais.url, credenciais.chave)
    return SqlBackend(credenciais.url, senha=credenciais.chave)


class ContextoApp:
    """
    Dono do único handle de backend do processo.
    O handle é criado na primeira chamada a backend() e só é recriado quando
    as credenciais mudam (salvar_credenciais / desconectar / recriar).
    """

    def __init__(
        self,
        store: ConfigStore,
        fabrica: FabricaBackend = criar_backend,
        *,
        intervalo_conexao: float = INTERVALO_CONEXAO,
        relogio: Optional[Callable[[], float]] = None,
    ):
        self.store = store
        self._fabrica = fabrica
        self._backend: Optional[Backend] = None
        self._lock = threading.Lock()
        kwargs = {"relogio": relogio} if relogio else {}
        self.sonda = SondaConexao(self, intervalo_conexao, **kwargs)

    def credenciais(self) -> Optional[Credenciais]:
        return ler_credenciais(self.store)

    def configurado(self) -> bool:
        return self.credenciais() is not None

    def backend(self) -> Backend:
        credenciais = self.credenciais()
        if credenciais is None:
            raise ConfiguracaoAusente()
        # rotas síncronas rodam no threadpool: só um handle por vez
        with self._lock:
            if self._backend is None:
                self._backend = self._fabrica(credenciais)
                logger.info("Backend criado para {}", credenciais.url)
            return self._backend

    def recriar(self) -> None:
        """Descarta o handle atual; o próximo backend() cria outro."""
        with self._lock:
            if self._backend is not None:
                self._backend.fechar()
            self._backend = None

    def salvar_credenciais(self, url: str, chave: str) -> StatusConexao:
        entrada = normalizar_credenciais({"url": url, "chave": chave})
        gravar_credenciais(self.store, Credenciais(url=entrada.url, chave=entrada.chave))
        self.recriar()
        logger.info("Credenciais atualizadas; verificando conexão")
        return self.sonda.status(forcar=True)

    def desconectar(self) -> None:
        self.store.limpar()
        self.recriar()
        self.sonda.reiniciar()
        logger.info("Credenciais removidas")
