# orcamentos/config.py
from __future__ import annotations

import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from loguru import logger

# -----------------------------------------------------------------------------
# Config do serviço (.env / ambiente)
# -----------------------------------------------------------------------------
load_dotenv()

CREDENCIAIS_PATH = Path(
    os.getenv("ORCAMENTOS_CREDENCIAIS", str(Path.home() / ".orcamentos" / "credenciais.json"))
).expanduser()
INTERVALO_CONEXAO: float = float(os.getenv("ORCAMENTOS_INTERVALO_CONEXAO", "30"))
HTTP_TIMEOUT: float = float(os.getenv("ORCAMENTOS_TIMEOUT", "15"))
LOG_LEVEL: str = os.getenv("ORCAMENTOS_LOG_LEVEL", "INFO")

# Chaves fixas do armazenamento local das credenciais
CHAVE_URL = "supabaseUrl"
CHAVE_ANON_KEY = "supabaseAnonKey"


@dataclass(frozen=True)
class Credenciais:
    url: str
    chave: str

    def mascarada(self) -> str:
        if len(self.chave) <= 8:
            return "*" * len(self.chave)
        return f"{self.chave[:4]}...{self.chave[-4:]}"


# -----------------------------------------------------------------------------
# Armazenamento das credenciais (ler / gravar / limpar)
# -----------------------------------------------------------------------------
class ConfigStore(ABC):
    """Contrato mínimo de um armazenamento chave -> texto."""

    @abstractmethod
    def ler(self, chave: str) -> Optional[str]: ...

    @abstractmethod
    def gravar(self, chave: str, valor: str) -> None: ...

    @abstractmethod
    def remover(self, chave: str) -> None: ...

    def limpar(self) -> None:
        for chave in (CHAVE_URL, CHAVE_ANON_KEY):
            self.remover(chave)


class MemoryConfigStore(ConfigStore):
    def __init__(self, valores: Optional[Dict[str, str]] = None):
        self._valores: Dict[str, str] = dict(valores or {})

    def ler(self, chave: str) -> Optional[str]:
        return self._valores.get(chave)

    def gravar(self, chave: str, valor: str) -> None:
        self._valores[chave] = valor

    def remover(self, chave: str) -> None:
        self._valores.pop(chave, None)


class JsonFileConfigStore(ConfigStore):
    """Arquivo JSON por usuário; faz o papel do localStorage do navegador."""

    def __init__(self, path: Path = CREDENCIAIS_PATH):
        self.path = Path(path)

    def _carregar(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            dados = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Arquivo de credenciais ilegível ({}): {}", self.path, e)
            return {}
        return dados if isinstance(dados, dict) else {}

    def _salvar(self, dados: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(dados, ensure_ascii=False, indent=2), encoding="utf-8")

    def ler(self, chave: str) -> Optional[str]:
        valor = self._carregar().get(chave)
        return str(valor) if valor is not None else None

    def gravar(self, chave: str, valor: str) -> None:
        dados = self._carregar()
        dados[chave] = valor
        self._salvar(dados)

    def remover(self, chave: str) -> None:
        dados = self._carregar()
        if chave in dados:
            del dados[chave]
            self._salvar(dados)


def ler_credenciais(store: ConfigStore) -> Optional[Credenciais]:
    """None quando qualquer uma das duas chaves estiver ausente ou vazia."""
    url = store.ler(CHAVE_URL)
    chave = store.ler(CHAVE_ANON_KEY)
    if not url or not chave:
        return None
    return Credenciais(url=url, chave=chave)


def gravar_credenciais(store: ConfigStore, credenciais: Credenciais) -> None:
    store.gravar(CHAVE_URL, credenciais.url)
    store.gravar(CHAVE_ANON_KEY, credenciais.chave)
