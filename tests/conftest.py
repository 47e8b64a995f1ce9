from datetime import date

import httpx
import pytest
from fastapi.testclient import TestClient

from orcamentos.config import CHAVE_ANON_KEY, CHAVE_URL, MemoryConfigStore
from orcamentos.contexto import ContextoApp
from orcamentos.db import SqlBackend
from orcamentos.main import create_app


def _sem_imagem(url: str) -> bytes:
    raise httpx.ConnectError(f"sem rede nos testes: {url}")


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'orcamentos.db'}"


@pytest.fixture
def backend(db_url):
    b = SqlBackend(db_url)
    yield b
    b.fechar()


@pytest.fixture
def store(db_url):
    return MemoryConfigStore({CHAVE_URL: db_url, CHAVE_ANON_KEY: "chave-de-teste"})


@pytest.fixture
def contexto(store):
    return ContextoApp(store)


@pytest.fixture
def client(contexto):
    with TestClient(create_app(contexto, carregar_imagem=_sem_imagem)) as c:
        yield c


@pytest.fixture
def dados_cliente():
    return {
        "nome": "Ana Souza",
        "tipo_documento": "cpf",
        "documento": "123.456.789-09",
        "email": "ana@exemplo.com",
        "telefone": "(11) 99999-0000",
        "endereco": "Rua A, 10",
    }


@pytest.fixture
def dados_empresa():
    return {
        "nome_empresa": "Oficina Exemplo Ltda",
        "tipo_documento": "cnpj",
        "documento": "12.345.678/0001-90",
        "endereco": "Rua das Flores, 100",
        "telefone": "(11) 4000-1000",
        "email": "contato@oficina.com.br",
        "observacoes_padrao": "Valid for 30 days",
    }


@pytest.fixture
def dados_orcamento():
    def _dados(cliente_id, **extra):
        dados = {
            "cliente_id": cliente_id,
            "data": date(2024, 1, 5).isoformat(),
            "itens": [
                {"descricao": "Instalação", "quantidade": 2, "valor_unitario": "10,00"},
                {"descricao": "Tomada", "quantidade": 1, "valor_unitario": "5,50"},
            ],
        }
        dados.update(extra)
        return dados

    return _dados
