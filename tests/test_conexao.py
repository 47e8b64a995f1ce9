import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from orcamentos.config import CHAVE_ANON_KEY, CHAVE_URL, MemoryConfigStore, ler_credenciais
from orcamentos.conexao import StatusConexao
from orcamentos.contexto import ContextoApp
from orcamentos.errors import ConfiguracaoAusente, ErroBackend, ErroValidacao


class Relogio:
    def __init__(self):
        self.agora = 0.0

    def __call__(self):
        return self.agora


class BackendSonda:
    def __init__(self, falhar=False):
        self.falhar = falhar
        self.sondagens = 0
        self.fechado = False

    def sondar(self):
        self.sondagens += 1
        if self.falhar:
            raise ErroBackend("fora do ar")

    def fechar(self):
        self.fechado = True


class Fabrica:
    def __init__(self, falhar=False):
        self.falhar = falhar
        self.criados = []

    def __call__(self, credenciais):
        b = BackendSonda(self.falhar)
        self.criados.append((credenciais, b))
        return b


def _contexto(valores=None, falhar=False):
    fabrica = Fabrica(falhar)
    relogio = Relogio()
    ctx = ContextoApp(MemoryConfigStore(valores), fabrica, intervalo_conexao=30, relogio=relogio)
    return ctx, fabrica, relogio


CREDENCIAIS = {CHAVE_URL: "https://abc.supabase.co", CHAVE_ANON_KEY: "anon"}


def test_sem_credenciais_nao_chama_backend():
    ctx, fabrica, _ = _contexto()
    assert ctx.sonda.status() is StatusConexao.desconectado
    assert fabrica.criados == []
    with pytest.raises(ConfiguracaoAusente):
        ctx.backend()


def test_credencial_incompleta_conta_como_ausente():
    ctx, fabrica, _ = _contexto({CHAVE_URL: "https://abc.supabase.co", CHAVE_ANON_KEY: ""})
    assert not ctx.configurado()
    assert ctx.sonda.status() is StatusConexao.desconectado
    assert fabrica.criados == []


def test_leitura_sem_linhas_conta_como_conectado():
    ctx, _, _ = _contexto(CREDENCIAIS)
    assert ctx.sonda.status() is StatusConexao.conectado


def test_erro_no_backend_conta_como_desconectado():
    ctx, _, _ = _contexto(CREDENCIAIS, falhar=True)
    assert ctx.sonda.status() is StatusConexao.desconectado


def test_conectado_reverifica_no_intervalo():
    ctx, fabrica, relogio = _contexto(CREDENCIAIS)
    ctx.sonda.status()
    backend = fabrica.criados[0][1]

    relogio.agora = 10
    ctx.sonda.status()
    assert backend.sondagens == 1

    relogio.agora = 31
    ctx.sonda.status()
    assert backend.sondagens == 2
    assert len(fabrica.criados) == 1


def test_desconectado_so_reverifica_quando_forcado():
    ctx, fabrica, relogio = _contexto(CREDENCIAIS, falhar=True)
    ctx.sonda.status()
    backend = fabrica.criados[0][1]

    relogio.agora = 1000
    assert ctx.sonda.status() is StatusConexao.desconectado
    assert backend.sondagens == 1

    backend.falhar = False
    assert ctx.sonda.status(forcar=True) is StatusConexao.conectado
    assert backend.sondagens == 2


def test_salvar_credenciais_recria_o_handle():
    ctx, fabrica, _ = _contexto(CREDENCIAIS)
    antigo = ctx.backend()

    status = ctx.salvar_credenciais("https://outro.supabase.co/", "nova")
    assert status is StatusConexao.conectado
    assert antigo.fechado
    cred, novo = fabrica.criados[-1]
    assert novo is not antigo
    assert (cred.url, cred.chave) == ("https://outro.supabase.co", "nova")
    assert ctx.store.ler(CHAVE_URL) == "https://outro.supabase.co"


def test_credenciais_invalidas_nao_sao_gravadas():
    ctx, fabrica, _ = _contexto()
    with pytest.raises(ErroValidacao):
        ctx.salvar_credenciais("sem-esquema", "k")
    assert ler_credenciais(ctx.store) is None
    assert fabrica.criados == []


def test_desconectar_limpa_tudo():
    ctx, _, _ = _contexto(CREDENCIAIS)
    ctx.sonda.status()
    ctx.desconectar()
    assert ctx.store.ler(CHAVE_URL) is None
    assert ctx.store.ler(CHAVE_ANON_KEY) is None
    assert ctx.sonda.atual is None
    assert ctx.sonda.status() is StatusConexao.desconectado


def test_driver_ausente_conta_como_desconectado(monkeypatch):
    def sem_driver(*args, **kwargs):
        raise ModuleNotFoundError("No module named 'psycopg'")

    monkeypatch.setattr("orcamentos.db.create_engine", sem_driver)
    ctx = ContextoApp(MemoryConfigStore({CHAVE_URL: "postgresql://app@127.0.0.1:1/orc", CHAVE_ANON_KEY: "k"}))
    assert ctx.sonda.status(forcar=True) is StatusConexao.desconectado


def test_primeiros_acessos_simultaneos_criam_um_handle_so():
    criados = []

    def fabrica_lenta(credenciais):
        time.sleep(0.05)
        b = BackendSonda()
        criados.append(b)
        return b

    ctx = ContextoApp(MemoryConfigStore(CREDENCIAIS), fabrica_lenta)
    with ThreadPoolExecutor(max_workers=8) as pool:
        handles = list(pool.map(lambda _: ctx.backend(), range(8)))

    assert len(criados) == 1
    assert all(h is criados[0] for h in handles)
