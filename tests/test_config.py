import json

import pytest

from orcamentos.config import (
    CHAVE_ANON_KEY,
    CHAVE_URL,
    ConfigStore,
    Credenciais,
    JsonFileConfigStore,
    gravar_credenciais,
    ler_credenciais,
)


def test_arquivo_json_grava_e_limpa(tmp_path):
    path = tmp_path / "sub" / "credenciais.json"
    store = JsonFileConfigStore(path)
    assert ler_credenciais(store) is None

    gravar_credenciais(store, Credenciais(url="https://abc.supabase.co", chave="anon"))
    assert json.loads(path.read_text(encoding="utf-8")) == {
        CHAVE_URL: "https://abc.supabase.co",
        CHAVE_ANON_KEY: "anon",
    }
    assert ler_credenciais(JsonFileConfigStore(path)) == Credenciais("https://abc.supabase.co", "anon")

    store.limpar()
    assert ler_credenciais(store) is None


def test_arquivo_corrompido_vale_como_vazio(tmp_path):
    path = tmp_path / "credenciais.json"
    path.write_text("{nao e json", encoding="utf-8")
    assert ler_credenciais(JsonFileConfigStore(path)) is None


def test_chave_mascarada():
    assert Credenciais("u", "abcdefghijkl").mascarada() == "abcd...ijkl"
    assert Credenciais("u", "curta").mascarada() == "*****"


def test_store_incompleto_nao_instancia():
    class SoLeitura(ConfigStore):
        def ler(self, chave):
            return None

    with pytest.raises(TypeError):
        SoLeitura()
