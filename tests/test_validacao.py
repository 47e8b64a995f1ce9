from decimal import Decimal

import pytest

from orcamentos.errors import ErroValidacao
from orcamentos.validacao import (
    normalizar_cliente,
    normalizar_credenciais,
    normalizar_empresa,
    normalizar_orcamento,
    parse_moeda,
    validar_cliente,
    validar_empresa,
    validar_orcamento,
)


def _mensagens(erros):
    return {e.campo: e.mensagem for e in erros}


def test_cpf_normalizado_para_digitos(dados_cliente):
    dados_cliente["documento"] = "123.456.789-00"
    assert normalizar_cliente(dados_cliente).documento == "12345678900"


def test_mesmo_numero_como_cnpj_e_rejeitado(dados_cliente):
    dados_cliente.update(documento="123.456.789-00", tipo_documento="cnpj")
    with pytest.raises(ErroValidacao) as exc:
        normalizar_cliente(dados_cliente)
    assert _mensagens(exc.value.erros) == {"documento": "Documento inválido"}


def test_cliente_valido_nao_tem_erros(dados_cliente):
    assert validar_cliente(dados_cliente) == []


def test_campos_obrigatorios():
    erros = _mensagens(validar_cliente({"nome": "   "}))
    assert erros["nome"] == "Nome é obrigatório"
    assert erros["email"] == "Email é obrigatório"
    assert {"tipo_documento", "documento", "telefone", "endereco"} <= set(erros)


def test_tipo_de_documento_invalido(dados_cliente):
    dados_cliente["tipo_documento"] = "rg"
    assert _mensagens(validar_cliente(dados_cliente)) == {"tipo_documento": "Selecione o tipo de documento"}


def test_email_invalido(dados_cliente):
    dados_cliente["email"] = "ana@"
    assert _mensagens(validar_cliente(dados_cliente)) == {"email": "Email inválido"}


def test_urls_da_empresa(dados_empresa):
    dados_empresa.update(logo_url="logo.png", assinatura_url="")
    assert _mensagens(validar_empresa(dados_empresa)) == {"logo_url": "URL inválida"}

    dados_empresa["logo_url"] = "https://cdn.exemplo.com/logo.png"
    empresa = normalizar_empresa(dados_empresa)
    assert empresa.logo_url == "https://cdn.exemplo.com/logo.png"
    assert empresa.assinatura_url is None
    assert empresa.documento == "12345678000190"


def test_orcamento_padroes():
    orc = normalizar_orcamento({"cliente_id": "3", "data": "2024-01-05", "observacoes": "  "})
    assert orc.cliente_id == 3
    assert orc.status.value == "pendente"
    assert orc.observacoes is None
    assert orc.itens == []


def test_erros_de_itens_apontam_a_linha():
    erros = _mensagens(validar_orcamento({
        "cliente_id": 1,
        "data": "2024-13-01",
        "itens": [
            {"descricao": "ok", "quantidade": 1, "valor_unitario": "10,00"},
            {"descricao": "", "quantidade": 0, "valor_unitario": -1},
        ],
    }))
    assert erros == {
        "data": "Data inválida",
        "itens.1.descricao": "Descrição é obrigatória",
        "itens.1.quantidade": "Quantidade deve ser maior que zero",
        "itens.1.valor_unitario": "Valor unitário não pode ser negativo",
    }


@pytest.mark.parametrize("valor", [Decimal("1.234"), float("inf")])
def test_valor_unitario_fora_do_formato(valor):
    erros = validar_orcamento({
        "cliente_id": 1,
        "data": "2024-01-05",
        "itens": [{"descricao": "x", "quantidade": 1, "valor_unitario": valor}],
    })
    assert [e.campo for e in erros] == ["itens.0.valor_unitario"]


def test_parse_moeda():
    assert parse_moeda("1.234,56") == Decimal("1234.56")
    assert parse_moeda("R$ 5,50") == Decimal("5.50")
    assert parse_moeda("") == Decimal("0.00")
    assert parse_moeda(10) == Decimal("10")
    with pytest.raises(ValueError):
        parse_moeda(True)


def test_credenciais():
    cred = normalizar_credenciais({"url": "https://abc.supabase.co/", "chave": "anon"})
    assert cred.url == "https://abc.supabase.co"
    assert normalizar_credenciais({"url": "sqlite:///x.db", "chave": "k"}).url == "sqlite:///x.db"

    with pytest.raises(ErroValidacao) as exc:
        normalizar_credenciais({"url": "abc", "chave": ""})
    assert _mensagens(exc.value.erros) == {
        "url": "URL inválida",
        "chave": "Chave de acesso é obrigatória",
    }


@pytest.mark.parametrize("quantidade, erro", [
    (2_147_483_647, None),
    (2_147_483_648, "Quantidade muito grande"),
    (10**20, "Quantidade muito grande"),
])
def test_quantidade_dentro_do_inteiro_do_banco(quantidade, erro):
    erros = _mensagens(validar_orcamento({
        "cliente_id": 1,
        "data": "2024-01-05",
        "itens": [{"descricao": "x", "quantidade": quantidade, "valor_unitario": "1,00"}],
    }))
    assert erros == ({"itens.0.quantidade": erro} if erro else {})
