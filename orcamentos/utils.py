# orcamentos/utils.py
from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import List, Union

from .calculo import quantizar
from .models import TipoDocumento


def formatar_moeda(valor: Union[Decimal, float, int, str, None]) -> str:
    """R$ 1.234,56 (ponto para milhar, vírgula para decimais)."""
    v = quantizar(valor or 0)
    sinal = "-" if v < 0 else ""
    inteiro, centavos = f"{abs(v):,.2f}".split(".")
    return f"{sinal}R$ {inteiro.replace(',', '.')},{centavos}"


def formatar_data(valor: Union[date, datetime, str]) -> str:
    if isinstance(valor, datetime):
        valor = valor.date()
    elif isinstance(valor, str):
        valor = date.fromisoformat(valor[:10])
    return valor.strftime("%d/%m/%Y")


def numero_orcamento(orcamento_id: int) -> str:
    """Número de exibição com 4 dígitos: 42 -> 0042."""
    return str(orcamento_id).zfill(4)


def formatar_documento(tipo: Union[TipoDocumento, str], documento: str) -> str:
    """Aplica a máscara de CPF/CNPJ; devolve o texto original se não tiver o tamanho certo."""
    d = "".join(ch for ch in (documento or "") if ch.isdigit())
    tipo = TipoDocumento(tipo)
    if tipo is TipoDocumento.cpf and len(d) == 11:
        return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"
    if tipo is TipoDocumento.cnpj and len(d) == 14:
        return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"
    return documento


_CREATE_TABLE = re.compile(r"CREATE TABLE (\w+) \((.*?)\n\);", re.S)
_REFERENCIA = re.compile(r"REFERENCES (\w+)\((\w+)\)(?: ON DELETE (\w+))?")


def schema_markdown(ddl: str) -> str:
    """
    Resumo em Markdown dos CREATE TABLE de um DDL: colunas com tipo e flags
    (PK, NOT NULL) e chaves estrangeiras com a ação de ON DELETE.
    """
    blocos: List[str] = []
    for tabela, corpo in _CREATE_TABLE.findall(ddl):
        colunas, fks = [], []
        for definicao in corpo.strip().splitlines():
            nome, tipo, *resto = definicao.strip().rstrip(",").split()
            resto = " ".join(resto)
            flags = [f for f, marca in (("PK", "PRIMARY KEY"), ("NOT NULL", "NOT NULL")) if marca in resto]
            colunas.append(f"{nome} {tipo}" + (f" [{', '.join(flags)}]" if flags else ""))
            ref = _REFERENCIA.search(resto)
            if ref:
                alvo, coluna, acao = ref.groups()
                fks.append(f"{nome} → {alvo}({coluna})" + (f" ON DELETE {acao}" if acao else ""))

        linhas = [f"### Tabela {tabela}", f"Colunas: {', '.join(colunas)}"]
        if fks:
            linhas.append(f"Relacionamentos: {', '.join(fks)}")
        blocos.append("\n".join(linhas))

    return "\n\n".join(blocos) or "/* Nenhum CREATE TABLE encontrado */"
