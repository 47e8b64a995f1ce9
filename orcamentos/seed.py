# orcamentos/seed.py
from __future__ import annotations

import sys
from datetime import date, timedelta
from random import Random
from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session

from . import servicos
from .db import SqlBackend
from .models import Cliente, InformacoesEmpresa, ItemOrcamento, Orcamento, StatusOrcamento

# ---------- Parâmetros do seed (ajuste à vontade) ----------
URL_PADRAO = "sqlite:///orcamentos.db"
ORCAMENTOS = 24
DIAS = 90  # orçamentos espalhados pelos últimos N dias
ITENS_POR_ORCAMENTO_MIN = 1
ITENS_POR_ORCAMENTO_MAX = 4

EMPRESA = {
    "nome_empresa": "Oficina Exemplo Ltda",
    "tipo_documento": "cnpj",
    "documento": "12.345.678/0001-90",
    "endereco": "Rua das Flores, 100 - São Paulo/SP",
    "telefone": "(11) 4000-1000",
    "email": "contato@oficinaexemplo.com.br",
    "observacoes_padrao": "Validade da proposta: 15 dias.",
}

CLIENTES = [
    ("Ana Souza", "cpf", "123.456.789-09", "São Paulo/SP"),
    ("Bruno Lima", "cpf", "987.654.321-00", "Curitiba/PR"),
    ("Carla Mendes", "cpf", "111.444.777-35", "Recife/PE"),
    ("Padaria Pão Quente ME", "cnpj", "11.222.333/0001-81", "Belo Horizonte/MG"),
    ("Construtora Horizonte S.A.", "cnpj", "45.997.418/0001-53", "Porto Alegre/RS"),
]

SERVICOS = [
    ("Instalação elétrica", "180,00"),
    ("Troca de tomada", "35,50"),
    ("Pintura de parede (m²)", "22,90"),
    ("Visita técnica", "80,00"),
    ("Reparo hidráulico", "150,00"),
    ("Instalação de luminária", "45,00"),
]


def _limpar(backend: SqlBackend) -> None:
    # ordem das FKs
    with Session(backend.engine) as s:
        for modelo in (ItemOrcamento, Orcamento, Cliente, InformacoesEmpresa):
            s.exec(delete(modelo))
        s.commit()


def run(url: str = URL_PADRAO, hoje: Optional[date] = None) -> SqlBackend:
    rnd = Random(42)  # determinístico
    hoje = hoje or date.today()
    backend = SqlBackend(url)
    print(f"Usando banco em: {url}")

    _limpar(backend)
    servicos.salvar_empresa(backend, EMPRESA)

    clientes = []
    for i, (nome, tipo, documento, cidade) in enumerate(CLIENTES, start=1):
        clientes.append(servicos.salvar_cliente(backend, {
            "nome": nome,
            "tipo_documento": tipo,
            "documento": documento,
            "email": f"cliente{i}@exemplo.com",
            "telefone": f"(11) 9{i:04d}-{i * 1111:04d}",
            "endereco": cidade,
        }))

    for _ in range(ORCAMENTOS):
        itens = []
        for descricao, valor in rnd.sample(SERVICOS, rnd.randint(ITENS_POR_ORCAMENTO_MIN, ITENS_POR_ORCAMENTO_MAX)):
            itens.append({"descricao": descricao, "quantidade": rnd.randint(1, 5), "valor_unitario": valor})
        orcamento = servicos.salvar_orcamento(backend, {
            "cliente_id": rnd.choice(clientes).id,
            "data": hoje - timedelta(days=rnd.randint(0, DIAS)),
            "observacoes": rnd.choice([None, "Material incluso.", "Pagamento em 2x."]),
            "itens": itens,
        })
        destino = rnd.choice([None, StatusOrcamento.aprovado, StatusOrcamento.rejeitado])
        if destino:
            servicos.aplicar_acao_rapida(backend, orcamento, destino)

    orcamentos = backend.listar_orcamentos()
    print("Contagens após seed:")
    print("  clientes  :", len(backend.listar_clientes()))
    print("  orcamentos:", len(orcamentos))
    print("  itens     :", sum(len(o.itens) for o in orcamentos))
    return backend


if __name__ == "__main__":
    run(sys.argv[1] if len(sys.argv) > 1 else URL_PADRAO).fechar()
    print("Seed OK ✔")
