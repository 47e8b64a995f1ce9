from datetime import date, datetime, timezone
from decimal import Decimal

from orcamentos.dashboard import (
    TODOS,
    FiltroDashboard,
    _dia,
    filtrar_orcamentos,
    periodo_mes_atual,
    resumir,
)
from orcamentos.models import Cliente, OrcamentoLeitura, StatusOrcamento


def _orc(id, dia, valor, status="pendente", cliente_id=1, criado=None):
    return OrcamentoLeitura(
        id=id,
        cliente_id=cliente_id,
        data=dia,
        valor_total=Decimal(valor),
        status=status,
        created_at=criado or datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def _cliente(id, criado):
    return Cliente(
        id=id, nome=f"Cliente {id}", tipo_documento="cpf", documento="12345678909",
        email=f"c{id}@ex.com", telefone="1", endereco="Rua", created_at=criado,
    )


ORCAMENTOS = [
    _orc(1, date(2024, 1, 5), "100.00"),
    _orc(2, date(2024, 1, 15), "50.50", status="aprovado", cliente_id=2),
    _orc(3, date(2024, 2, 1), "999.99", status="rejeitado"),
]


def test_filtro_por_periodo():
    filtro = FiltroDashboard(inicio=date(2024, 1, 1), fim=date(2024, 1, 31))
    assert [o.id for o in filtrar_orcamentos(ORCAMENTOS, filtro)] == [1, 2]

    resumo = resumir(ORCAMENTOS, filtro)
    assert resumo.total_orcamentos == 2
    assert resumo.valor_total == Decimal("150.50")


def test_limites_do_periodo_sao_inclusivos():
    filtro = FiltroDashboard(inicio=date(2024, 1, 5), fim=date(2024, 2, 1))
    assert [o.id for o in filtrar_orcamentos(ORCAMENTOS, filtro)] == [1, 2, 3]


def test_dia_ignora_hora_e_fuso():
    assert _dia(datetime(2024, 1, 31, 23, 59, 59)) == date(2024, 1, 31)
    assert _dia("2024-01-31T23:59:59+00:00") == date(2024, 1, 31)
    assert _dia("2024-01-31") == date(2024, 1, 31)


def test_hora_no_limite_final_nao_exclui_o_dia():
    # model_construct mantém datetime/str crus, como chegam de um backend REST
    orcamentos = [
        OrcamentoLeitura.model_construct(id=1, cliente_id=1, data=datetime(2024, 1, 31, 23, 59)),
        OrcamentoLeitura.model_construct(id=2, cliente_id=1, data="2024-01-31T18:30:00+00:00"),
        OrcamentoLeitura.model_construct(id=3, cliente_id=1, data="2024-01-01T00:00:00"),
        OrcamentoLeitura.model_construct(id=4, cliente_id=1, data="2024-02-01T00:00:00"),
    ]
    filtro = FiltroDashboard.model_construct(
        cliente=TODOS, inicio=datetime(2024, 1, 1, 10, 0), fim="2024-01-31T00:00:00"
    )
    assert [o.id for o in filtrar_orcamentos(orcamentos, filtro)] == [1, 2, 3]


def test_periodo_com_um_limite_so_nao_filtra():
    filtro = FiltroDashboard(inicio=date(2024, 1, 10))
    assert len(filtrar_orcamentos(ORCAMENTOS, filtro)) == 3


def test_filtros_nao_se_acumulam():
    so_cliente_2 = filtrar_orcamentos(ORCAMENTOS, FiltroDashboard(cliente="2"))
    assert [o.id for o in so_cliente_2] == [2]

    todos = filtrar_orcamentos(ORCAMENTOS, FiltroDashboard(cliente=TODOS))
    assert [o.id for o in todos] == [1, 2, 3]
    assert len(ORCAMENTOS) == 3


def test_resumo_por_status():
    resumo = resumir(ORCAMENTOS, FiltroDashboard())
    assert resumo.contagem_por_status == {
        StatusOrcamento.pendente: 1,
        StatusOrcamento.aprovado: 1,
        StatusOrcamento.rejeitado: 1,
    }
    assert resumo.valor_por_status[StatusOrcamento.rejeitado] == Decimal("999.99")
    assert resumo.valor_total == Decimal("1150.49")


def test_ultimos_cinco_mais_recentes_primeiro():
    orcs = [
        _orc(i, date(2024, 1, 1), "1.00", criado=datetime(2024, 1, i, tzinfo=timezone.utc))
        for i in range(1, 8)
    ]
    resumo = resumir(orcs, FiltroDashboard())
    assert [o.id for o in resumo.ultimos_orcamentos] == [7, 6, 5, 4, 3]


def test_empate_em_created_at_mantem_ordem_de_carga():
    mesmo = datetime(2024, 1, 1, tzinfo=timezone.utc)
    orcs = [_orc(i, date(2024, 1, 1), "1.00", criado=mesmo) for i in (3, 1, 2)]
    assert [o.id for o in resumir(orcs, FiltroDashboard()).ultimos_orcamentos] == [3, 1, 2]


def test_orcamentos_por_cliente():
    clientes = [
        _cliente(1, datetime(2024, 1, 1, tzinfo=timezone.utc)),
        _cliente(2, datetime(2024, 1, 2, tzinfo=timezone.utc)),
    ]
    resumo = resumir(ORCAMENTOS, FiltroDashboard(), clientes)
    assert resumo.total_clientes == 2
    assert resumo.orcamentos_por_cliente == "1.5"
    assert [c.id for c in resumo.ultimos_clientes] == [2, 1]

    assert resumir(ORCAMENTOS, FiltroDashboard()).orcamentos_por_cliente == "0.0"


def test_periodo_padrao_e_o_mes_corrente():
    assert periodo_mes_atual(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    filtro = FiltroDashboard.padrao(date(2023, 12, 31))
    assert (filtro.cliente, filtro.inicio, filtro.fim) == (TODOS, date(2023, 12, 1), date(2023, 12, 31))
