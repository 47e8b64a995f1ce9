# orcamentos/documento.py
from __future__ import annotations

"""
Orçamento para impressão.

montar_documento() só mapeia (orçamento, cliente, empresa) para a descrição do
documento: mesma entrada, mesma saída. renderizar_pdf() faz o layout com o
reportlab (A4, várias páginas, cabeçalho da tabela repetido).
"""

import html
import io
from typing import Callable, List, Optional, Tuple

import httpx
from loguru import logger
from pydantic import BaseModel
from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    Image,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from .calculo import subtotal_item
from .config import HTTP_TIMEOUT
from .models import Cliente, InformacoesEmpresa, OrcamentoLeitura, StatusOrcamento, TipoDocumento
from .status import CORES_STATUS
from .utils import formatar_data, formatar_documento, formatar_moeda, numero_orcamento


class BlocoIdentidade(BaseModel):
    titulo: str
    campos: List[Tuple[str, str]]


class LinhaItem(BaseModel):
    descricao: str
    quantidade: int
    valor_unitario: str
    subtotal: str


class Assinatura(BaseModel):
    imagem_url: str
    nome: str
    documento: str


class DocumentoOrcamento(BaseModel):
    numero: str
    titulo: str
    logo_url: Optional[str] = None
    data: str
    status: StatusOrcamento
    status_fundo: str
    status_texto: str
    empresa: BlocoIdentidade
    cliente: BlocoIdentidade
    itens: List[LinhaItem]
    observacoes: List[str]
    total: str
    assinatura: Optional[Assinatura] = None


def _identidade(titulo: str, nome: str, tipo, documento: str, email: str, telefone: str, endereco: str):
    return BlocoIdentidade(
        titulo=titulo,
        campos=[
            ("Nome", nome),
            (TipoDocumento(tipo).rotulo, formatar_documento(tipo, documento)),
            ("Email", email),
            ("Telefone", telefone),
            ("Endereço", endereco),
        ],
    )


def montar_documento(
    orcamento: OrcamentoLeitura, cliente: Cliente, empresa: InformacoesEmpresa
) -> DocumentoOrcamento:
    status = StatusOrcamento(orcamento.status)
    fundo, texto = CORES_STATUS[status]
    numero = numero_orcamento(orcamento.id)

    observacoes = [
        obs.strip()
        for obs in (orcamento.observacoes, empresa.observacoes_padrao)
        if obs and obs.strip()
    ]

    assinatura = None
    if empresa.assinatura_url:
        assinatura = Assinatura(
            imagem_url=empresa.assinatura_url,
            nome=empresa.nome_empresa,
            documento=f"{TipoDocumento(empresa.tipo_documento).rotulo}: "
            f"{formatar_documento(empresa.tipo_documento, empresa.documento)}",
        )

    return DocumentoOrcamento(
        numero=numero,
        titulo=f"ORÇAMENTO #{numero}",
        logo_url=empresa.logo_url or None,
        data=formatar_data(orcamento.data),
        status=status,
        status_fundo=fundo,
        status_texto=texto,
        empresa=_identidade(
            "EMPRESA", empresa.nome_empresa, empresa.tipo_documento, empresa.documento,
            empresa.email, empresa.telefone, empresa.endereco,
        ),
        cliente=_identidade(
            "CLIENTE", cliente.nome, cliente.tipo_documento, cliente.documento,
            cliente.email, cliente.telefone, cliente.endereco,
        ),
        itens=[
            LinhaItem(
                descricao=item.descricao,
                quantidade=item.quantidade,
                valor_unitario=formatar_moeda(item.valor_unitario),
                subtotal=formatar_moeda(subtotal_item(item)),
            )
            for item in orcamento.itens
        ],
        observacoes=observacoes,
        total=formatar_moeda(orcamento.valor_total),
        assinatura=assinatura,
    )


# ---------- PDF ----------

CarregarImagem = Callable[[str], bytes]

_AZUL = colors.HexColor("#2C5282")
_CINZA = colors.HexColor("#4A5568")
_BORDA = colors.HexColor("#CBD5E0")
_FUNDO_CABECALHO = colors.HexColor("#EDF2F7")


def _baixar_imagem(url: str) -> bytes:
    r = httpx.get(url, timeout=HTTP_TIMEOUT, follow_redirects=True)
    r.raise_for_status()
    return r.content


def _imagem(url: Optional[str], carregar: CarregarImagem, largura: float, altura: float):
    if not url:
        return None
    try:
        conteudo = carregar(url)
        w, h = ImageReader(io.BytesIO(conteudo)).getSize()
    except (httpx.HTTPError, OSError, ValueError) as e:
        logger.warning("Imagem ignorada ({}): {}", url, e)
        return None
    escala = min(largura / float(w), altura / float(h))
    return Image(io.BytesIO(conteudo), width=w * escala, height=h * escala)


def _p(texto: str, estilo: ParagraphStyle) -> Paragraph:
    return Paragraph(html.escape(texto).replace("\n", "<br/>"), estilo)


def renderizar_pdf(documento: DocumentoOrcamento, carregar_imagem: Optional[CarregarImagem] = None) -> bytes:
    carregar = carregar_imagem or _baixar_imagem
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=documento.titulo,
        invariant=1,  # sem data de criação/ids aleatórios: PDF reprodutível
    )
    styles = getSampleStyleSheet()
    normal = styles["BodyText"].clone("Orc", fontSize=9, leading=12)
    rotulo = normal.clone("OrcRotulo", textColor=_CINZA, fontSize=8)
    secao = styles["Heading4"].clone("OrcSecao", textColor=_AZUL, spaceBefore=6, spaceAfter=4)
    titulo = styles["Title"].clone("OrcTitulo", textColor=_AZUL, alignment=TA_RIGHT)
    direita = normal.clone("OrcDireita", alignment=TA_RIGHT)
    total_estilo = styles["Heading3"].clone("OrcTotal", alignment=TA_RIGHT)

    elementos: list = []

    # Cabeçalho: logo (opcional) + título
    logo = _imagem(documento.logo_url, carregar, 45 * mm, 22 * mm)
    cabecalho = Table([[logo or "", _p(documento.titulo, titulo)]], colWidths=[60 * mm, None])
    cabecalho.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "MIDDLE")]))
    elementos.append(cabecalho)

    # Data e status
    badge = Table(
        [[_p(documento.status.value.upper(), normal.clone("OrcStatus", textColor=colors.HexColor(documento.status_texto)))]],
        style=TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor(documento.status_fundo)),
            ("LEFTPADDING", (0, 0), (-1, -1), 6),
            ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ]),
        hAlign="LEFT",
    )
    meta = Table(
        [[_p("Data", rotulo), _p("Status", rotulo)], [_p(documento.data, normal), badge]],
        hAlign="LEFT",
    )
    elementos += [Spacer(1, 4 * mm), meta]

    # Empresa e cliente
    for bloco in (documento.empresa, documento.cliente):
        linhas = [[_p(nome, rotulo), _p(valor or "", normal)] for nome, valor in bloco.campos]
        tabela = Table(linhas, colWidths=[28 * mm, None], hAlign="LEFT")
        tabela.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
        elementos += [_p(bloco.titulo, secao), tabela]

    # Itens
    dados = [["Descrição", "Qtd.", "Valor Unit.", "Subtotal"]]
    for item in documento.itens:
        dados.append([
            _p(item.descricao, normal),
            str(item.quantidade),
            item.valor_unitario,
            item.subtotal,
        ])
    itens = Table(dados, colWidths=[None, 18 * mm, 32 * mm, 32 * mm], repeatRows=1)
    itens.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), _FUNDO_CABECALHO),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("LINEBELOW", (0, 0), (-1, -1), 0.5, _BORDA),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    elementos += [Spacer(1, 6 * mm), itens, Spacer(1, 6 * mm)]

    # Observações (seção só aparece se houver alguma)
    if documento.observacoes:
        elementos.append(_p("OBSERVAÇÃO", secao))
        elementos += [_p(obs, normal) for obs in documento.observacoes]

    elementos.append(_p(f"Total: {documento.total}", total_estilo))

    if documento.assinatura:
        assinatura = documento.assinatura
        imagem = _imagem(assinatura.imagem_url, carregar, 60 * mm, 25 * mm)
        bloco = [[imagem or ""], [_p(assinatura.nome, direita)], [_p(assinatura.documento, direita)]]
        tabela = Table(bloco, colWidths=[70 * mm], hAlign="RIGHT")
        tabela.setStyle(TableStyle([
            ("LINEABOVE", (0, 1), (0, 1), 0.7, colors.black),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ]))
        elementos += [Spacer(1, 12 * mm), tabela]

    doc.build(elementos)
    return buffer.getvalue()
