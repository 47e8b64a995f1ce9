# orcamentos/models.py
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlmodel import Field, SQLModel


def _agora() -> datetime:
    return datetime.now(timezone.utc)


class TipoDocumento(str, Enum):
    cpf = "cpf"
    cnpj = "cnpj"

    @property
    def digitos(self) -> int:
        return 11 if self is TipoDocumento.cpf else 14

    @property
    def rotulo(self) -> str:
        return self.value.upper()


class StatusOrcamento(str, Enum):
    pendente = "pendente"
    aprovado = "aprovado"
    rejeitado = "rejeitado"


# ---------- Tabelas (espelham o schema do backend) ----------

class InformacoesEmpresa(SQLModel, table=True):
    __tablename__ = "informacoes_empresa"

    id: Optional[int] = Field(default=None, primary_key=True)
    nome_empresa: str
    tipo_documento: TipoDocumento
    documento: str
    endereco: str
    telefone: str
    email: str
    logo_url: Optional[str] = None
    assinatura_url: Optional[str] = None
    observacoes_padrao: Optional[str] = None
    created_at: Optional[datetime] = Field(default_factory=_agora)
    updated_at: Optional[datetime] = Field(default_factory=_agora)


class Cliente(SQLModel, table=True):
    __tablename__ = "clientes"

    id: Optional[int] = Field(default=None, primary_key=True)
    nome: str
    tipo_documento: TipoDocumento
    documento: str
    email: str
    telefone: str
    endereco: str
    created_at: Optional[datetime] = Field(default_factory=_agora)
    updated_at: Optional[datetime] = Field(default_factory=_agora)


class Orcamento(SQLModel, table=True):
    __tablename__ = "orcamentos"

    id: Optional[int] = Field(default=None, primary_key=True)
    cliente_id: int = Field(foreign_key="clientes.id")
    data: date
    valor_total: Decimal = Field(default=Decimal("0.00"), max_digits=10, decimal_places=2)
    status: StatusOrcamento = StatusOrcamento.pendente
    observacoes: Optional[str] = None
    created_at: Optional[datetime] = Field(default_factory=_agora)
    updated_at: Optional[datetime] = Field(default_factory=_agora)


class ItemOrcamento(SQLModel, table=True):
    __tablename__ = "itens_orcamento"

    id: Optional[int] = Field(default=None, primary_key=True)
    orcamento_id: int = Field(foreign_key="orcamentos.id", ondelete="CASCADE")
    descricao: str
    quantidade: int
    valor_unitario: Decimal = Field(max_digits=10, decimal_places=2)
    created_at: Optional[datetime] = Field(default_factory=_agora)
    updated_at: Optional[datetime] = Field(default_factory=_agora)


# ---------- Leitura (orçamento com itens, como o backend devolve) ----------

class ItemLeitura(SQLModel):
    id: Optional[int] = None
    orcamento_id: Optional[int] = None
    descricao: str
    quantidade: int
    valor_unitario: Decimal
    created_at: Optional[datetime] = None

    @property
    def subtotal(self) -> Decimal:
        return self.quantidade * self.valor_unitario


class OrcamentoLeitura(SQLModel):
    id: int
    cliente_id: int
    data: date
    valor_total: Decimal = Decimal("0.00")
    status: StatusOrcamento = StatusOrcamento.pendente
    observacoes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    itens: List[ItemLeitura] = Field(default_factory=list)


TABELAS = ("informacoes_empresa", "clientes", "orcamentos", "itens_orcamento")
