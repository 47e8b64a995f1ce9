# orcamentos/db.py
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional

from loguru import logger
from sqlalchemy import event, func
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine, select

from .backend import Backend
from .calculo import quantizar
from .errors import ErroBackend, NaoEncontrado
from .models import (
    Cliente,
    InformacoesEmpresa,
    ItemLeitura,
    ItemOrcamento,
    Orcamento,
    OrcamentoLeitura,
    StatusOrcamento,
)
from .validacao import ClienteEntrada, EmpresaEntrada, OrcamentoEntrada


def _agora() -> datetime:
    return datetime.now(timezone.utc)


_PRAGMAS_SQLITE = ("foreign_keys = ON", "journal_mode = WAL", "synchronous = NORMAL")


def _pragmas_sqlite(conexao, _registro):
    cursor = conexao.cursor()
    try:
        for pragma in _PRAGMAS_SQLITE:
            cursor.execute(f"PRAGMA {pragma}")
    finally:
        cursor.close()


def _make_engine(url: str) -> Engine:
    is_sqlite = make_url(url).get_backend_name() == "sqlite"
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
        pool_pre_ping=True,
    )
    if is_sqlite:
        # sem isso o SQLite ignora FKs (e o ON DELETE CASCADE dos itens)
        event.listen(engine, "connect", _pragmas_sqlite)
    return engine


def url_com_senha(url: str, senha: Optional[str]) -> str:
    """Usa a chave de acesso como senha quando a URL do banco não traz uma."""
    u = make_url(url)
    if senha and u.get_backend_name() != "sqlite" and not u.password:
        u = u.set(password=senha)
    return u.render_as_string(hide_password=False)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


class SqlBackend(Backend):
    """
    Backend relacional acessado direto via SQLAlchemy (SQLite local, Postgres...).
    Orçamento + itens são gravados numa única transação e o valor_total é
    recalculado dentro dela, com a mesma fórmula do trigger do banco hospedado.
    """

    def __init__(self, url: str, senha: Optional[str] = None):
        try:
            self.engine = _make_engine(url_com_senha(url, senha))
            init_db(self.engine)
        except SQLAlchemyError as e:
            raise ErroBackend(f"Não foi possível abrir o banco: {e.__class__.__name__}") from e
        except ImportError as e:
            # create_engine importa o driver do dialeto (psycopg, pymysql...)
            raise ErroBackend(f"Driver do banco não instalado: {e}") from e

    @contextmanager
    def _sessao(self) -> Iterator[Session]:
        try:
            with Session(self.engine) as s:
                yield s
        except SQLAlchemyError as e:
            logger.warning("Falha no banco: {}", e)
            raise ErroBackend(f"Erro no banco de dados: {e.__class__.__name__}") from e

    def fechar(self) -> None:
        self.engine.dispose()

    def sondar(self) -> None:
        with self._sessao() as s:
            s.exec(select(Orcamento.id).limit(1)).all()

    # ---------- clientes ----------
    def listar_clientes(self) -> List[Cliente]:
        with self._sessao() as s:
            return list(s.exec(select(Cliente).order_by(Cliente.nome)).all())

    def obter_cliente(self, cliente_id: int) -> Optional[Cliente]:
        with self._sessao() as s:
            return s.get(Cliente, cliente_id)

    def inserir_cliente(self, dados: ClienteEntrada) -> Cliente:
        with self._sessao() as s:
            cliente = Cliente(**dados.model_dump())
            s.add(cliente)
            s.commit()
            s.refresh(cliente)
            return cliente

    def atualizar_cliente(self, cliente_id: int, dados: ClienteEntrada) -> Cliente:
        with self._sessao() as s:
            cliente = s.get(Cliente, cliente_id)
            if cliente is None:
                raise NaoEncontrado("Cliente não encontrado.")
            for campo, valor in dados.model_dump().items():
                setattr(cliente, campo, valor)
            cliente.updated_at = _agora()
            s.add(cliente)
            s.commit()
            s.refresh(cliente)
            return cliente

    def excluir_cliente(self, cliente_id: int) -> None:
        with self._sessao() as s:
            cliente = s.get(Cliente, cliente_id)
            if cliente is None:
                raise NaoEncontrado("Cliente não encontrado.")
            s.delete(cliente)
            s.commit()

    # ---------- empresa ----------
    def obter_empresa(self) -> Optional[InformacoesEmpresa]:
        with self._sessao() as s:
            return s.exec(select(InformacoesEmpresa).order_by(InformacoesEmpresa.id)).first()

    def salvar_empresa(self, dados: EmpresaEntrada) -> InformacoesEmpresa:
        with self._sessao() as s:
            empresa = s.exec(select(InformacoesEmpresa).order_by(InformacoesEmpresa.id)).first()
            if empresa is None:
                empresa = InformacoesEmpresa(**dados.model_dump())
            else:
                for campo, valor in dados.model_dump().items():
                    setattr(empresa, campo, valor)
                empresa.updated_at = _agora()
            s.add(empresa)
            s.commit()
            s.refresh(empresa)
            return empresa

    # ---------- orçamentos ----------
    @staticmethod
    def _leitura(orc: Orcamento, itens: List[ItemOrcamento]) -> OrcamentoLeitura:
        dados = orc.model_dump()
        dados["itens"] = [ItemLeitura.model_validate(i.model_dump()) for i in itens]
        return OrcamentoLeitura.model_validate(dados)

    @staticmethod
    def _itens_de(s: Session, orcamento_id: int) -> List[ItemOrcamento]:
        stmt = (
            select(ItemOrcamento)
            .where(ItemOrcamento.orcamento_id == orcamento_id)
            .order_by(ItemOrcamento.id)
        )
        return list(s.exec(stmt).all())

    @staticmethod
    def _recalcular_total(s: Session, orc: Orcamento) -> None:
        # mesma fórmula do trigger: SUM(quantidade * valor_unitario)
        soma = s.exec(
            select(
                func.coalesce(func.sum(ItemOrcamento.quantidade * ItemOrcamento.valor_unitario), 0)
            ).where(ItemOrcamento.orcamento_id == orc.id)
        ).one()
        orc.valor_total = quantizar(soma)
        s.add(orc)

    @staticmethod
    def _gravar_itens(s: Session, orc: Orcamento, dados: OrcamentoEntrada) -> None:
        for item in dados.itens:
            s.add(ItemOrcamento(orcamento_id=orc.id, **item.model_dump()))
        s.flush()

    def listar_orcamentos(self) -> List[OrcamentoLeitura]:
        with self._sessao() as s:
            orcamentos = s.exec(
                select(Orcamento).order_by(Orcamento.created_at.desc(), Orcamento.id.desc())
            ).all()
            por_orcamento: Dict[int, List[ItemOrcamento]] = {}
            if orcamentos:
                ids = [o.id for o in orcamentos]
                stmt = (
                    select(ItemOrcamento)
                    .where(ItemOrcamento.orcamento_id.in_(ids))
                    .order_by(ItemOrcamento.id)
                )
                for item in s.exec(stmt).all():
                    por_orcamento.setdefault(item.orcamento_id, []).append(item)
            return [self._leitura(o, por_orcamento.get(o.id, [])) for o in orcamentos]

    def obter_orcamento(self, orcamento_id: int) -> Optional[OrcamentoLeitura]:
        with self._sessao() as s:
            orc = s.get(Orcamento, orcamento_id)
            if orc is None:
                return None
            return self._leitura(orc, self._itens_de(s, orcamento_id))

    def criar_orcamento(self, dados: OrcamentoEntrada) -> OrcamentoLeitura:
        with self._sessao() as s:
            orc = Orcamento(
                cliente_id=dados.cliente_id,
                data=dados.data,
                status=dados.status,
                observacoes=dados.observacoes,
            )
            s.add(orc)
            s.flush()  # libera orc.id
            self._gravar_itens(s, orc, dados)
            self._recalcular_total(s, orc)
            s.commit()
            s.refresh(orc)
            logger.info("Orçamento {} criado com {} itens", orc.id, len(dados.itens))
            return self._leitura(orc, self._itens_de(s, orc.id))

    def atualizar_orcamento(self, orcamento_id: int, dados: OrcamentoEntrada) -> OrcamentoLeitura:
        with self._sessao() as s:
            orc = s.get(Orcamento, orcamento_id)
            if orc is None:
                raise NaoEncontrado("Orçamento não encontrado.")
            orc.cliente_id = dados.cliente_id
            orc.data = dados.data
            orc.status = dados.status
            orc.observacoes = dados.observacoes
            orc.updated_at = _agora()
            for item in self._itens_de(s, orcamento_id):
                s.delete(item)
            s.flush()
            self._gravar_itens(s, orc, dados)
            self._recalcular_total(s, orc)
            s.commit()
            s.refresh(orc)
            logger.info("Orçamento {} atualizado ({} itens)", orcamento_id, len(dados.itens))
            return self._leitura(orc, self._itens_de(s, orcamento_id))

    def atualizar_status(self, orcamento_id: int, status: StatusOrcamento) -> None:
        with self._sessao() as s:
            orc = s.get(Orcamento, orcamento_id)
            if orc is None:
                raise NaoEncontrado("Orçamento não encontrado.")
            orc.status = StatusOrcamento(status)
            orc.updated_at = _agora()
            s.add(orc)
            s.commit()

    def excluir_orcamento(self, orcamento_id: int) -> None:
        with self._sessao() as s:
            orc = s.get(Orcamento, orcamento_id)
            if orc is None:
                raise NaoEncontrado("Orçamento não encontrado.")
            for item in self._itens_de(s, orcamento_id):
                s.delete(item)
            s.delete(orc)
            s.commit()


# -----------------------------------------------------------------------------
# DDL para preparar um banco Postgres hospedado (ex.: Supabase)
# -----------------------------------------------------------------------------
SCHEMA_POSTGRES = """\
CREATE EXTENSION IF NOT EXISTS moddatetime SCHEMA public;

CREATE TABLE informacoes_empresa (
  id SERIAL PRIMARY KEY,
  nome_empresa TEXT NOT NULL,
  tipo_documento TEXT NOT NULL CHECK (tipo_documento IN ('cpf', 'cnpj')),
  documento TEXT NOT NULL,
  endereco TEXT NOT NULL,
  telefone TEXT NOT NULL,
  email TEXT NOT NULL,
  logo_url TEXT,
  assinatura_url TEXT,
  observacoes_padrao TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL,
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL
);

CREATE TABLE clientes (
  id SERIAL PRIMARY KEY,
  nome TEXT NOT NULL,
  tipo_documento TEXT NOT NULL CHECK (tipo_documento IN ('cpf', 'cnpj')),
  documento TEXT NOT NULL,
  email TEXT NOT NULL,
  telefone TEXT NOT NULL,
  endereco TEXT NOT NULL,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL,
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL
);

CREATE TABLE orcamentos (
  id SERIAL PRIMARY KEY,
  cliente_id INTEGER NOT NULL REFERENCES clientes(id),
  data DATE NOT NULL,
  valor_total DECIMAL(10,2) NOT NULL DEFAULT 0,
  status TEXT NOT NULL DEFAULT 'pendente' CHECK (status IN ('pendente', 'aprovado', 'rejeitado')),
  observacoes TEXT,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL,
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL
);

CREATE TABLE itens_orcamento (
  id SERIAL PRIMARY KEY,
  orcamento_id INTEGER NOT NULL REFERENCES orcamentos(id) ON DELETE CASCADE,
  descricao TEXT NOT NULL,
  quantidade INTEGER NOT NULL,
  valor_unitario DECIMAL(10,2) NOT NULL,
  created_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL,
  updated_at TIMESTAMP WITH TIME ZONE DEFAULT TIMEZONE('utc'::text, NOW()) NOT NULL
);

CREATE TRIGGER set_updated_at BEFORE UPDATE ON informacoes_empresa
  FOR EACH ROW EXECUTE FUNCTION moddatetime (updated_at);
CREATE TRIGGER set_updated_at BEFORE UPDATE ON clientes
  FOR EACH ROW EXECUTE FUNCTION moddatetime (updated_at);
CREATE TRIGGER set_updated_at BEFORE UPDATE ON orcamentos
  FOR EACH ROW EXECUTE FUNCTION moddatetime (updated_at);
CREATE TRIGGER set_updated_at BEFORE UPDATE ON itens_orcamento
  FOR EACH ROW EXECUTE FUNCTION moddatetime (updated_at);

-- valor_total = SUM(quantidade * valor_unitario) dos itens do orçamento
CREATE OR REPLACE FUNCTION calcular_valor_total()
RETURNS TRIGGER AS $$
DECLARE
  alvo INTEGER := COALESCE(NEW.orcamento_id, OLD.orcamento_id);
BEGIN
  UPDATE orcamentos
  SET valor_total = (
    SELECT COALESCE(SUM(quantidade * valor_unitario), 0)
    FROM itens_orcamento
    WHERE orcamento_id = alvo
  )
  WHERE id = alvo;
  RETURN NULL;
END;
$$ LANGUAGE plpgsql;

CREATE TRIGGER atualizar_valor_total
  AFTER INSERT OR UPDATE OR DELETE ON itens_orcamento
  FOR EACH ROW EXECUTE FUNCTION calcular_valor_total();
"""
