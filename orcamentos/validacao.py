# orcamentos/validacao.py
from __future__ import annotations

"""
Validação dos formulários, independente da API.

Cada tipo de registro tem um modelo de entrada (pydantic) e duas funções:
- validar_<tipo>(dados)    -> lista de ErroCampo (vazia se estiver tudo certo)
- normalizar_<tipo>(dados) -> modelo normalizado, ou levanta ErroValidacao

Nada aqui toca o backend: erros de validação nunca viram chamada de rede.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Type, TypeVar, Union

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    BaseModel,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from .errors import ErroCampo, ErroValidacao
from .models import StatusOrcamento, TipoDocumento

_NAO_DIGITO = re.compile(r"\D")
_URL = TypeAdapter(HttpUrl)
# limite da coluna INTEGER de itens_orcamento.quantidade
INTEIRO_MAX = 2_147_483_647

# mensagens para erros gerados pelo próprio pydantic (tipo/ausência)
_OBRIGATORIO = {
    "nome": "Nome é obrigatório",
    "nome_empresa": "Nome é obrigatório",
    "tipo_documento": "Tipo de documento é obrigatório",
    "documento": "Documento é obrigatório",
    "email": "Email é obrigatório",
    "telefone": "Telefone é obrigatório",
    "endereco": "Endereço é obrigatório",
    "cliente_id": "Cliente é obrigatório",
    "data": "Data é obrigatória",
    "descricao": "Descrição é obrigatória",
    "quantidade": "Quantidade é obrigatória",
    "valor_unitario": "Valor unitário é obrigatório",
    "url": "URL é obrigatória",
    "chave": "Chave de acesso é obrigatória",
}
_INVALIDO = {
    "tipo_documento": "Selecione o tipo de documento",
    "cliente_id": "Cliente inválido",
    "data": "Data inválida",
    "status": "Status inválido",
    "quantidade": "Quantidade deve ser um número inteiro",
    "valor_unitario": "Valor unitário inválido",
}


def apenas_digitos(valor: str) -> str:
    return _NAO_DIGITO.sub("", valor or "")


def parse_moeda(valor: Union[str, int, float, Decimal]) -> Decimal:
    """
    Converte o valor digitado no campo de moeda.
    Strings seguem a máscara do formulário: só os dígitos contam e representam
    centavos ("1.234,56" -> 1234.56, "R$ 5,50" -> 5.50). Números passam direto.
    """
    if isinstance(valor, bool):
        raise ValueError("Valor unitário inválido")
    if isinstance(valor, (int, float, Decimal)):
        return Decimal(str(valor))
    digitos = apenas_digitos(str(valor))
    if not digitos:
        return Decimal("0.00")
    return (Decimal(digitos) / 100).quantize(Decimal("0.01"))


def _texto_obrigatorio(valor: Any, mensagem: str) -> str:
    texto = "" if valor is None else str(valor).strip()
    if not texto:
        raise ValueError(mensagem)
    return texto


def _email(valor: Any) -> str:
    texto = _texto_obrigatorio(valor, "Email é obrigatório")
    try:
        return validate_email(texto, check_deliverability=False).normalized
    except EmailNotValidError:
        raise ValueError("Email inválido")


def _url_opcional(valor: Any) -> Optional[str]:
    if valor is None or not str(valor).strip():
        return None
    texto = str(valor).strip()
    try:
        _URL.validate_python(texto)
    except ValidationError:
        raise ValueError("URL inválida")
    return texto


def _documento(valor: Any, dados: Mapping[str, Any]) -> str:
    texto = _texto_obrigatorio(valor, "Documento é obrigatório")
    tipo = dados.get("tipo_documento")
    if tipo is None:
        # tipo inválido já foi reportado no próprio campo
        return texto
    numeros = apenas_digitos(texto)
    if len(numeros) != TipoDocumento(tipo).digitos:
        raise ValueError("Documento inválido")
    return numeros


# ---------- Modelos de entrada ----------

class ClienteEntrada(BaseModel):
    nome: str
    tipo_documento: TipoDocumento
    documento: str
    email: str
    telefone: str
    endereco: str

    @field_validator("nome", "telefone", "endereco", mode="before")
    @classmethod
    def _obrigatorios(cls, v, info):
        return _texto_obrigatorio(v, _OBRIGATORIO[info.field_name])

    @field_validator("documento", mode="before")
    @classmethod
    def _documento_valido(cls, v, info):
        return _documento(v, info.data)

    @field_validator("email", mode="before")
    @classmethod
    def _email_valido(cls, v):
        return _email(v)


class EmpresaEntrada(BaseModel):
    nome_empresa: str
    tipo_documento: TipoDocumento
    documento: str
    endereco: str
    telefone: str
    email: str
    logo_url: Optional[str] = None
    assinatura_url: Optional[str] = None
    observacoes_padrao: Optional[str] = None

    @field_validator("nome_empresa", "telefone", "endereco", mode="before")
    @classmethod
    def _obrigatorios(cls, v, info):
        return _texto_obrigatorio(v, _OBRIGATORIO[info.field_name])

    @field_validator("documento", mode="before")
    @classmethod
    def _documento_valido(cls, v, info):
        return _documento(v, info.data)

    @field_validator("email", mode="before")
    @classmethod
    def _email_valido(cls, v):
        return _email(v)

    @field_validator("logo_url", "assinatura_url", mode="before")
    @classmethod
    def _urls(cls, v):
        return _url_opcional(v)

    @field_validator("observacoes_padrao", mode="before")
    @classmethod
    def _observacoes(cls, v):
        return (v or "").strip() or None


class ItemEntrada(BaseModel):
    descricao: str
    quantidade: int
    valor_unitario: Decimal

    @field_validator("descricao", mode="before")
    @classmethod
    def _descricao(cls, v):
        return _texto_obrigatorio(v, "Descrição é obrigatória")

    @field_validator("quantidade")
    @classmethod
    def _quantidade(cls, v):
        if v <= 0:
            raise ValueError("Quantidade deve ser maior que zero")
        if v > INTEIRO_MAX:
            raise ValueError("Quantidade muito grande")
        return v

    @field_validator("valor_unitario", mode="before")
    @classmethod
    def _valor(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Valor unitário é obrigatório")
        try:
            valor = parse_moeda(v)
        except InvalidOperation:
            raise ValueError("Valor unitário inválido")
        if not valor.is_finite():
            raise ValueError("Valor unitário inválido")
        if valor < 0:
            raise ValueError("Valor unitário não pode ser negativo")
        if valor.as_tuple().exponent < -2 and valor != valor.quantize(Decimal("0.01")):
            raise ValueError("Valor unitário deve ter no máximo 2 casas decimais")
        return valor.quantize(Decimal("0.01"))


class OrcamentoEntrada(BaseModel):
    cliente_id: int
    data: date
    status: StatusOrcamento = StatusOrcamento.pendente
    observacoes: Optional[str] = None
    itens: List[ItemEntrada] = []

    @field_validator("status", mode="before")
    @classmethod
    def _status_padrao(cls, v):
        return v or StatusOrcamento.pendente

    @field_validator("observacoes", mode="before")
    @classmethod
    def _observacoes(cls, v):
        return (v or "").strip() or None

    @field_validator("itens", mode="before")
    @classmethod
    def _itens(cls, v):
        return v or []


class CredenciaisEntrada(BaseModel):
    url: str
    chave: str

    @field_validator("url", mode="before")
    @classmethod
    def _url(cls, v):
        texto = _texto_obrigatorio(v, "URL é obrigatória")
        if "://" not in texto:
            raise ValueError("URL inválida")
        if texto.startswith(("http://", "https://")):
            try:
                _URL.validate_python(texto)
            except ValidationError:
                raise ValueError("URL inválida")
        return texto.rstrip("/")

    @field_validator("chave", mode="before")
    @classmethod
    def _chave(cls, v):
        return _texto_obrigatorio(v, "Chave de acesso é obrigatória")


# ---------- Conversão de erros do pydantic para erros de campo ----------

def _nome_campo(loc: tuple) -> str:
    partes = [str(p) for p in loc if p != "__root__"]
    return ".".join(partes) or "__all__"


def _mensagem(err: Mapping[str, Any]) -> str:
    campo = str(err["loc"][-1]) if err["loc"] else ""
    if err["type"] == "missing":
        return _OBRIGATORIO.get(campo, "Campo obrigatório")
    if err["type"] == "value_error":
        return str(err["ctx"]["error"])
    return _INVALIDO.get(campo, "Valor inválido")


def erros_de(exc: ValidationError) -> List[ErroCampo]:
    return [ErroCampo(campo=_nome_campo(e["loc"]), mensagem=_mensagem(e)) for e in exc.errors()]


M = TypeVar("M", bound=BaseModel)


def _normalizar(modelo: Type[M], dados: Union[Mapping[str, Any], BaseModel]) -> M:
    if isinstance(dados, BaseModel):
        dados = dados.model_dump()
    try:
        return modelo.model_validate(dados)
    except ValidationError as exc:
        raise ErroValidacao(erros_de(exc))


def _validar(modelo: Type[BaseModel], dados) -> List[ErroCampo]:
    try:
        _normalizar(modelo, dados)
    except ErroValidacao as exc:
        return exc.erros
    return []


def normalizar_cliente(dados) -> ClienteEntrada:
    return _normalizar(ClienteEntrada, dados)


def normalizar_empresa(dados) -> EmpresaEntrada:
    return _normalizar(EmpresaEntrada, dados)


def normalizar_orcamento(dados) -> OrcamentoEntrada:
    return _normalizar(OrcamentoEntrada, dados)


def normalizar_credenciais(dados) -> CredenciaisEntrada:
    return _normalizar(CredenciaisEntrada, dados)


def validar_cliente(dados) -> List[ErroCampo]:
    return _validar(ClienteEntrada, dados)


def validar_empresa(dados) -> List[ErroCampo]:
    return _validar(EmpresaEntrada, dados)


def validar_orcamento(dados) -> List[ErroCampo]:
    return _validar(OrcamentoEntrada, dados)


def validar_credenciais(dados) -> List[ErroCampo]:
    return _validar(CredenciaisEntrada, dados)
