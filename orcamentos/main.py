# orcamentos/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from loguru import logger

from . import servicos
from .backend import Backend
from .config import LOG_LEVEL, JsonFileConfigStore
from .contexto import ContextoApp
from .dashboard import TODOS, FiltroDashboard
from .db import SCHEMA_POSTGRES
from .documento import CarregarImagem
from .errors import (
    ConfiguracaoAusente,
    EmpresaNaoConfigurada,
    ErroBackend,
    ErroOrcamentos,
    ErroValidacao,
    NaoEncontrado,
    TransicaoInvalida,
)
from .logging_config import setup_logging
from .models import StatusOrcamento
from .status import acoes_rapidas
from .utils import numero_orcamento, schema_markdown


# -----------------------------------------------------------------------------
# Dependências
# -----------------------------------------------------------------------------
def get_contexto(request: Request) -> ContextoApp:
    return request.app.state.contexto


def get_backend(contexto: ContextoApp = Depends(get_contexto)) -> Backend:
    # levanta ConfiguracaoAusente antes de qualquer chamada ao banco
    return contexto.backend()


# -----------------------------------------------------------------------------
# Tratamento de erros
# -----------------------------------------------------------------------------
_STATUS_HTTP = {
    ConfiguracaoAusente: 409,
    ErroValidacao: 422,
    NaoEncontrado: 404,
    TransicaoInvalida: 409,
    EmpresaNaoConfigurada: 409,
    ErroBackend: 502,
}


async def _erro_orcamentos(request: Request, exc: ErroOrcamentos) -> JSONResponse:
    status_code = next((c for t, c in _STATUS_HTTP.items() if isinstance(exc, t)), 500)
    content: Dict[str, Any] = {"detail": exc.mensagem}
    if isinstance(exc, ErroValidacao):
        content["erros"] = [e.model_dump() for e in exc.erros]
    if isinstance(exc, ConfiguracaoAusente):
        content["configurar"] = "/configuracoes"
    if status_code >= 500:
        logger.error("{} {} -> {}: {}", request.method, request.url.path, status_code, exc.mensagem)
    else:
        logger.info("{} {} -> {}: {}", request.method, request.url.path, status_code, exc.mensagem)
    return JSONResponse(status_code=status_code, content=content)


# -----------------------------------------------------------------------------
# App
# -----------------------------------------------------------------------------
def create_app(
    contexto: Optional[ContextoApp] = None,
    carregar_imagem: Optional[CarregarImagem] = None,
) -> FastAPI:
    setup_logging(LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.contexto.recriar()

    app = FastAPI(title="Orçamentos", version="1.0", lifespan=lifespan)
    app.state.contexto = contexto or ContextoApp(JsonFileConfigStore())
    app.state.carregar_imagem = carregar_imagem
    app.add_exception_handler(ErroOrcamentos, _erro_orcamentos)

    # ---------------- Saúde / configuração ----------------
    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/configuracoes")
    def ler_configuracoes(contexto: ContextoApp = Depends(get_contexto)) -> dict:
        cred = contexto.credenciais()
        return {
            "configurado": cred is not None,
            "url": cred.url if cred else None,
            "chave": cred.mascarada() if cred else None,
        }

    @app.put("/configuracoes")
    def salvar_configuracoes(
        payload: Dict[str, Any] = Body(...),
        contexto: ContextoApp = Depends(get_contexto),
    ) -> dict:
        status = contexto.salvar_credenciais(payload.get("url"), payload.get("chave"))
        return {"configurado": True, "status": status.value}

    @app.delete("/configuracoes")
    def desconectar(contexto: ContextoApp = Depends(get_contexto)) -> dict:
        contexto.desconectar()
        return {"configurado": False}

    @app.get("/configuracoes/schema")
    def schema() -> dict:
        return {"sql": SCHEMA_POSTGRES, "markdown": schema_markdown(SCHEMA_POSTGRES)}

    @app.get("/conexao")
    def conexao(forcar: bool = False, contexto: ContextoApp = Depends(get_contexto)) -> dict:
        return {"status": contexto.sonda.status(forcar=forcar).value, "configurado": contexto.configurado()}

    # ---------------- Clientes ----------------
    @app.get("/clientes")
    def listar_clientes(backend: Backend = Depends(get_backend)):
        return backend.listar_clientes()

    @app.post("/clientes", status_code=201)
    def criar_cliente(payload: Dict[str, Any] = Body(...), backend: Backend = Depends(get_backend)):
        return servicos.salvar_cliente(backend, payload)

    @app.get("/clientes/{cliente_id}")
    def obter_cliente(cliente_id: int, backend: Backend = Depends(get_backend)):
        cliente = backend.obter_cliente(cliente_id)
        if cliente is None:
            raise NaoEncontrado("Cliente não encontrado.")
        return cliente

    @app.put("/clientes/{cliente_id}")
    def atualizar_cliente(
        cliente_id: int, payload: Dict[str, Any] = Body(...), backend: Backend = Depends(get_backend)
    ):
        return servicos.salvar_cliente(backend, payload, cliente_id)

    @app.delete("/clientes/{cliente_id}", status_code=204)
    def excluir_cliente(cliente_id: int, backend: Backend = Depends(get_backend)) -> Response:
        backend.excluir_cliente(cliente_id)
        return Response(status_code=204)

    # ---------------- Empresa ----------------
    @app.get("/empresa")
    def obter_empresa(backend: Backend = Depends(get_backend)):
        # sem cadastro ainda -> null (estado normal)
        return backend.obter_empresa()

    @app.put("/empresa")
    def salvar_empresa(payload: Dict[str, Any] = Body(...), backend: Backend = Depends(get_backend)):
        return servicos.salvar_empresa(backend, payload)

    # ---------------- Orçamentos ----------------
    @app.get("/orcamentos")
    def listar_orcamentos(backend: Backend = Depends(get_backend)):
        return backend.listar_orcamentos()

    @app.post("/orcamentos", status_code=201)
    def criar_orcamento(payload: Dict[str, Any] = Body(...), backend: Backend = Depends(get_backend)):
        return servicos.salvar_orcamento(backend, payload)

    @app.get("/orcamentos/{orcamento_id}")
    def obter_orcamento(orcamento_id: int, backend: Backend = Depends(get_backend)):
        return servicos.obter_orcamento(backend, orcamento_id)

    @app.put("/orcamentos/{orcamento_id}")
    def atualizar_orcamento(
        orcamento_id: int, payload: Dict[str, Any] = Body(...), backend: Backend = Depends(get_backend)
    ):
        return servicos.salvar_orcamento(backend, payload, orcamento_id)

    @app.delete("/orcamentos/{orcamento_id}", status_code=204)
    def excluir_orcamento(orcamento_id: int, backend: Backend = Depends(get_backend)) -> Response:
        backend.excluir_orcamento(orcamento_id)
        return Response(status_code=204)

    @app.get("/orcamentos/{orcamento_id}/acoes")
    def acoes(orcamento_id: int, backend: Backend = Depends(get_backend)) -> dict:
        orcamento = servicos.obter_orcamento(backend, orcamento_id)
        return {
            "status": orcamento.status.value,
            "acoes": [s.value for s in acoes_rapidas(orcamento.status)],
        }

    @app.post("/orcamentos/{orcamento_id}/aprovar")
    def aprovar(orcamento_id: int, backend: Backend = Depends(get_backend)):
        orcamento = servicos.obter_orcamento(backend, orcamento_id)
        return servicos.aplicar_acao_rapida(backend, orcamento, StatusOrcamento.aprovado)

    @app.post("/orcamentos/{orcamento_id}/rejeitar")
    def rejeitar(orcamento_id: int, backend: Backend = Depends(get_backend)):
        orcamento = servicos.obter_orcamento(backend, orcamento_id)
        return servicos.aplicar_acao_rapida(backend, orcamento, StatusOrcamento.rejeitado)

    @app.get("/orcamentos/{orcamento_id}/documento")
    def documento(orcamento_id: int, backend: Backend = Depends(get_backend)):
        return servicos.montar_impressao(backend, orcamento_id)

    @app.get("/orcamentos/{orcamento_id}/pdf")
    def pdf(orcamento_id: int, request: Request, backend: Backend = Depends(get_backend)) -> Response:
        conteudo = servicos.gerar_pdf(backend, orcamento_id, request.app.state.carregar_imagem)
        nome = f"orcamento-{numero_orcamento(orcamento_id)}.pdf"
        return Response(
            content=conteudo,
            media_type="application/pdf",
            headers={"Content-Disposition": f'inline; filename="{nome}"'},
        )

    # ---------------- Dashboard ----------------
    @app.get("/dashboard")
    def dashboard(
        cliente: str = TODOS,
        inicio: Optional[date] = None,
        fim: Optional[date] = None,
        backend: Backend = Depends(get_backend),
    ):
        if inicio is None and fim is None:
            filtro = FiltroDashboard.padrao()  # mês corrente
            filtro.cliente = cliente
        else:
            filtro = FiltroDashboard(cliente=cliente, inicio=inicio, fim=fim)
        return servicos.carregar_dashboard(backend, filtro)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("orcamentos.main:app", host="127.0.0.1", port=8000)
