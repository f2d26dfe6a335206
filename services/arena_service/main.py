"""
Arena Service -- the backend of the prompt workbench.

Responsibilities:
1. Owns the single workbench Session (built in the lifespan, kept on app.state)
2. HTTP routes forward user intents: prompt, model, parameters, templates,
   submit / reset, copy and JSON export
3. WebSocket /ws -- pushes every notification and session.state event to
   the browser and accepts keyboard and prompt intents

Generation runs as a task on the service loop; the submit route answers
202 immediately and the result arrives over the WebSocket.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Literal, Union

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from services.arena_service.catalog import catalog_as_dicts
from services.arena_service.config import ArenaConfig
from services.arena_service.errors import (
    ArenaError,
    ExportFailed,
    TemplateNotFound,
    ValidationRejected,
)
from services.arena_service.session import SERVICE_NAME, Session
from services.arena_service.templates import TemplateStore
from services.arena_service.ws_manager import ConnectionManager
from shared.contracts.events import session_state
from shared.llm_adapter import create_llm_provider
from shared.logging.logger import setup_logging
from shared.observability.metrics import metrics_response

logger = logging.getLogger(SERVICE_NAME)


@asynccontextmanager
async def lifespan(application: FastAPI):
    cfg = ArenaConfig.from_env()
    log = setup_logging(SERVICE_NAME, cfg.log_level)

    provider = create_llm_provider(
        cfg.llm_provider,
        mock_latency_ms=cfg.mock_latency_ms,
        mock_failure_rate=cfg.mock_failure_rate,
    )
    templates = TemplateStore()
    if cfg.seed_templates:
        templates.seed()

    manager = ConnectionManager()
    session = Session(
        provider,
        default_model=cfg.default_model,
        templates=templates,
        sink=manager.publish,
    )

    application.state.cfg = cfg
    application.state.manager = manager
    application.state.session = session
    log.info(
        "Arena Service ready (provider=%s, model=%s, templates=%d)",
        cfg.llm_provider, cfg.default_model, len(templates),
    )
    yield

    log.info("Shutting down")
    await session.close()


app = FastAPI(
    title="Prompt Arena - Arena Service",
    version="0.1.0",
    description="Prompt workbench: parameters, templates, single in-flight generation, export",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(ArenaConfig.from_env().cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERROR_STATUS: dict[type[ArenaError], int] = {
    ValidationRejected: 422,
    TemplateNotFound: 404,
    ExportFailed: 409,
}


@app.exception_handler(ArenaError)
async def arena_error_handler(request: Request, exc: ArenaError) -> JSONResponse:
    status = next(
        (code for kind, code in _ERROR_STATUS.items() if isinstance(exc, kind)),
        400,
    )
    return JSONResponse(status_code=status, content={"detail": exc.message})


def get_session(request: Request) -> Session:
    return request.app.state.session


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class PromptBody(BaseModel):
    prompt: str


class ModelBody(BaseModel):
    model: str


class ParameterUpdate(BaseModel):
    field: str
    value: Union[float, str]
    control: Literal["value", "slider", "entry"] = "value"


class TemplateCreate(BaseModel):
    name: str
    body: str | None = None


class KeyEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key: str
    ctrl_key: bool = Field(default=False, alias="ctrlKey")
    meta_key: bool = Field(default=False, alias="metaKey")


class CopyResult(BaseModel):
    ok: bool


# ---------------------------------------------------------------------------
# Service endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
async def health(request: Request):
    session: Session = request.app.state.session
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "ws_connections": request.app.state.manager.connection_count,
        "submission": session.state.kind,
    }


@app.get("/metrics")
async def metrics():
    return metrics_response()


@app.get("/api/models")
async def list_models():
    return {"models": catalog_as_dicts()}


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@app.get("/api/session")
async def get_session_snapshot(session: Session = Depends(get_session)):
    return session.snapshot()


@app.put("/api/session/prompt")
async def set_prompt(body: PromptBody, session: Session = Depends(get_session)):
    session.set_prompt(body.prompt)
    return {"prompt": session.prompt, "characters": len(session.prompt)}


@app.put("/api/session/model")
async def set_model(body: ModelBody, session: Session = Depends(get_session)):
    session.set_model(body.model)
    return {"model": session.model_id}


@app.patch("/api/session/parameters")
async def update_parameter(body: ParameterUpdate, session: Session = Depends(get_session)):
    try:
        if body.control == "entry":
            updated = session.set_from_entry(body.field, str(body.value))
        elif body.control == "slider":
            updated = session.set_from_slider(body.field, _as_number(body.value))
        else:
            updated = session.set_parameter(body.field, _as_number(body.value))
    except KeyError as exc:
        raise HTTPException(status_code=422, detail=str(exc.args[0])) from exc
    return {
        "parameters": updated.model_dump(by_alias=True),
        "modified": session.parameters_modified,
    }


@app.post("/api/session/parameters/reset")
async def reset_parameters(session: Session = Depends(get_session)):
    updated = session.reset_parameters()
    return {"parameters": updated.model_dump(by_alias=True), "modified": False}


@app.post("/api/session/submit")
async def submit(session: Session = Depends(get_session)):
    task = session.submit()
    if task is None:
        return JSONResponse(
            status_code=409,
            content={"accepted": False, "detail": "A generation is already in progress"},
        )
    return JSONResponse(status_code=202, content={"accepted": True, "state": session.state.kind})


@app.post("/api/session/keydown")
async def keydown(body: KeyEvent, session: Session = Depends(get_session)):
    task = session.handle_key(body.key, ctrl=body.ctrl_key, meta=body.meta_key)
    return {"submitted": task is not None, "state": session.state.kind}


@app.post("/api/session/reset")
async def reset_session(session: Session = Depends(get_session)):
    session.reset()
    return session.snapshot()


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


@app.get("/api/templates")
async def list_templates(session: Session = Depends(get_session)):
    return {
        "templates": [
            t.model_dump(mode="json", by_alias=True) for t in session.templates.list()
        ]
    }


@app.post("/api/templates", status_code=201)
async def create_template(body: TemplateCreate, session: Session = Depends(get_session)):
    template = session.save_template(body.name, body.body)
    return template.model_dump(mode="json", by_alias=True)


@app.post("/api/templates/{template_id}/load")
async def load_template(template_id: str, session: Session = Depends(get_session)):
    session.load_template(template_id)
    return {"prompt": session.prompt}


@app.delete("/api/templates/{template_id}")
async def delete_template(template_id: str, session: Session = Depends(get_session)):
    return {"deleted": session.delete_template(template_id)}


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@app.post("/api/output/copy")
async def copy_output(session: Session = Depends(get_session)):
    """Hand the response text to the browser, which owns the clipboard."""
    return {"content": session.copy_text()}


@app.post("/api/output/copy/result")
async def copy_result(body: CopyResult, session: Session = Depends(get_session)):
    session.report_copy(body.ok)
    return {"ok": body.ok}


@app.get("/api/output/export")
async def export_output(session: Session = Depends(get_session)):
    filename, text = session.export_file()
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    manager: ConnectionManager = websocket.app.state.manager
    session: Session = websocket.app.state.session

    await manager.connect(websocket)
    try:
        await websocket.send_text(
            session_state(SERVICE_NAME, session.snapshot()).model_dump_json()
        )
        while True:
            message = await websocket.receive_json()
            _dispatch_intent(session, message)
    except WebSocketDisconnect:
        manager.disconnect(websocket)
    except Exception:
        logger.exception("WebSocket error")
        manager.disconnect(websocket)


def _dispatch_intent(session: Session, message: Any) -> None:
    kind = message.get("type") if isinstance(message, dict) else None
    if kind == "keydown":
        try:
            event = KeyEvent.model_validate(message)
        except ValidationError:
            logger.warning("Malformed keydown intent: %s", message)
            return
        session.handle_key(event.key, ctrl=event.ctrl_key, meta=event.meta_key)
    elif kind == "prompt":
        value = message.get("value")
        if isinstance(value, str):
            session.set_prompt(value)
        else:
            logger.warning("Prompt intent without a string value")
    else:
        logger.warning("Unknown WebSocket intent: %r", kind)


def _as_number(value: float | str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Not a number: {value!r}") from exc
