"""FastAPI backend for advisory board consultations."""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config_loader import get_board, get_advisors, get_advisor, get_boards_summary, load_boards
from .errors import ConsultationError, ErrorKind
from .service import AdvisoryService, AdvisorNotFoundError, SessionNotFoundError, build_service

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.PERSONA_ERROR: 400,
    ErrorKind.TIMEOUT: 504,
    ErrorKind.NETWORK_ERROR: 502,
    ErrorKind.UNKNOWN: 502,
}


# ========== Models ==========


class AnalyzeRequest(BaseModel):
    question: str
    session_id: Optional[str] = None


class CreateSessionRequest(BaseModel):
    board_id: Optional[str] = None
    advisor_ids: List[str] = []


class ConsultRequest(BaseModel):
    prompt: str
    session_context: Optional[str] = None


class RetryRequest(BaseModel):
    prompt: Optional[str] = None


class ConfigUpdateRequest(BaseModel):
    timeout_ms: Optional[int] = None
    retry_attempts: Optional[int] = None
    retry_delay_ms: Optional[int] = None


# ========== App ==========


def create_app(service: Optional[AdvisoryService] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        logger.info("Starting Advisory Board API...")
        if getattr(app.state, "service", None) is None:
            app.state.service = build_service()
        boards = load_boards()
        logger.info("Loaded %d boards: %s", len(boards), list(boards.keys()))
        yield
        logger.info("Shutting down Advisory Board API...")

    app = FastAPI(title="Advisory Board", lifespan=lifespan)
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ConsultationError)
    async def consultation_error_handler(request: Request, exc: ConsultationError):
        return JSONResponse(
            status_code=STATUS_BY_KIND.get(exc.kind, 502),
            content={
                "detail": exc.message,
                "kind": exc.kind.value,
                "advisor_id": exc.advisor_id,
                "errors": [e.to_dict() for e in exc.errors],
            },
        )

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return JSONResponse(status_code=404, content={"detail": "Session not found"})

    @app.exception_handler(AdvisorNotFoundError)
    async def advisor_not_found_handler(request: Request, exc: AdvisorNotFoundError):
        return JSONResponse(status_code=404, content={"detail": f"Advisor {exc.args[0]} not found"})

    def svc(request: Request) -> AdvisoryService:
        return request.app.state.service

    @app.get("/")
    async def root():
        return {"status": "ok", "service": "Advisory Board API"}

    # ========== Board Endpoints ==========

    @app.get("/api/boards")
    async def list_boards():
        return get_boards_summary()

    @app.get("/api/boards/{board_id}")
    async def get_board_detail(board_id: str):
        board = get_board(board_id)
        if not board:
            raise HTTPException(status_code=404, detail=f"Board {board_id} not found")
        return {**board, "advisors": [a.to_dict() for a in get_advisors(board_id)]}

    # ========== Analysis ==========

    @app.post("/api/analyze")
    async def analyze(request: Request, body: AnalyzeRequest):
        service = svc(request)
        context = None
        if body.session_id:
            context = service.get_session(body.session_id).question_context()
        return service.analyze_question(body.question, context).to_dict()

    # ========== Session Endpoints ==========

    @app.get("/api/sessions")
    async def list_sessions(request: Request):
        return [s.to_dict(include_rounds=False) for s in svc(request).list_sessions()]

    @app.post("/api/sessions")
    async def create_session(request: Request, body: CreateSessionRequest):
        if body.board_id and not get_board(body.board_id):
            raise HTTPException(status_code=404, detail=f"Board {body.board_id} not found")
        advisors = get_advisors(body.board_id) if body.board_id else []
        for advisor_id in body.advisor_ids:
            advisor = get_advisor(advisor_id)
            if advisor is None:
                raise HTTPException(status_code=404, detail=f"Advisor {advisor_id} not found")
            advisors.append(advisor)
        if not advisors:
            raise HTTPException(status_code=400, detail="No advisors selected")
        return svc(request).create_session(advisors).to_dict()

    @app.get("/api/sessions/{session_id}")
    async def get_session(request: Request, session_id: str):
        return svc(request).get_session(session_id).to_dict()

    @app.delete("/api/sessions/{session_id}")
    async def delete_session(request: Request, session_id: str):
        if not svc(request).delete_session(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return {"deleted": session_id}

    # ========== Consultation Endpoints ==========

    @app.post("/api/sessions/{session_id}/consult")
    async def consult(request: Request, session_id: str, body: ConsultRequest):
        service = svc(request)
        responses = await service.submit_consultation(session_id, body.prompt, body.session_context)
        current = service.get_session(session_id).current_round
        return {
            "responses": [r.to_dict() for r in responses],
            "errors": [e.to_dict() for e in current.errors],
            "analysis": current.analysis.to_dict() if current.analysis else None,
        }

    @app.post("/api/sessions/{session_id}/advisors/{advisor_id}/retry")
    async def retry(request: Request, session_id: str, advisor_id: str, body: RetryRequest = RetryRequest()):
        response = await svc(request).retry_advisor(session_id, advisor_id, body.prompt)
        return response.to_dict()

    @app.post("/api/sessions/{session_id}/summary")
    async def summarize(request: Request, session_id: str):
        return {"summary": await svc(request).summarize_session(session_id)}

    # ========== Config Endpoints ==========

    @app.get("/api/config")
    async def get_config(request: Request):
        return svc(request).get_service_config().to_dict()

    @app.patch("/api/config")
    async def update_config(request: Request, body: ConfigUpdateRequest):
        try:
            config = svc(request).update_service_config(**body.model_dump(exclude_none=True))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return config.to_dict()

    return app


app = create_app()
