"""FastAPI web interface for the textbook QA pipeline."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field

from textbook_qa import generator, pipeline
from textbook_qa import retrieval as rt
from textbook_qa.config import AppConfig
from textbook_qa.errors import InvalidQuestionError, ProcessingError
from textbook_qa.models import QuestionRequest
from textbook_qa.store import get_store

logger = logging.getLogger(__name__)

_config = AppConfig()


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Open the passage index, the record store and the Ollama client."""
    client = rt.get_client(_config.retrieval)
    collection = rt.get_or_create_collection(client, _config.retrieval)
    application.state.chroma_collection = collection
    application.state.record_store = get_store(_config.store)
    application.state.llm_client = generator.get_client(_config.llm)
    logger.info("ChromaDB initialized (%d passages indexed)", collection.count())
    yield


app = FastAPI(
    title="Textbook QA",
    lifespan=lifespan,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
)

router = APIRouter(prefix="/api/v1")


def get_collection(request: Request):
    """FastAPI dependency — return the passage collection from app state."""
    return getattr(request.app.state, "chroma_collection", None)


def get_record_store(request: Request):
    """FastAPI dependency — return the record store from app state."""
    return getattr(request.app.state, "record_store", None)


def get_llm_client(request: Request):
    """FastAPI dependency — return the Ollama client from app state."""
    return getattr(request.app.state, "llm_client", None)


class AskRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)
    document_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    session_id: str | None = None


class SourceResponse(BaseModel):
    content: str
    page_number: int
    section: str | None = None
    confidence: float


class AskResponse(BaseModel):
    answer: str
    sources: list[SourceResponse]
    session_id: str
    confidence: float


class MessageResponse(BaseModel):
    id: str
    session_id: str
    role: str
    content: str
    metadata: dict | None = None
    created_at: datetime


class HistoryResponse(BaseModel):
    messages: list[MessageResponse]


class SessionResponse(BaseModel):
    id: str
    user_id: str
    document_id: str
    title: str
    created_at: datetime
    updated_at: datetime


class SessionListResponse(BaseModel):
    sessions: list[SessionResponse]


class DocumentInfo(BaseModel):
    document_id: str
    passage_count: int


class DocumentListResponse(BaseModel):
    documents: list[DocumentInfo]


class HealthResponse(BaseModel):
    status: str
    model: str
    available_models: list[str]
    ollama_connected: bool
    store_connected: bool
    passages: int


def _ollama_connected(client) -> bool:
    try:
        if client is not None:
            client.list()
        else:
            import ollama

            ollama.list()
    except Exception:
        return False
    return True


@router.get("/health", response_model=HealthResponse)
def api_health(
    collection=Depends(get_collection),
    store=Depends(get_record_store),
    client=Depends(get_llm_client),
):
    ollama_ok = _ollama_connected(client)
    store_ok = store is not None and store.health_check()["status"] == "healthy"

    return HealthResponse(
        status="healthy" if ollama_ok and store_ok else "degraded",
        model=_config.llm.model,
        available_models=_config.llm.available_models,
        ollama_connected=ollama_ok,
        store_connected=store_ok,
        passages=collection.count() if collection else 0,
    )


@router.post("/ask", response_model=AskResponse)
def api_ask(
    body: AskRequest,
    collection=Depends(get_collection),
    store=Depends(get_record_store),
    client=Depends(get_llm_client),
):
    if collection is None or store is None:
        raise HTTPException(
            status_code=503,
            detail="Service not initialized. Ingest a textbook first.",
        )

    request = QuestionRequest(
        question=body.question,
        document_id=body.document_id,
        user_id=body.user_id,
        session_id=body.session_id,
    )
    try:
        response = pipeline.process_question(
            request, collection, store, config=_config, client=client
        )
    except InvalidQuestionError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except ProcessingError as exc:
        raise HTTPException(status_code=500, detail=str(exc))

    return AskResponse(
        answer=response.answer,
        sources=[
            SourceResponse(
                content=s.content,
                page_number=s.page_number,
                section=s.section,
                confidence=s.confidence,
            )
            for s in response.sources
        ],
        session_id=response.session_id,
        confidence=response.confidence,
    )


@router.get("/sessions/{session_id}/messages", response_model=HistoryResponse)
def api_chat_history(session_id: str, store=Depends(get_record_store)):
    if store is None:
        return HistoryResponse(messages=[])

    messages = pipeline.get_chat_history(store, session_id)
    return HistoryResponse(
        messages=[
            MessageResponse(
                id=m.id,
                session_id=m.session_id,
                role=m.role.value,
                content=m.content,
                metadata=m.metadata,
                created_at=m.created_at,
            )
            for m in messages
        ]
    )


@router.get("/sessions", response_model=SessionListResponse)
def api_user_sessions(
    user_id: str = Query(..., min_length=1),
    document_id: str = Query(..., min_length=1),
    store=Depends(get_record_store),
):
    if store is None:
        return SessionListResponse(sessions=[])

    found = pipeline.get_user_chat_sessions(store, user_id, document_id)
    return SessionListResponse(
        sessions=[
            SessionResponse(
                id=s.id,
                user_id=s.user_id,
                document_id=s.document_id,
                title=s.title,
                created_at=s.created_at,
                updated_at=s.updated_at,
            )
            for s in found
        ]
    )


@router.get("/documents", response_model=DocumentListResponse)
def api_list_documents(collection=Depends(get_collection)):
    if collection is None:
        return DocumentListResponse(documents=[])

    counts = rt.list_documents(collection)
    return DocumentListResponse(
        documents=[
            DocumentInfo(document_id=doc_id, passage_count=count)
            for doc_id, count in counts.items()
        ]
    )


app.include_router(router)
