"""QA orchestrator — retrieves passages, generates a grounded answer and
records the exchange in the learner's chat session."""

import logging

import chromadb
import ollama

from textbook_qa import generator, retrieval, sessions
from textbook_qa.config import AppConfig
from textbook_qa.confidence import confidence, passage_similarity
from textbook_qa.context import build_context
from textbook_qa.errors import (
    GenerationError,
    InvalidQuestionError,
    ProcessingError,
    RetrievalError,
    SessionAccessError,
    SessionCreationError,
)
from textbook_qa.models import (
    ChatMessage,
    ChatSession,
    QAResponse,
    QuestionRequest,
    RetrievedPassage,
    Role,
    SourceExcerpt,
)
from textbook_qa.store import RecordStore

logger = logging.getLogger(__name__)

FAILURE_MESSAGES: dict[str, str] = {
    "en": (
        "Sorry, something went wrong while processing your question. "
        "Please try again."
    ),
    "th": (
        "ขออภัยครับ/ค่ะ เกิดข้อผิดพลาดในการประมวลผลคำถาม "
        "กรุณาลองใหม่อีกครั้งนะครับ"
    ),
}

_FATAL_ERRORS = (
    RetrievalError,
    GenerationError,
    SessionCreationError,
    SessionAccessError,
)


def failure_message(locale: str = "en") -> str:
    """Return the user-facing failure text for a locale."""
    return FAILURE_MESSAGES.get(locale, FAILURE_MESSAGES["en"])


def _excerpt(text: str, limit: int) -> str:
    return text[:limit] + "..."


def _format_sources(
    passages: list[RetrievedPassage], limit: int = 200
) -> list[SourceExcerpt]:
    return [
        SourceExcerpt(
            content=_excerpt(p.content, limit),
            page_number=p.page_number,
            section=p.section,
            confidence=passage_similarity(p),
        )
        for p in passages
    ]


def _answer_metadata(passages: list[RetrievedPassage], score: float) -> dict:
    """Assistant-message metadata; keeps full passage content."""
    return {
        "sources": [
            {
                "content": p.content,
                "page_number": p.page_number,
                "section": p.section,
                "similarity": p.similarity,
            }
            for p in passages
        ],
        "confidence": score,
    }


def _record_exchange(
    store: RecordStore,
    session_id: str,
    question: str,
    answer: str,
    metadata: dict,
) -> None:
    """Persist the user turn, then the assistant turn.

    The assistant turn is skipped when the user turn could not be written,
    so history never shows an answer without its question.
    """
    user_result = sessions.append_message(store, session_id, Role.USER, question)
    if not user_result.ok:
        logger.warning(
            "Skipping assistant message for session %s: question was not saved",
            session_id,
        )
        return
    sessions.append_message(store, session_id, Role.ASSISTANT, answer, metadata)


def process_question(
    request: QuestionRequest,
    collection: chromadb.Collection,
    store: RecordStore,
    config: AppConfig | None = None,
    client: ollama.Client | None = None,
) -> QAResponse:
    """Answer a learner's question about one textbook.

    Retrieves the top passages for the textbook, resolves (or creates) the
    chat session, generates an answer grounded in those passages and
    records the question and answer in the session history. History write
    failures are logged but do not fail the call.

    Args:
        request: The question, textbook id, user id and optional session id.
        collection: ChromaDB collection holding the textbook passages.
        store: Record store for sessions and messages.
        config: Application configuration. Uses defaults if not provided.
        client: Ollama client; the module-level ``ollama`` API is used
            when omitted.

    Returns:
        A QAResponse with the answer, truncated sources, session id and
        aggregate confidence.

    Raises:
        InvalidQuestionError: If the question is blank (also a ValueError).
        ProcessingError: If retrieval, session resolution or generation
            fails, or anything unexpected goes wrong on the way. The message
            is localized and carries no internal detail.
    """
    cfg = config or AppConfig()
    question = request.question.strip()
    if not question:
        raise InvalidQuestionError("Question cannot be empty")

    try:
        passages = retrieval.search(
            collection, question, request.document_id, top_k=cfg.retrieval.top_k
        )
        session_id = sessions.resolve_session(
            store, request, verify_owner=cfg.qa.verify_session_owner
        )
        context = build_context(passages)
        answer = generator.generate_answer(
            question, context, cfg.llm, client=client, locale=cfg.qa.locale
        )
    except _FATAL_ERRORS as exc:
        logger.exception("Error processing question for user %s", request.user_id)
        raise ProcessingError(failure_message(cfg.qa.locale)) from exc
    except Exception as exc:
        logger.exception(
            "Unexpected error processing question for user %s", request.user_id
        )
        raise ProcessingError(failure_message(cfg.qa.locale)) from exc

    score = confidence(passages)
    _record_exchange(
        store, session_id, question, answer, _answer_metadata(passages, score)
    )

    logger.info(
        "Answered question in session %s (%d passages, confidence %.2f)",
        session_id,
        len(passages),
        score,
    )
    return QAResponse(
        answer=answer,
        session_id=session_id,
        sources=_format_sources(passages, cfg.qa.source_excerpt_chars),
        confidence=score,
    )


def get_chat_history(store: RecordStore, session_id: str) -> list[ChatMessage]:
    """Messages of a session, oldest first; empty on store error."""
    return sessions.get_history(store, session_id)


def get_user_chat_sessions(
    store: RecordStore, user_id: str, document_id: str
) -> list[ChatSession]:
    """A user's sessions for a textbook, newest first; empty on store error."""
    return sessions.list_sessions(store, user_id, document_id)
