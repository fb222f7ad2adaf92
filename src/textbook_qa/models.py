"""Domain models for the textbook QA system."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from textbook_qa.errors import PersistenceWarning


class Role(str, Enum):
    """Author of a chat message or completion turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Page:
    """One page of textbook text with its 1-based page number."""

    number: int
    text: str
    section: str | None = None


@dataclass(frozen=True)
class Chunk:
    """A text chunk produced from a textbook page, ready for indexing."""

    text: str
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class QuestionRequest:
    """A learner's question about one textbook."""

    question: str
    document_id: str
    user_id: str
    session_id: str | None = None


@dataclass(frozen=True)
class RetrievedPassage:
    """A passage returned by the retrieval backend.

    ``similarity`` is in [0, 1] or ``None`` when the backend gave no score.
    Passages arrive in whatever order the backend chose.
    """

    content: str
    page_number: int
    section: str | None = None
    similarity: float | None = None


@dataclass(frozen=True)
class ContextBlock:
    """One labelled passage of the assembled prompt context."""

    index: int
    page_number: int
    content: str


@dataclass(frozen=True)
class SourceExcerpt:
    """A truncated passage returned to the caller alongside the answer."""

    content: str
    page_number: int
    section: str | None
    confidence: float


@dataclass(frozen=True)
class QAResponse:
    """The final response from the question-answering pipeline."""

    answer: str
    session_id: str
    sources: list[SourceExcerpt] = field(default_factory=list)
    confidence: float = 0.0


@dataclass(frozen=True)
class ChatSession:
    """A conversation thread for one user and one textbook."""

    id: str
    user_id: str
    document_id: str
    title: str
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ChatMessage:
    """A single persisted turn of a chat session."""

    id: str
    session_id: str
    role: Role
    content: str
    created_at: datetime
    metadata: dict | None = None


@dataclass(frozen=True)
class AppendResult:
    """Outcome of appending a message; failures are reported, not raised."""

    ok: bool
    message_id: str | None = None
    warning: PersistenceWarning | None = None
