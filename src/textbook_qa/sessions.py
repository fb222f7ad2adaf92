"""Session manager — chat sessions and their append-only message history.

Creating a session is fatal on failure because the caller needs the id.
Appending a message is soft: failures come back as an ``AppendResult``.
Reads degrade to an empty list.
"""

import logging

from textbook_qa.errors import (
    PersistenceWarning,
    SessionAccessError,
    SessionCreationError,
    StoreError,
)
from textbook_qa.models import AppendResult, ChatMessage, ChatSession, QuestionRequest, Role
from textbook_qa.store import RecordStore

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 50


def session_title(question: str) -> str:
    """Title a session after its first question, truncated with an ellipsis."""
    if len(question) > TITLE_MAX_CHARS:
        return question[:TITLE_MAX_CHARS] + "..."
    return question


def create_session(
    store: RecordStore, user_id: str, document_id: str, first_question: str
) -> str:
    """Create a session and return its id.

    Raises:
        SessionCreationError: If the store rejects the insert.
    """
    try:
        session = store.insert_session(
            user_id=user_id,
            document_id=document_id,
            title=session_title(first_question),
        )
    except StoreError as exc:
        raise SessionCreationError(
            f"could not create session for user {user_id}"
        ) from exc
    logger.info("Created session %s for document %s", session.id, document_id)
    return session.id


def resolve_session(
    store: RecordStore, request: QuestionRequest, verify_owner: bool = True
) -> str:
    """Return the session id to use for *request*.

    A supplied id is reused. With *verify_owner* it must exist and belong to
    the same user and textbook; without it the id passes through unchecked.
    Without a supplied id (None or empty) a new session is created.

    Raises:
        SessionAccessError: The supplied session is unknown or foreign.
        SessionCreationError: A new session could not be created.
    """
    if not request.session_id:
        return create_session(
            store, request.user_id, request.document_id, request.question
        )

    if not verify_owner:
        return request.session_id

    try:
        session = store.get_session(request.session_id)
    except StoreError as exc:
        raise SessionAccessError(
            f"could not look up session {request.session_id}"
        ) from exc

    if session is None:
        raise SessionAccessError(f"session {request.session_id} does not exist")
    if (session.user_id, session.document_id) != (
        request.user_id,
        request.document_id,
    ):
        raise SessionAccessError(
            f"session {request.session_id} belongs to another user or document"
        )
    return session.id


def append_message(
    store: RecordStore,
    session_id: str,
    role: Role,
    content: str,
    metadata: dict | None = None,
) -> AppendResult:
    """Append one message to a session without raising on store failure."""
    try:
        message = store.insert_message(session_id, role, content, metadata)
    except StoreError as exc:
        warning = PersistenceWarning(
            f"failed to save {Role(role).value} message to session {session_id}: {exc}"
        )
        logger.warning("%s", warning)
        return AppendResult(ok=False, warning=warning)
    return AppendResult(ok=True, message_id=message.id)


def get_history(store: RecordStore, session_id: str) -> list[ChatMessage]:
    """Messages of a session, oldest first; empty if the store fails."""
    try:
        return store.find_messages(session_id)
    except StoreError as exc:
        logger.error("Error fetching chat history for %s: %s", session_id, exc)
        return []


def list_sessions(
    store: RecordStore, user_id: str, document_id: str
) -> list[ChatSession]:
    """A user's sessions for a textbook, newest activity first; empty on failure."""
    try:
        return store.find_sessions(user_id, document_id)
    except StoreError as exc:
        logger.error(
            "Error fetching chat sessions for user %s, document %s: %s",
            user_id,
            document_id,
            exc,
        )
        return []
