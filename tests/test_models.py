"""Tests for the models and errors modules."""

from datetime import UTC, datetime

import pytest

from textbook_qa.errors import (
    GenerationError,
    InvalidQuestionError,
    PersistenceWarning,
    ProcessingError,
    QAError,
    RetrievalError,
    SessionAccessError,
    SessionCreationError,
    StoreError,
)
from textbook_qa.models import (
    AppendResult,
    ChatMessage,
    Chunk,
    QAResponse,
    QuestionRequest,
    RetrievedPassage,
    Role,
)


class TestQuestionRequest:
    def test_session_id_optional(self) -> None:
        request = QuestionRequest(question="Q?", document_id="d", user_id="u")
        assert request.session_id is None

    def test_is_frozen(self) -> None:
        request = QuestionRequest(question="Q?", document_id="d", user_id="u")
        with pytest.raises(AttributeError):
            request.question = "Changed"


class TestRetrievedPassage:
    def test_defaults(self) -> None:
        passage = RetrievedPassage(content="Text", page_number=3)
        assert passage.section is None
        assert passage.similarity is None


class TestChunk:
    def test_empty_metadata_default(self) -> None:
        assert Chunk(text="Text").metadata == {}


class TestQAResponse:
    def test_defaults(self) -> None:
        response = QAResponse(answer="A", session_id="s1")
        assert response.sources == []
        assert response.confidence == 0.0


class TestRole:
    def test_values(self) -> None:
        assert [r.value for r in Role] == ["system", "user", "assistant"]

    def test_from_string(self) -> None:
        assert Role("assistant") is Role.ASSISTANT


class TestChatMessage:
    def test_metadata_optional(self) -> None:
        message = ChatMessage(
            id="m1",
            session_id="s1",
            role=Role.USER,
            content="Q?",
            created_at=datetime.now(UTC),
        )
        assert message.metadata is None


class TestAppendResult:
    def test_success(self) -> None:
        result = AppendResult(ok=True, message_id="m1")
        assert result.warning is None

    def test_failure_carries_warning(self) -> None:
        warning = PersistenceWarning("failed to save user message")
        result = AppendResult(ok=False, warning=warning)
        assert result.message_id is None
        assert result.warning is warning


class TestErrors:
    @pytest.mark.parametrize(
        "error",
        [
            RetrievalError,
            GenerationError,
            InvalidQuestionError,
            SessionCreationError,
            SessionAccessError,
            StoreError,
            ProcessingError,
        ],
    )
    def test_share_base_class(self, error) -> None:
        assert issubclass(error, QAError)

    def test_generation_error_with_status(self) -> None:
        err = GenerationError("model not found", 404)
        assert err.detail == "model not found"
        assert err.status_code == 404
        assert "404" in str(err)

    def test_generation_error_without_status(self) -> None:
        err = GenerationError("empty completion")
        assert err.status_code is None
        assert str(err) == "completion failed: empty completion"

    def test_persistence_warning_is_not_an_error(self) -> None:
        assert issubclass(PersistenceWarning, UserWarning)
        assert not issubclass(PersistenceWarning, QAError)
