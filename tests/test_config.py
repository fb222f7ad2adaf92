"""Tests for configuration module."""

import pytest
from pydantic import ValidationError

from textbook_qa.config import (
    AppConfig,
    ChunkConfig,
    LLMConfig,
    QAConfig,
    RetrievalConfig,
    StoreConfig,
)


class TestChunkConfig:
    def test_defaults(self) -> None:
        c = ChunkConfig()
        assert c.size == 800
        assert c.overlap == 150

    def test_is_frozen(self) -> None:
        c = ChunkConfig()
        with pytest.raises(ValidationError):
            c.size = 999

    def test_rejects_zero_size(self) -> None:
        with pytest.raises(ValidationError):
            ChunkConfig(size=0)

    def test_rejects_negative_overlap(self) -> None:
        with pytest.raises(ValidationError):
            ChunkConfig(overlap=-1)

    def test_rejects_overlap_equal_to_size(self) -> None:
        with pytest.raises(ValidationError):
            ChunkConfig(size=100, overlap=100)


class TestRetrievalConfig:
    def test_defaults(self) -> None:
        c = RetrievalConfig()
        assert c.top_k == 5
        assert c.collection_name == "textbook_passages"
        assert c.embedding_model == "all-MiniLM-L6-v2"

    def test_rejects_zero_top_k(self) -> None:
        with pytest.raises(ValidationError):
            RetrievalConfig(top_k=0)

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("RETRIEVAL_TOP_K", "8")
        assert RetrievalConfig().top_k == 8


class TestLLMConfig:
    def test_defaults(self) -> None:
        c = LLMConfig()
        assert c.temperature == 0.3
        assert c.max_tokens == 1200
        assert c.model in c.available_models

    def test_rejects_temperature_out_of_range(self) -> None:
        with pytest.raises(ValidationError):
            LLMConfig(temperature=2.5)

    def test_available_models_from_json_env(self, monkeypatch) -> None:
        monkeypatch.setenv("LLM_AVAILABLE_MODELS", '["a:1b", "b:2b"]')
        assert LLMConfig().available_models == ["a:1b", "b:2b"]

    def test_available_models_from_comma_list(self) -> None:
        c = LLMConfig(available_models="a:1b, b:2b,")
        assert c.available_models == ["a:1b", "b:2b"]


class TestStoreConfig:
    def test_defaults(self) -> None:
        c = StoreConfig()
        assert c.database_url.startswith("sqlite")
        assert c.echo is False

    def test_env_override(self, monkeypatch) -> None:
        monkeypatch.setenv("STORE_DATABASE_URL", "sqlite://")
        assert StoreConfig().database_url == "sqlite://"


class TestQAConfig:
    def test_defaults(self) -> None:
        c = QAConfig()
        assert c.locale == "en"
        assert c.verify_session_owner is True
        assert c.source_excerpt_chars == 200

    def test_locale_normalized(self) -> None:
        assert QAConfig(locale=" TH ").locale == "th"

    def test_rejects_unknown_locale(self) -> None:
        with pytest.raises(ValidationError):
            QAConfig(locale="de")


class TestAppConfig:
    def test_nested_defaults(self) -> None:
        c = AppConfig()
        assert isinstance(c.retrieval, RetrievalConfig)
        assert isinstance(c.store, StoreConfig)
        assert isinstance(c.qa, QAConfig)
        assert c.port == 8000

    def test_model_copy_overrides_nested(self) -> None:
        c = AppConfig()
        updated = c.model_copy(
            update={"llm": c.llm.model_copy(update={"model": "gemma3:4b"})}
        )
        assert updated.llm.model == "gemma3:4b"
        assert c.llm.model == "llama3.1:8b"

    def test_rejects_invalid_port(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(port=70000)
