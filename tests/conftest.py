"""Shared fixtures for the test suite."""

from pathlib import Path

import pytest

from textbook_qa.config import StoreConfig
from textbook_qa.models import Chunk, Page, QuestionRequest, RetrievedPassage
from textbook_qa.store import RecordStore, get_store


@pytest.fixture
def sample_passages() -> list[RetrievedPassage]:
    return [
        RetrievedPassage(
            content="Photosynthesis converts light energy into chemical energy.",
            page_number=12,
            section="Chapter 2: Plants",
            similarity=0.9,
        ),
        RetrievedPassage(
            content="Chlorophyll absorbs mostly blue and red light.",
            page_number=14,
            section="Chapter 2: Plants",
            similarity=0.7,
        ),
    ]


@pytest.fixture
def sample_request() -> QuestionRequest:
    return QuestionRequest(question="What is X?", document_id="doc1", user_id="u1")


@pytest.fixture
def sample_chunks() -> list[Chunk]:
    return [
        Chunk(
            text="Cells are the basic unit of life.",
            metadata={
                "document_id": "bio-101",
                "page_number": 3,
                "section": "Chapter 1: Cells",
                "chunk_index": 0,
            },
        ),
        Chunk(
            text="Mitochondria produce most of the cell's energy.",
            metadata={
                "document_id": "bio-101",
                "page_number": 4,
                "section": None,
                "chunk_index": 0,
            },
        ),
    ]


@pytest.fixture
def sample_pages() -> list[Page]:
    return [
        Page(number=1, text="Chapter 1: Cells\nCells are the basic unit of life."),
        Page(number=2, text="Every cell is surrounded by a membrane."),
        Page(number=3, text="Chapter 2: Energy\nMitochondria produce energy."),
    ]


@pytest.fixture
def memory_store() -> RecordStore:
    """An empty record store backed by in-memory SQLite."""
    store = get_store(StoreConfig(database_url="sqlite://"))
    yield store
    store.engine.dispose()


@pytest.fixture
def textbook_txt(tmp_path: Path) -> Path:
    """A three-page plain-text textbook (pages split by form feeds)."""
    path = tmp_path / "biology.txt"
    path.write_text(
        "Chapter 1: Cells\nCells are the basic unit of life.\f"
        "Every cell is surrounded by a membrane.\f"
        "\f"
        "Chapter 2: Energy\nMitochondria produce energy.",
        encoding="utf-8",
    )
    return path
