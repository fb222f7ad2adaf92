"""Text chunker — splits textbook pages into overlapping, page-attributed chunks."""

import re

from textbook_qa.config import ChunkConfig
from textbook_qa.models import Chunk, Page

# Sentence-ending delimiters, ordered by preference.
_SENTENCE_BREAKS = (". ", "! ", "? ", "\n")

# Lines such as "Chapter 3: Cells", "Section 2.1 Forces" or "Unit 4 - Energy".
_SECTION_RE = re.compile(
    r"^[ \t]*((?:chapter|section|unit|lesson)[ \t]+"
    r"(?:\d[\w.]*|(?-i:[IVXLC]+)\b)[^\n]{0,80}?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)


def chunk_text(text: str, chunk_size: int = 800, chunk_overlap: int = 150) -> list[str]:
    """Split text into chunks of approximately *chunk_size* characters.

    Tries to break at paragraph (``\\n\\n``) or sentence boundaries
    (``. ``, ``! ``, ``? ``, ``\\n``) when possible. Adjacent chunks
    share *chunk_overlap* characters for context continuity.

    Args:
        text: The source text to split.
        chunk_size: Target maximum number of characters per chunk.
        chunk_overlap: Number of characters shared between adjacent chunks.

    Returns:
        Ordered list of text chunks. Returns an empty list if the
        input is empty or whitespace-only.
    """
    if not text.strip():
        return []

    if len(text) <= chunk_size:
        return [text.strip()]

    chunks: list[str] = []
    start = 0

    while start < len(text):
        end = start + chunk_size

        if end < len(text):
            # Prefer paragraph break
            newline_pos = text.rfind("\n\n", start, end)
            if newline_pos > start + chunk_size // 2:
                end = newline_pos + 2
            else:
                # Fall back to sentence break
                for sep in _SENTENCE_BREAKS:
                    sep_pos = text.rfind(sep, start, end)
                    if sep_pos > start + chunk_size // 2:
                        end = sep_pos + len(sep)
                        break

        segment = text[start:end].strip()
        if segment:
            chunks.append(segment)

        if end >= len(text):
            break
        start = max(end - chunk_overlap, start + 1)

    return chunks


def detect_section(text: str) -> str | None:
    """Return the first chapter/section heading line found in *text*."""
    match = _SECTION_RE.search(text)
    return match.group(1).strip() if match else None


def chunk_pages(
    pages: list[Page],
    document_id: str,
    config: ChunkConfig | None = None,
) -> list[Chunk]:
    """Chunk every page of a textbook, keeping page and section attribution.

    A page without its own heading inherits the section of the page before
    it. Chunk indexes restart on every page.

    Args:
        pages: Textbook pages in book order.
        document_id: Identifier the chunks will be searchable under.
        config: Chunking parameters (size, overlap). Uses defaults
            if not provided.

    Returns:
        Flat list of Chunk objects preserving page order.
    """
    if config is None:
        config = ChunkConfig()

    result: list[Chunk] = []
    section: str | None = None

    for page in pages:
        section = page.section or detect_section(page.text) or section
        for idx, text in enumerate(chunk_text(page.text, config.size, config.overlap)):
            result.append(
                Chunk(
                    text=text,
                    metadata={
                        "document_id": document_id,
                        "page_number": page.number,
                        "section": section,
                        "chunk_index": idx,
                    },
                )
            )

    return result
