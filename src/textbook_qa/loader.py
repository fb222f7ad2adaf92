"""Textbook loader — reads a PDF, text or Markdown textbook page by page."""

import logging
import re
from pathlib import Path
from typing import Callable

import markdown
from pypdf import PdfReader

from textbook_qa.models import Page

logger = logging.getLogger(__name__)

# Plain-text exports mark page breaks with a form feed.
_PAGE_BREAK = "\f"

_MD_HEADING_RE = re.compile(r"^#{1,6}\s+(.+?)\s*#*\s*$", re.MULTILINE)


def _split_pages(raw: str) -> list[str]:
    return raw.split(_PAGE_BREAK) if _PAGE_BREAK in raw else [raw]


def _load_txt(file_path: Path) -> list[Page]:
    raw = file_path.read_text(encoding="utf-8")
    return [Page(number=i, text=t) for i, t in enumerate(_split_pages(raw), 1)]


def _load_pdf(file_path: Path) -> list[Page]:
    """Extract one Page per PDF page.

    Pages that yield no text (scanned images, blank pages) come back with
    empty text and are dropped by :func:`load_pages`.
    """
    reader = PdfReader(str(file_path))
    return [
        Page(number=i, text=page.extract_text() or "")
        for i, page in enumerate(reader.pages, 1)
    ]


def _load_markdown(file_path: Path) -> list[Page]:
    """Load a Markdown textbook as plain-text pages.

    The first heading on each page becomes the page's section; the
    Markdown is rendered to HTML and stripped of tags.
    """
    raw = file_path.read_text(encoding="utf-8")
    pages: list[Page] = []
    for i, source in enumerate(_split_pages(raw), 1):
        heading = _MD_HEADING_RE.search(source)
        html = markdown.markdown(source)
        pages.append(
            Page(
                number=i,
                text=re.sub(r"<[^>]+>", "", html),
                section=heading.group(1) if heading else None,
            )
        )
    return pages


# Supported file extensions mapped to their loader functions.
LOADERS: dict[str, Callable[[Path], list[Page]]] = {
    ".txt": _load_txt,
    ".pdf": _load_pdf,
    ".md": _load_markdown,
}


def load_pages(file_path: str | Path) -> list[Page]:
    """Load a textbook file into its non-empty pages.

    Args:
        file_path: Path to a ``.pdf``, ``.txt`` or ``.md`` file.

    Returns:
        Pages in book order with 1-based page numbers. Empty pages are
        skipped but keep the numbering of the pages around them.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the extension is not supported.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {file_path}")

    ext = path.suffix.lower()
    loader = LOADERS.get(ext)
    if loader is None:
        supported = ", ".join(sorted(LOADERS))
        raise ValueError(f"Unsupported file type {ext!r} (supported: {supported})")

    pages = [p for p in loader(path) if p.text.strip()]
    if not pages:
        logger.warning("No extractable text in %s", path.name)
    else:
        logger.info("Loaded %d pages from %s", len(pages), path.name)
    return pages
