"""Tests for the loader module."""

from pathlib import Path
from unittest.mock import patch

import pytest

from textbook_qa.loader import _load_markdown, _load_pdf, _load_txt, load_pages


class TestLoadTxt:
    def test_single_page_without_form_feeds(self, tmp_path: Path) -> None:
        f = tmp_path / "notes.txt"
        f.write_text("Hello, world!", encoding="utf-8")
        pages = _load_txt(f)
        assert len(pages) == 1
        assert pages[0].number == 1
        assert pages[0].text == "Hello, world!"

    def test_form_feeds_split_pages(self, tmp_path: Path) -> None:
        f = tmp_path / "book.txt"
        f.write_text("one\ftwo\fthree", encoding="utf-8")
        pages = _load_txt(f)
        assert [(p.number, p.text) for p in pages] == [
            (1, "one"),
            (2, "two"),
            (3, "three"),
        ]

    def test_handles_unicode(self, tmp_path: Path) -> None:
        f = tmp_path / "thai.txt"
        f.write_text("เซลล์คือหน่วยพื้นฐานของสิ่งมีชีวิต", encoding="utf-8")
        assert "เซลล์" in _load_txt(f)[0].text


class TestLoadMarkdown:
    def test_strips_html_tags(self, tmp_path: Path) -> None:
        f = tmp_path / "test.md"
        f.write_text("# Heading\n\nSome **bold** text.", encoding="utf-8")
        text = _load_markdown(f)[0].text
        assert "Heading" in text
        assert "bold" in text
        assert "<" not in text
        assert ">" not in text

    def test_first_heading_becomes_section(self, tmp_path: Path) -> None:
        f = tmp_path / "book.md"
        f.write_text(
            "# Chapter 1: Cells\n\n## Membranes\n\nText.\fNo heading here.",
            encoding="utf-8",
        )
        pages = _load_markdown(f)
        assert pages[0].section == "Chapter 1: Cells"
        assert pages[1].section is None
        assert pages[1].number == 2


class TestLoadPdf:
    def test_one_page_per_pdf_page(self, tmp_path: Path) -> None:
        page_one = type("Page", (), {"extract_text": lambda self: "page one"})()
        page_none = type("Page", (), {"extract_text": lambda self: None})()
        mock_reader = type("Reader", (), {"pages": [page_one, page_none]})()

        with patch("textbook_qa.loader.PdfReader", return_value=mock_reader):
            pages = _load_pdf(tmp_path / "book.pdf")

        assert [(p.number, p.text) for p in pages] == [(1, "page one"), (2, "")]


class TestLoadPages:
    def test_skips_empty_pages_keeping_numbers(self, textbook_txt: Path) -> None:
        pages = load_pages(textbook_txt)
        assert [p.number for p in pages] == [1, 2, 4]
        assert pages[2].text.startswith("Chapter 2")

    def test_accepts_string_path(self, textbook_txt: Path) -> None:
        assert len(load_pages(str(textbook_txt))) == 3

    def test_raises_on_missing_file(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_pages("/nonexistent/book.pdf")

    def test_raises_on_directory(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_pages(tmp_path)

    def test_rejects_unsupported_extension(self, tmp_path: Path) -> None:
        f = tmp_path / "scan.png"
        f.write_bytes(b"\x89PNG")
        with pytest.raises(ValueError, match="Unsupported file type"):
            load_pages(f)

    def test_extension_is_case_insensitive(self, tmp_path: Path) -> None:
        f = tmp_path / "BOOK.TXT"
        f.write_text("content", encoding="utf-8")
        assert len(load_pages(f)) == 1

    def test_whitespace_only_file_has_no_pages(self, tmp_path: Path) -> None:
        f = tmp_path / "blank.txt"
        f.write_text("   \n\n\f  ", encoding="utf-8")
        assert load_pages(f) == []
