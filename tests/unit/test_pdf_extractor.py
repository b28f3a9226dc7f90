"""Unit tests for PDF text extraction."""

import pytest

from lectern.engines.ingestion.pdf_extractor import PdfExtractionError, extract_pdf, normalize_whitespace


class TestNormalizeWhitespace:
    def test_collapses_runs(self):
        assert normalize_whitespace("  Page one\n\n\nline   two \t end  ") == "Page one line two end"

    def test_single_spaces_untouched(self):
        assert normalize_whitespace("a b\nc") == "a b\nc"

    def test_none(self):
        assert normalize_whitespace(None) == ""


class TestExtractPdf:
    def test_garbage_bytes_raise(self):
        with pytest.raises(PdfExtractionError):
            extract_pdf(b"this is not a pdf at all")

    def test_empty_buffer_raises(self):
        with pytest.raises(PdfExtractionError):
            extract_pdf(b"")

    def test_text_pages_and_metadata(self, make_pdf):
        extraction = extract_pdf(make_pdf(["Graphs model pairwise relations.", "Trees are acyclic graphs."]))
        assert extraction.num_pages == 1
        assert "Graphs model pairwise relations." in extraction.text
        assert "Trees are acyclic graphs." in extraction.text
        assert extraction.metadata["Title"] == "Lectern sample"
        assert extraction.metadata["Author"] == "Lectern tests"

    def test_page_without_text(self, make_pdf):
        extraction = extract_pdf(make_pdf())
        assert extraction.num_pages == 1
        assert normalize_whitespace(extraction.text) == ""
