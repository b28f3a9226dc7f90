"""
PDF text extraction with pdfplumber.
"""

import io
import re
from typing import Any, Dict

import pdfplumber
from pydantic import BaseModel, Field

_WS_RUN = re.compile(r"\s{2,}")


class PdfExtractionError(Exception):
    """The buffer could not be parsed as a PDF."""


class PdfExtraction(BaseModel):
    text: str
    num_pages: int
    metadata: Dict[str, Any] = Field(default_factory=dict)


def normalize_whitespace(text: str) -> str:
    """Collapse runs of two or more whitespace characters into one space and trim."""
    return _WS_RUN.sub(" ", text or "").strip()


def extract_pdf(buffer: bytes) -> PdfExtraction:
    """
    Extract raw text, page count and document metadata.

    Blocking; call from a worker thread inside request handlers.

    Raises:
        PdfExtractionError: If pdfplumber can't read the buffer
    """
    try:
        with pdfplumber.open(io.BytesIO(buffer)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
            metadata = {k: v if isinstance(v, (str, int, float, bool)) else str(v) for k, v in (pdf.metadata or {}).items()}
            return PdfExtraction(text="\n".join(pages), num_pages=len(pdf.pages), metadata=metadata)
    except Exception as exc:
        raise PdfExtractionError(str(exc) or exc.__class__.__name__) from exc
