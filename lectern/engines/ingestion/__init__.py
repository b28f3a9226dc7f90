"""
Ingestion Engine - PDF text extraction and lecture creation.
"""

from lectern.engines.ingestion.pdf_extractor import (
    PdfExtraction,
    PdfExtractionError,
    extract_pdf,
    normalize_whitespace,
)
from lectern.engines.ingestion.lecture_service import (
    LectureService,
    LectureSummary,
    link_questions_to_subtopics,
)

__all__ = [
    "PdfExtraction",
    "PdfExtractionError",
    "extract_pdf",
    "normalize_whitespace",
    "LectureService",
    "LectureSummary",
    "link_questions_to_subtopics",
]
