"""
PDF upload endpoint and the shared multipart PDF handling.
"""

from typing import Tuple

from fastapi import APIRouter, HTTPException, Request, status
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from lectern.api.deps import CurrentUser
from lectern.config import get_settings
from lectern.engines.ingestion.pdf_extractor import (
    PdfExtraction,
    PdfExtractionError,
    extract_pdf,
    normalize_whitespace,
)
from lectern.logging_config import get_logger
from lectern.schemas.lectures import PdfUploadResponse

logger = get_logger(__name__)

router = APIRouter()


async def read_pdf_upload(request: Request) -> Tuple[str, PdfExtraction, str]:
    """
    Pull the `file` field out of a multipart form and extract its text.

    Returns:
        (filename, extraction, normalized text)
    """
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided. Please upload a single PDF.",
        )
    filename = upload.filename or ""
    if not filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only PDF files are accepted.",
        )

    data = await upload.read()
    max_bytes = get_settings().max_upload_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {get_settings().max_upload_mb} MB.",
        )

    try:
        extraction = await run_in_threadpool(extract_pdf, data)
    except PdfExtractionError as e:
        logger.error("PDF extraction failed", extra={"upload_filename": filename}, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process PDF: {e}",
        )

    text = normalize_whitespace(extraction.text)
    if not text:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Could not extract text from the PDF. The file may only contain images.",
        )
    return filename, extraction, text


@router.post("/upload-pdf", response_model=PdfUploadResponse)
async def upload_pdf(request: Request, user: CurrentUser):
    """Extract text from an uploaded PDF without creating a lecture."""
    filename, extraction, text = await read_pdf_upload(request)
    return PdfUploadResponse(filename=filename, pages=extraction.num_pages, content=text)
