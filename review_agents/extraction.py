"""Plain-text extraction from uploaded evidence files."""
from __future__ import annotations

import logging
import os
from io import BytesIO

from docx import Document as DocxDocument
from pypdf import PdfReader

logger = logging.getLogger(__name__)

# Images and legacy .doc files are stored but yield no text
TEXT_EXTENSIONS = {".txt", ".pdf", ".docx"}


def _pdf_text(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    return "\n".join((page.extract_text() or "") for page in reader.pages)


def _docx_text(data: bytes) -> str:
    return "\n".join(p.text for p in DocxDocument(BytesIO(data)).paragraphs)


_READERS = {".pdf": _pdf_text, ".docx": _docx_text}


def extract_text(filename: str, data: bytes) -> str:
    """Text of ``data``; unreadable or unsupported files give an empty string."""

    ext = os.path.splitext(filename or "")[1].lower()
    if ext == ".txt":
        return data.decode("utf-8", errors="ignore").strip()
    reader = _READERS.get(ext)
    if reader is None:
        return ""
    try:
        return reader(data).strip()
    except Exception as exc:  # corrupt uploads surface as assorted parser errors
        logger.warning("Could not read %s: %s: %s", filename, type(exc).__name__, exc)
        return ""


__all__ = ["TEXT_EXTENSIONS", "extract_text"]
