"""Decode resume documents (.pdf, .docx, .txt) to plain text."""

from __future__ import annotations

import logging
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from jobfill.errors import UnsupportedFormat

log = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".pdf", ".docx", ".txt")


def _pdf_text(path: Path) -> str:
    reader = PdfReader(path)
    pages_text = [page.extract_text() or "" for page in reader.pages]
    return "\n\n".join(pages_text).strip()


def _docx_text(path: Path) -> str:
    document = Document(str(path))
    lines = [paragraph.text for paragraph in document.paragraphs]
    # Skills and contact blocks are often laid out in tables.
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines).strip()


def extract_text(path: Path | str) -> str:
    """Return the text of a resume document.

    Raises:
        UnsupportedFormat: for any suffix other than .pdf, .docx or .txt.
        FileNotFoundError: if ``path`` does not exist.
    """
    path = Path(path).expanduser()
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedFormat(str(path), suffix)
    if not path.exists():
        raise FileNotFoundError(f"Resume not found: {path}")

    if suffix == ".pdf":
        text = _pdf_text(path)
    elif suffix == ".docx":
        text = _docx_text(path)
    else:
        text = path.read_text(encoding="utf-8")

    log.info("Extracted %d characters from %s", len(text), path.name)
    return text
