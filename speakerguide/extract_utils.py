"""Per-slide text extraction from uploaded PDF and PPTX documents."""
from __future__ import annotations

import re
from io import BytesIO
from pathlib import Path
from typing import Iterable, List, Optional

from pptx import Presentation
from pptx.shapes.group import GroupShape
from pypdf import PdfReader

from .errors import (
    EmptyDocumentError,
    ExtractionError,
    FileTooLargeError,
    UnsupportedFileError,
)
from .logging_utils import get_logger
from .models import DocumentKind, SlideText

logger = get_logger("extract")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_MIME_KINDS = {
    "application/pdf": DocumentKind.PDF,
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": DocumentKind.PPTX,
}
_TITLE_EXT_RE = re.compile(r"\.(pdf|pptx)$", re.IGNORECASE)


def normalize_whitespace(text: str) -> str:
    return " ".join((text or "").split())


def detect_kind(filename: str, content_type: Optional[str] = None) -> DocumentKind:
    """Resolve the document kind from the file extension, then the MIME type."""
    suffix = Path(filename or "").suffix.lower()
    if suffix == ".pdf":
        return DocumentKind.PDF
    if suffix == ".pptx":
        return DocumentKind.PPTX
    if content_type:
        kind = _MIME_KINDS.get(content_type.split(";")[0].strip().lower())
        if kind is not None:
            return kind
    raise UnsupportedFileError(filename or "")


def check_upload(filename: str, size: int, content_type: Optional[str] = None,
                 max_bytes: int = MAX_UPLOAD_BYTES) -> DocumentKind:
    kind = detect_kind(filename, content_type)
    if size > max_bytes:
        raise FileTooLargeError(size, max_bytes)
    return kind


def title_from_filename(filename: str) -> str:
    """Default deck title: the file name without its .pdf/.pptx extension."""
    name = Path(filename or "").name
    return _TITLE_EXT_RE.sub("", name).strip()


def _pdf_pages(data: bytes) -> List[str]:
    try:
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted and not reader.decrypt(""):
            raise ExtractionError("PDF is password protected.")
        pages = list(reader.pages)
    except ExtractionError:
        raise
    except Exception as exc:
        logger.error("Failed to open PDF: %s", exc)
        raise ExtractionError("Could not read the PDF file. It may be corrupt.") from exc

    texts: List[str] = []
    for number, page in enumerate(pages, 1):
        try:
            texts.append(normalize_whitespace(page.extract_text() or ""))
        except Exception as exc:
            logger.error("Failed to extract text from PDF page %s: %s", number, exc)
            raise ExtractionError(f"Could not read page {number} of the PDF file.") from exc
    return texts


def _shape_texts(shapes: Iterable) -> Iterable[str]:
    for shape in shapes:
        if isinstance(shape, GroupShape):
            yield from _shape_texts(shape.shapes)
            continue
        if shape.has_text_frame:
            yield shape.text_frame.text
        elif getattr(shape, "has_table", False):
            for row in shape.table.rows:
                for cell in row.cells:
                    yield cell.text


def _pptx_slides(data: bytes) -> List[str]:
    try:
        prs = Presentation(BytesIO(data))
        slides = list(prs.slides)
    except Exception as exc:
        logger.error("Failed to open PPTX: %s", exc)
        raise ExtractionError("Could not read the PowerPoint file. It may be corrupt.") from exc

    texts: List[str] = []
    for number, slide in enumerate(slides, 1):
        try:
            parts = [t for t in _shape_texts(slide.shapes) if t and t.strip()]
        except Exception as exc:
            logger.error("Failed to extract text from slide %s: %s", number, exc)
            raise ExtractionError(f"Could not read slide {number} of the PowerPoint file.") from exc
        texts.append(normalize_whitespace(" ".join(parts)))
    return texts


def extract_slides(data: bytes, kind: DocumentKind) -> List[SlideText]:
    """Return one SlideText per page/slide, in source order.

    Blank pages are kept as empty strings so slide positions never shift.
    """
    if not data:
        raise EmptyDocumentError("The uploaded file is empty.")
    kind = DocumentKind(kind)
    if kind is DocumentKind.PDF:
        texts = _pdf_pages(data)
    else:
        texts = _pptx_slides(data)
    if not texts:
        raise EmptyDocumentError("The document has no pages or slides.")
    logger.debug("Extracted %d %s slides (%d blank)", len(texts), kind.value, sum(1 for t in texts if not t))
    return [SlideText(index=i, raw_text=t) for i, t in enumerate(texts, 1)]


def extract_file(path: Path) -> List[SlideText]:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ExtractionError(f"Could not read {path.name}: {exc.strerror or exc}") from exc
    return extract_slides(data, detect_kind(path.name))
