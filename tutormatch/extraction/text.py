"""Plain-text extraction from CV documents (PDF, DOCX, UTF-8 text)."""

import io
import logging
from pathlib import PurePath

from docx import Document
from pdfminer.high_level import extract_text as pdf_extract_text

from ..logging import get_logger

logger = get_logger(__name__, component="extraction")

# pdfminer is chatty on malformed fonts
logging.getLogger("pdfminer").setLevel(logging.ERROR)

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MEDIA_TYPE = "text/plain"

_SUFFIX_MEDIA_TYPES = {
    ".pdf": PDF_MEDIA_TYPE,
    ".docx": DOCX_MEDIA_TYPE,
    ".txt": TEXT_MEDIA_TYPE,
}


def infer_media_type(filename: str) -> str:
    """Guess a CV media type from its file name; empty string if unknown."""
    return _SUFFIX_MEDIA_TYPES.get(PurePath(filename or "").suffix.lower(), "")


class TextExtractor:
    """Convert raw CV bytes to text.

    ``extract`` never raises for unreadable or unsupported documents; it
    returns an empty string, which callers treat as "no text available".
    """

    def extract(self, content: bytes, media_type: str = "", filename: str = "") -> str:
        """Extract text from a document.

        Args:
            content: Raw document bytes
            media_type: MIME type if known
            filename: Original file name if known

        Returns:
            Extracted text, or "" when nothing could be read
        """
        if not content:
            return ""

        media_type = (media_type or "").lower()
        suffix = PurePath(filename or "").suffix.lower()

        if media_type == PDF_MEDIA_TYPE or suffix == ".pdf":
            kind, reader = "pdf", self._extract_pdf
        elif "wordprocessingml" in media_type or suffix == ".docx":
            kind, reader = "docx", self._extract_docx
        else:
            kind, reader = "text", self._decode_text

        try:
            return reader(content)
        except Exception as e:
            # Parsers raise arbitrary errors on corrupt input
            logger.warning(
                f"Could not read {kind} document {filename or '<unnamed>'}: {e}",
                extra={
                    "event": f"extraction.{kind}.failed",
                    "document_name": filename,
                    "error_type": type(e).__name__,
                },
            )
            return ""

    def _extract_pdf(self, content: bytes) -> str:
        return (pdf_extract_text(io.BytesIO(content)) or "").strip()

    def _extract_docx(self, content: bytes) -> str:
        document = Document(io.BytesIO(content))
        return "\n".join(paragraph.text for paragraph in document.paragraphs).strip()

    def _decode_text(self, content: bytes) -> str:
        return content.decode("utf-8").strip()
