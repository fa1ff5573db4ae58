"""
Text extraction task.

Turns stored document bytes into plain text. PDFs are annotated with
"[PAGE n]" lines so chunking can record page ranges.

- LocalTextExtractor: PyPDFLoader for PDFs, UTF-8 decoding for text formats
- GeminiTextExtractor: multimodal Gemini extraction, also covering spreadsheets

Dependencies: langchain_community, langchain_core, langchain_google_genai, pypdf
System role: Extraction stage of document processing pipeline
"""

import asyncio
import base64
import logging
import os
import re
import shutil
import tempfile
from typing import Protocol

from langchain_community.document_loaders import PyPDFLoader
from langchain_core.messages import HumanMessage

from rag_backend.core.document_processing.models import ExtractedText
from rag_backend.core.exceptions import ExtractionError

logger = logging.getLogger(__name__)

PAGE_MARKER = re.compile(r"^\[PAGE (\d+)\]\n?", re.MULTILINE)

PDF_MIME = "application/pdf"
TEXT_MIME_TYPES = {"text/plain", "text/markdown", "text/csv"}
SPREADSHEET_MIME_TYPES = {
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

_SPREADSHEET_PROMPT = (
    "Extract all content from this spreadsheet.\n"
    "Convert tables to markdown table format with | separators.\n"
    "Preserve headers and data structure.\n"
    "Return only the extracted content, no explanations."
)
_DOCUMENT_PROMPT = (
    "Extract all the text from this document.\n"
    "Return only the text content.\n"
    "Do not include any markdown formatting or introductory text, just the raw content."
)
_PDF_PROMPT = (
    _DOCUMENT_PROMPT
    + "\nBegin the text of every page with a line of the form [PAGE n], n being the page number."
)


class TextExtractor(Protocol):
    """Bytes in, text (optionally page-annotated) out."""

    async def extract(self, data: bytes, filename: str, mime_type: str) -> ExtractedText:
        ...


def strip_page_markers(text: str) -> str:
    return PAGE_MARKER.sub("", text)


def validate_extracted_text(
    extracted: ExtractedText,
    size_bytes: int,
    mime_type: str,
    min_chars: int = 50,
) -> ExtractedText:
    """
    Reject extraction output that cannot produce useful chunks.

    Args:
        extracted: Extractor output
        size_bytes: Size of the source object
        mime_type: Source content type
        min_chars: Minimum meaningful characters

    Returns:
        ExtractedText: The input, unchanged

    Raises:
        ExtractionError: Image-only PDF or too little text
    """
    content = strip_page_markers(extracted.text).strip()
    bytes_per_char = size_bytes / max(len(content), 1)

    if bytes_per_char > 1000 and len(content) < 100:
        raise ExtractionError(
            "This PDF appears to contain only images. "
            "Text-based PDFs are required for embedding. "
            "Please upload a PDF with selectable text.",
            mime_type=mime_type,
            details={"size_bytes": size_bytes, "chars": len(content)},
        )
    if len(content) < min_chars:
        raise ExtractionError(
            "No text extracted from document. "
            "This may be a scanned PDF containing only images. "
            "Please upload a text-based PDF.",
            mime_type=mime_type,
            details={"chars": len(content)},
        )
    return extracted


def _join_pages(pages: list[str]) -> str:
    return "\n\n".join(f"[PAGE {number}]\n{page.strip()}" for number, page in enumerate(pages, start=1))


class LocalTextExtractor:
    """Extract text without any remote model."""

    def __init__(self, supported_mime_types: list[str] | None = None) -> None:
        self._supported = set(supported_mime_types or [PDF_MIME, *TEXT_MIME_TYPES])

    async def extract(self, data: bytes, filename: str, mime_type: str) -> ExtractedText:
        """
        Extract text from bytes.

        Raises:
            ExtractionError: Unsupported type or unreadable content
        """
        if mime_type not in self._supported:
            raise ExtractionError(f"Unsupported file type: {mime_type}", mime_type=mime_type)

        if mime_type == PDF_MIME:
            return await asyncio.to_thread(self._extract_pdf, data, filename)
        if mime_type in TEXT_MIME_TYPES:
            return ExtractedText(text=data.decode("utf-8", errors="replace"))
        raise ExtractionError(
            f"{mime_type} requires the gemini extractor backend",
            mime_type=mime_type,
        )

    def _extract_pdf(self, data: bytes, filename: str) -> ExtractedText:
        # PyPDFLoader reads from a path
        temp_dir = tempfile.mkdtemp(prefix="doc_extract_")
        local_path = os.path.join(temp_dir, os.path.basename(filename) or "document.pdf")
        try:
            with open(local_path, "wb") as handle:
                handle.write(data)
            pages = PyPDFLoader(local_path).load()
        except Exception as e:
            raise ExtractionError(f"Failed to parse PDF: {e}", mime_type=PDF_MIME) from e
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

        if not pages:
            raise ExtractionError("PDF document contains no pages", mime_type=PDF_MIME)

        logger.info(
            f"{__name__}:_extract_pdf - Parsed PDF",
            extra={"doc_filename": filename, "pages": len(pages)},
        )
        return ExtractedText(
            text=_join_pages([page.page_content for page in pages]),
            has_page_markers=True,
            page_count=len(pages),
        )


class GeminiTextExtractor:
    """Extract text with a multimodal Gemini chat model."""

    def __init__(self, llm, supported_mime_types: list[str] | None = None) -> None:
        """
        Args:
            llm: A langchain chat model accepting media content blocks
                (ChatGoogleGenerativeAI in production)
            supported_mime_types: Accepted content types
        """
        self._llm = llm
        self._supported = set(
            supported_mime_types or [PDF_MIME, *TEXT_MIME_TYPES, *SPREADSHEET_MIME_TYPES]
        )

    @classmethod
    def from_settings(cls, model_id: str, supported_mime_types: list[str]) -> "GeminiTextExtractor":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return cls(ChatGoogleGenerativeAI(model=model_id, temperature=0), supported_mime_types)

    @staticmethod
    def prompt_for(mime_type: str) -> str:
        if mime_type in SPREADSHEET_MIME_TYPES or mime_type == "text/csv":
            return _SPREADSHEET_PROMPT
        if mime_type == PDF_MIME:
            return _PDF_PROMPT
        return _DOCUMENT_PROMPT

    async def extract(self, data: bytes, filename: str, mime_type: str) -> ExtractedText:
        if mime_type not in self._supported:
            raise ExtractionError(f"Unsupported file type: {mime_type}", mime_type=mime_type)

        message = HumanMessage(
            content=[
                {
                    "type": "media",
                    "mime_type": mime_type,
                    "data": base64.b64encode(data).decode("ascii"),
                },
                {"type": "text", "text": self.prompt_for(mime_type)},
            ]
        )
        try:
            response = await self._llm.ainvoke([message])
        except Exception as e:
            raise ExtractionError(
                f"Gemini extraction failed: {type(e).__name__}: {e}",
                mime_type=mime_type,
            ) from e

        text = response.content if isinstance(response.content, str) else str(response.content)
        has_markers = bool(PAGE_MARKER.search(text))
        logger.info(
            f"{__name__}:extract - Extracted text",
            extra={"doc_filename": filename, "chars": len(text), "page_markers": has_markers},
        )
        return ExtractedText(text=text, has_page_markers=has_markers)
