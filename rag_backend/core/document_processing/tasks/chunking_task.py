"""
Text chunking task using RecursiveCharacterTextSplitter.

Splits extracted text into retrievable chunks and maps each chunk back to
the pages it spans when the text carries [PAGE n] markers.

Dependencies: langchain_text_splitters
System role: Chunking stage of document processing pipeline
"""

import math
from bisect import bisect_right

from langchain_text_splitters import RecursiveCharacterTextSplitter

from rag_backend.core.document_processing.models import Chunk, ExtractedText
from rag_backend.core.document_processing.tasks.extraction_task import PAGE_MARKER


class PageIndex:
    """Character offset -> page number lookup for marker-free text."""

    def __init__(self, offsets: list[int], pages: list[int]) -> None:
        self._offsets = offsets
        self._pages = pages

    def __bool__(self) -> bool:
        return bool(self._pages)

    def page_at(self, offset: int) -> int | None:
        if not self._pages or offset < 0:
            return None
        position = bisect_right(self._offsets, offset) - 1
        return self._pages[max(position, 0)]


def remove_page_markers(text: str) -> tuple[str, PageIndex]:
    """
    Strip [PAGE n] lines, remembering where each page starts in the result.

    Args:
        text: Extracted text, possibly with markers

    Returns:
        (clean text, page index over the clean text)
    """
    parts: list[str] = []
    offsets: list[int] = []
    pages: list[int] = []
    length = 0
    position = 0
    for match in PAGE_MARKER.finditer(text):
        segment = text[position:match.start()]
        parts.append(segment)
        length += len(segment)
        offsets.append(length)
        pages.append(int(match.group(1)))
        position = match.end()
    parts.append(text[position:])
    return "".join(parts), PageIndex(offsets, pages)


class ChunkingTask:
    """Split extracted text into Chunks."""

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        chars_per_token: int = 4,
    ) -> None:
        """
        Initialize chunking task with splitter configuration.

        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Overlap between consecutive chunks
            chars_per_token: Ratio used for approximate token counts
        """
        self._chars_per_token = chars_per_token
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            add_start_index=True,
            length_function=len,
        )

    def estimate_tokens(self, content: str) -> int:
        return math.ceil(len(content) / self._chars_per_token)

    def chunk(self, extracted: ExtractedText) -> list[Chunk]:
        """
        Split text into chunks.

        Args:
            extracted: Extraction stage output

        Returns:
            list[Chunk]: Ordered chunks without embeddings (empty if the text is blank)
        """
        if extracted.has_page_markers:
            clean_text, page_index = remove_page_markers(extracted.text)
        else:
            clean_text, page_index = extracted.text, PageIndex([], [])
        has_page_data = bool(page_index)

        chunks = []
        for document in self._splitter.create_documents([clean_text]):
            content = document.page_content
            if not content.strip():
                continue
            start = document.metadata.get("start_index", -1)
            end = start + len(content) - 1 if start >= 0 else -1
            chunks.append(
                Chunk(
                    chunk_index=len(chunks),
                    content=content,
                    token_count=self.estimate_tokens(content),
                    page_start=page_index.page_at(start) if has_page_data else None,
                    page_end=page_index.page_at(end) if has_page_data else None,
                    has_page_data=has_page_data,
                )
            )
        return chunks
