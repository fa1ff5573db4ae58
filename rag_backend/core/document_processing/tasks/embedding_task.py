"""
Embedding generation task.

Embeds chunks one at a time through a LangChain Embeddings implementation.
The first failure aborts the whole batch; callers never see partial output.

Dependencies: langchain_core
System role: Embedding stage of document processing pipeline
"""

import logging

from langchain_core.embeddings import Embeddings

from rag_backend.core.document_processing.models import Chunk
from rag_backend.core.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingTask:
    """Attach embeddings to chunks, sequentially."""

    def __init__(self, embeddings: Embeddings, dimension: int = 768) -> None:
        """
        Args:
            embeddings: LangChain embeddings (FixedDimensionEmbeddings in production)
            dimension: Required vector length
        """
        self._embeddings = embeddings
        self._dimension = dimension

    async def embed(self, chunks: list[Chunk]) -> list[Chunk]:
        """
        Generate an embedding for every chunk.

        Args:
            chunks: Chunks from the chunking stage

        Returns:
            list[Chunk]: New chunk objects carrying embeddings, same order

        Raises:
            EmbeddingError: Any call fails or returns a malformed vector
        """
        embedded = []
        for chunk in chunks:
            try:
                vectors = await self._embeddings.aembed_documents([chunk.content])
            except Exception as e:
                raise EmbeddingError(
                    f"Embedding failed on chunk {chunk.chunk_index + 1}/{len(chunks)}: "
                    f"{type(e).__name__}: {e}",
                    details={"chunk_index": chunk.chunk_index},
                ) from e

            vector = vectors[0] if vectors else []
            if len(vector) != self._dimension:
                raise EmbeddingError(
                    f"Embedding for chunk {chunk.chunk_index + 1}/{len(chunks)} has "
                    f"{len(vector)} dimensions, expected {self._dimension}",
                    details={"chunk_index": chunk.chunk_index},
                )
            embedded.append(chunk.model_copy(update={"embedding": list(vector)}))

        logger.info(
            f"{__name__}:embed - Embedded chunks",
            extra={"chunks": len(embedded), "dimension": self._dimension},
        )
        return embedded
