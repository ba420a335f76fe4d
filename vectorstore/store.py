"""ChromaDB-backed chunk store.

Chunks are appended as new records with their embedding and metadata;
similarity search is delegated entirely to ChromaDB. Neither ``insert`` nor
``query_nearest`` raises: failures come back as ``InsertResult`` /
``QueryOutcome`` with ``ok=False`` so callers can tell them apart from an
empty match.
"""

import hashlib
import logging
import uuid
from typing import Optional

import chromadb
from chromadb.config import Settings as ChromaSettings

from schemas.chunk import Chunk, InsertResult, QueryOutcome, QueryResult

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "article_chunks"


def make_client(
    path: str = "data/chroma",
    host: Optional[str] = None,
    port: int = 8000,
):
    """Build a ChromaDB client: HTTP when a host is given, else on-disk."""
    settings = ChromaSettings(anonymized_telemetry=False)
    if host:
        return chromadb.HttpClient(host=host, port=port, settings=settings)
    return chromadb.PersistentClient(path=path, settings=settings)


class VectorStore:
    """Append-only (or optionally upserting) store of embedded chunks."""

    def __init__(
        self,
        client=None,
        collection_name: str = DEFAULT_COLLECTION,
        dimensions: Optional[int] = None,
        mode: str = "append",
    ):
        if mode not in ("append", "upsert"):
            raise ValueError(f"Unsupported store mode: {mode}")
        self.client = client if client is not None else make_client()
        self.collection_name = collection_name
        self.dimensions = dimensions
        self.mode = mode
        self.collection = self.client.get_or_create_collection(
            name=collection_name,
            metadata={"hnsw:space": "cosine"},
            embedding_function=None,
        )

    def _record_id(self, chunk: Chunk) -> str:
        if self.mode == "upsert":
            key = f"{chunk.source_url}:{chunk.chunk_index}"
            return "chunk-" + hashlib.sha256(key.encode()).hexdigest()[:16]
        return "chunk-" + uuid.uuid4().hex

    def insert(self, chunk: Chunk) -> InsertResult:
        """Persist one chunk. Append mode never replaces existing records."""
        if not chunk.embedding:
            logger.error("Refusing to store chunk %d of %s without an embedding",
                         chunk.chunk_index, chunk.source_url)
            return InsertResult(ok=False, error="missing embedding")
        if self.dimensions is not None and len(chunk.embedding) != self.dimensions:
            logger.error(
                "Refusing to store %d-dimensional embedding (expected %d) for %s",
                len(chunk.embedding), self.dimensions, chunk.source_url,
            )
            return InsertResult(ok=False, error="embedding dimensionality mismatch")

        record_id = self._record_id(chunk)
        kwargs = dict(
            ids=[record_id],
            embeddings=[chunk.embedding],
            documents=[chunk.content],
            metadatas=[chunk.metadata()],
        )
        try:
            if self.mode == "upsert":
                self.collection.upsert(**kwargs)
            else:
                self.collection.add(**kwargs)
        except Exception as e:
            logger.error("Error storing chunk %d of %s: %s", chunk.chunk_index, chunk.source_url, e)
            return InsertResult(ok=False, error=str(e))
        return InsertResult(ok=True, record_id=record_id)

    def query_nearest(self, embedding: list[float], k: int) -> QueryOutcome:
        """Return up to ``k`` stored chunks ranked by similarity to ``embedding``."""
        if k <= 0:
            return QueryOutcome(ok=True)
        if self.dimensions is not None and len(embedding) != self.dimensions:
            logger.error(
                "Query embedding has %d dimensions, expected %d",
                len(embedding), self.dimensions,
            )
            return QueryOutcome(ok=False, error="embedding dimensionality mismatch")

        try:
            raw = self.collection.query(
                query_embeddings=[embedding],
                n_results=k,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            logger.error("Error querying vector store: %s", e)
            return QueryOutcome(ok=False, error=str(e))

        results: list[QueryResult] = []
        if raw and raw.get("ids") and raw["ids"][0]:
            documents = raw["documents"][0]
            metadatas = raw["metadatas"][0]
            distances = (raw.get("distances") or [[None] * len(documents)])[0]
            for i, doc in enumerate(documents):
                results.append(QueryResult.from_chroma_result(
                    rank=i + 1,
                    doc=doc,
                    meta=metadatas[i],
                    distance=distances[i],
                ))
        return QueryOutcome(ok=True, results=results)

    def count(self) -> int:
        return self.collection.count()

    def get_stats(self) -> dict:
        return {self.collection_name: {"count": self.count(), "mode": self.mode}}
