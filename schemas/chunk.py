"""Pydantic models for stored chunks and nearest-neighbor query results."""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class Chunk(BaseModel):
    content: str = Field(min_length=1, description="Chunk text prefixed with the article title")
    source_url: str
    title: str = ""
    chunk_index: int = Field(ge=0)
    total_chunks: int = Field(ge=1)
    embedding: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_index(self) -> "Chunk":
        if self.chunk_index >= self.total_chunks:
            raise ValueError(
                f"chunk_index {self.chunk_index} out of range for {self.total_chunks} chunks"
            )
        return self

    def metadata(self) -> dict:
        """Flat metadata dict suitable for the vector store."""
        return {
            "source_url": self.source_url,
            "title": self.title,
            "chunk_index": self.chunk_index,
            "total_chunks": self.total_chunks,
        }


class QueryResult(BaseModel):
    """One row returned by the store's nearest-neighbor query."""
    title: str = ""
    content: str
    chunk_index: int = 0
    similarity_rank: int = Field(ge=1, description="1-based position in the store's ranking")
    source_url: str = ""
    distance: Optional[float] = None

    @classmethod
    def from_chroma_result(
        cls, rank: int, doc: str, meta: Optional[dict], distance: Optional[float]
    ) -> "QueryResult":
        meta = meta or {}
        return cls(
            title=meta.get("title", ""),
            content=doc,
            chunk_index=meta.get("chunk_index", 0),
            similarity_rank=rank,
            source_url=meta.get("source_url", ""),
            distance=distance,
        )


class InsertResult(BaseModel):
    """Outcome of a single store insert: the stored record id, or an error."""
    ok: bool
    record_id: Optional[str] = None
    error: Optional[str] = None


class QueryOutcome(BaseModel):
    """Outcome of a nearest-neighbor query.

    ``results`` is empty both when nothing matched and when the query failed;
    ``ok``/``error`` tell the two apart.
    """
    ok: bool
    results: List[QueryResult] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.results
