"""Tests for chunk and query result models."""

import pytest
from pydantic import ValidationError

from schemas.chunk import Chunk, QueryResult


class TestChunk:

    def test_index_must_be_below_total(self):
        with pytest.raises(ValidationError):
            Chunk(content="x", source_url="u", chunk_index=2, total_chunks=2)

    def test_content_must_not_be_empty(self):
        with pytest.raises(ValidationError):
            Chunk(content="", source_url="u", chunk_index=0, total_chunks=1)

    def test_metadata_excludes_embedding(self):
        chunk = Chunk(content="x", source_url="u", title="T", chunk_index=0, total_chunks=1, embedding=[0.1])
        assert chunk.metadata() == {"source_url": "u", "title": "T", "chunk_index": 0, "total_chunks": 1}


class TestQueryResult:

    def test_from_chroma_result_tolerates_missing_metadata(self):
        result = QueryResult.from_chroma_result(rank=1, doc="text", meta=None, distance=0.25)
        assert result.title == ""
        assert result.chunk_index == 0
        assert result.distance == 0.25
