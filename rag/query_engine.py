"""RAG query engine: embed → retrieve → assemble context → generate.

One question per call, strictly in that order. The store's ranking is
used as-is. When nothing is retrieved the model is still asked, with an
empty context, so it can say it doesn't know.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from rag.llm_client import LLMClient
from rag.prompts import DEFAULT_TEMPLATE, PromptTemplate
from schemas.chunk import QueryResult
from vectorstore.embedder import Embedder
from vectorstore.store import VectorStore

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 5
DEFAULT_MAX_TOKENS = 512
DEFAULT_TEMPERATURE = 0.2


@dataclass
class QueryAnswer:
    """Complete result of a RAG query."""
    query: str
    answer: str
    context: str
    sources: list[QueryResult]
    metadata: dict = field(default_factory=dict)  # timings, retrieval stats, model info


class QueryEngine:
    """Orchestrates the RAG query pipeline."""

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        llm: LLMClient,
        top_k: int = DEFAULT_TOP_K,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        template: Optional[PromptTemplate] = None,
    ):
        self.embedder = embedder
        self.store = store
        self.llm = llm
        self.top_k = top_k
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.template = template or DEFAULT_TEMPLATE

    def retrieve(self, query: str) -> tuple[list[QueryResult], dict]:
        """Embed the query and fetch the nearest chunks.

        Embedding failures propagate; store failures degrade to no context.
        """
        embedding = self.embedder.embed(query)
        outcome = self.store.query_nearest(embedding, self.top_k)
        if not outcome.ok:
            logger.warning("Retrieval failed, answering without context: %s", outcome.error)
        return outcome.results, {"retrieval_ok": outcome.ok, "retrieval_error": outcome.error}

    def answer(self, query: str) -> QueryAnswer:
        """Execute the full RAG query pipeline.

        Raises:
            ValueError: if the query is empty.
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("Query text must not be empty")

        t_start = time.time()
        metadata: dict = {"timings": {}}
        logger.info("User query: %s", query)

        t1 = time.time()
        results, retrieval_meta = self.retrieve(query)
        metadata.update(retrieval_meta)
        metadata["timings"]["retrieval_ms"] = int((time.time() - t1) * 1000)
        metadata["chunks_retrieved"] = len(results)
        logger.info("Results: %d", len(results))

        context = self.template.render_context(results)
        messages = self.template.build_messages(context, query)

        t2 = time.time()
        answer = self.llm.complete(
            messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        metadata["timings"]["generation_ms"] = int((time.time() - t2) * 1000)
        metadata["llm_provider"] = self.llm.provider
        metadata["llm_model"] = self.llm.model
        metadata["timings"]["total_ms"] = int((time.time() - t_start) * 1000)

        return QueryAnswer(
            query=query,
            answer=answer,
            context=context,
            sources=results,
            metadata=metadata,
        )
