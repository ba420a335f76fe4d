"""OpenAI-compatible embedding generator.

Talks to any endpoint implementing the OpenAI embeddings API (set
``base_url`` for self-hosted models). Every vector is requested with a
fixed ``dimensions`` and checked against it, so all stored and queried
embeddings share one dimensionality.
"""

import logging
import time
from typing import Optional

import openai
import tiktoken
from openai import OpenAI

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"
DEFAULT_DIMENSIONS = 768
MAX_TOKENS_PER_TEXT = 8000  # model limit is 8192; leave margin


class EmbeddingError(Exception):
    """The embedding service failed or returned an unusable vector."""


class Embedder:
    """Generate embeddings through an OpenAI-compatible endpoint."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[OpenAI] = None,
        max_input_tokens: Optional[int] = MAX_TOKENS_PER_TEXT,
    ):
        self.model = model
        self.dimensions = dimensions
        self.max_input_tokens = max_input_tokens
        self.client = client or OpenAI(api_key=api_key, base_url=base_url)
        self._encoder: Optional[tiktoken.Encoding] = None

    def _get_encoder(self) -> tiktoken.Encoding:
        if self._encoder is None:
            try:
                self._encoder = tiktoken.encoding_for_model(self.model)
            except KeyError:
                # Self-hosted models are unknown to tiktoken
                self._encoder = tiktoken.get_encoding("cl100k_base")
        return self._encoder

    def _truncate_text(self, text: str) -> str:
        """Truncate text to fit within the embedding model's token limit."""
        if self.max_input_tokens is None:
            return text
        encoder = self._get_encoder()
        tokens = encoder.encode(text)
        if len(tokens) <= self.max_input_tokens:
            return text
        logger.warning(
            "Truncating text from %d to %d tokens (first 60 chars: '%.60s')",
            len(tokens), self.max_input_tokens, text,
        )
        return encoder.decode(tokens[:self.max_input_tokens])

    def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingError: on tokenizer or transport/service failure, an empty
                response, a null or non-numeric vector, or a vector whose
                length differs from ``dimensions``.
        """
        t0 = time.perf_counter()
        try:
            text = self._truncate_text(text)
        except Exception as e:
            logger.error("Error preparing text for embedding: %s", e)
            raise EmbeddingError(f"Could not tokenize input: {e}") from e

        try:
            response = self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimensions,
            )
        except openai.OpenAIError as e:
            logger.error("Error getting embedding: %s", e)
            raise EmbeddingError(str(e)) from e

        if not response.data:
            raise EmbeddingError("Embedding service returned no data")

        try:
            embedding = [float(x) for x in response.data[0].embedding]
        except (TypeError, ValueError) as e:
            raise EmbeddingError(f"Embedding service returned an unusable vector: {e}") from e
        if len(embedding) != self.dimensions:
            raise EmbeddingError(
                f"Expected {self.dimensions}-dimensional embedding, got {len(embedding)}"
            )

        logger.debug("Embedded %d chars in %.2fs", len(text), time.perf_counter() - t0)
        return embedding
