"""Shared fixtures: in-memory stand-ins for the external services."""

import pytest

from schemas.chunk import InsertResult, QueryOutcome
from vectorstore.embedder import EmbeddingError

DIMENSIONS = 8


class FakeEmbedder:
    """Deterministic embedder; raises for any text containing a marker."""

    def __init__(self, dimensions: int = DIMENSIONS, fail_on: str = None):
        self.dimensions = dimensions
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingError("service unavailable")
        seed = sum(ord(c) for c in text)
        return [float((seed * (i + 1)) % 97) for i in range(self.dimensions)]


class FakeStore:
    """Records inserted chunks and serves canned query results."""

    def __init__(self, results=None, fail_insert_on: str = None, query_error: str = None):
        self.inserted = []
        self.results = results or []
        self.fail_insert_on = fail_insert_on
        self.query_error = query_error
        self.queries = []

    def insert(self, chunk) -> InsertResult:
        if self.fail_insert_on and self.fail_insert_on in chunk.content:
            return InsertResult(ok=False, error="write rejected")
        self.inserted.append(chunk)
        return InsertResult(ok=True, record_id=f"chunk-{len(self.inserted)}")

    def query_nearest(self, embedding, k) -> QueryOutcome:
        self.queries.append((embedding, k))
        if self.query_error:
            return QueryOutcome(ok=False, error=self.query_error)
        return QueryOutcome(ok=True, results=self.results[:k])


class FakeLLM:
    provider = "fake"
    model = "fake-model"

    def __init__(self, reply: str = "Answer."):
        self.reply = reply
        self.calls = []

    def complete(self, messages, max_tokens=512, temperature=0.2):
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        return self.reply


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def article_html():
    return """
    <html><head><title>Help Center</title></head>
    <body>
      <nav><a href="/en">Home</a></nav>
      <h1><span>Refunds</span></h1>
      <div class="kb-article tinymce-content">
        <h1>Refunds</h1>
        <p>We refund   within
           30 days.</p>
        <img src="/a.png" alt="diagram">
        <figure><img src="/b.png"><figcaption>Caption</figcaption></figure>
        <video src="/clip.mp4"></video>
        <p>Contact support for help.</p>
      </div>
    </body></html>
    """
