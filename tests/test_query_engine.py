"""Tests for the RAG query engine and prompt assembly."""

from unittest.mock import MagicMock

import pytest

from conftest import FakeEmbedder, FakeLLM, FakeStore
from rag.prompts import ANSWER_SYSTEM, PromptTemplate, build_context
from rag.query_engine import QueryEngine
from schemas.chunk import QueryResult
from vectorstore.embedder import EmbeddingError


def _result(title: str, content: str, rank: int, index: int = 0) -> QueryResult:
    return QueryResult(title=title, content=content, chunk_index=index, similarity_rank=rank)


REFUNDS = _result("Refunds", "Refunds We refund within 30 days", 1)
SHIPPING = _result("Shipping", "Shipping We ship worldwide", 2)


class TestBuildContext:

    def test_single_result(self):
        assert build_context([REFUNDS]) == "Context 1 (from: Refunds):\nRefunds We refund within 30 days"

    def test_preserves_store_order(self):
        context = build_context([SHIPPING, REFUNDS])
        assert context == (
            "Context 1 (from: Shipping):\nShipping We ship worldwide"
            "\n\n"
            "Context 2 (from: Refunds):\nRefunds We refund within 30 days"
        )

    def test_no_results_is_empty(self):
        assert build_context([]) == ""


class TestPromptTemplate:

    def test_default_messages(self):
        messages = PromptTemplate().build_messages("CTX", "refund policy")

        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[0]["content"] == ANSWER_SYSTEM
        assert messages[1]["content"] == "Context:\nCTX\n\nUser question: refund policy"

    def test_system_instructions_constrain_answer(self):
        assert "say you don't know" in ANSWER_SYSTEM
        assert "Prefer structured answers" in ANSWER_SYSTEM
        assert "variable names" in ANSWER_SYSTEM

    def test_slots_can_be_replaced(self):
        template = PromptTemplate(
            system="Be terse.",
            user="Q: {question}\nDocs:\n{context}",
            context_entry="[{index}] {title}: {content}",
        )
        context = template.render_context([REFUNDS])
        messages = template.build_messages(context, "refunds?")

        assert context == "[1] Refunds: Refunds We refund within 30 days"
        assert messages[0]["content"] == "Be terse."
        assert messages[1]["content"] == "Q: refunds?\nDocs:\n[1] Refunds: Refunds We refund within 30 days"


class TestQueryEngine:

    def test_answers_with_retrieved_context(self):
        embedder, store, llm = FakeEmbedder(), FakeStore(results=[REFUNDS]), FakeLLM("Within 30 days.")
        engine = QueryEngine(embedder, store, llm, top_k=5)

        result = engine.answer("refund policy")

        assert result.answer == "Within 30 days."
        assert result.sources[0].title == "Refunds"
        assert result.context == "Context 1 (from: Refunds):\nRefunds We refund within 30 days"
        assert embedder.calls == ["refund policy"]
        assert store.queries[0][1] == 5
        user_message = llm.calls[0]["messages"][1]["content"]
        assert user_message.endswith("User question: refund policy")
        assert result.context in user_message

    def test_generation_parameters(self):
        llm = FakeLLM()
        engine = QueryEngine(FakeEmbedder(), FakeStore(), llm)

        engine.answer("anything")

        assert llm.calls[0]["temperature"] == 0.2
        assert llm.calls[0]["max_tokens"] == 512

    def test_top_k_limits_results(self):
        store = FakeStore(results=[REFUNDS, SHIPPING])
        engine = QueryEngine(FakeEmbedder(), store, FakeLLM(), top_k=1)

        result = engine.answer("refunds")

        assert [r.title for r in result.sources] == ["Refunds"]

    def test_empty_retrieval_still_calls_model(self):
        llm = FakeLLM("I don't know.")
        engine = QueryEngine(FakeEmbedder(), FakeStore(results=[]), llm)

        result = engine.answer("refund policy")

        assert result.context == ""
        assert len(llm.calls) == 1
        messages = llm.calls[0]["messages"]
        assert messages[0]["content"] == ANSWER_SYSTEM
        assert messages[1]["content"] == "Context:\n\n\nUser question: refund policy"
        assert result.answer == "I don't know."

    def test_store_failure_degrades_to_no_context(self):
        llm = FakeLLM()
        engine = QueryEngine(FakeEmbedder(), FakeStore(query_error="timeout"), llm)

        result = engine.answer("refund policy")

        assert result.context == ""
        assert result.metadata["retrieval_ok"] is False
        assert result.metadata["retrieval_error"] == "timeout"
        assert len(llm.calls) == 1

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_empty_query_rejected_before_any_call(self, query):
        embedder, store, llm = FakeEmbedder(), FakeStore(), FakeLLM()
        engine = QueryEngine(embedder, store, llm)

        with pytest.raises(ValueError):
            engine.answer(query)

        assert embedder.calls == [] and store.queries == [] and llm.calls == []

    def test_embedding_failure_aborts_query(self):
        llm = FakeLLM()
        engine = QueryEngine(FakeEmbedder(fail_on="refund"), FakeStore(), llm)

        with pytest.raises(EmbeddingError):
            engine.answer("refund policy")
        assert llm.calls == []

    def test_generation_failure_propagates(self):
        llm = MagicMock(provider="openai", model="m")
        llm.complete.side_effect = RuntimeError("model down")
        engine = QueryEngine(FakeEmbedder(), FakeStore(), llm)

        with pytest.raises(RuntimeError, match="model down"):
            engine.answer("refund policy")

    def test_answer_returned_verbatim(self):
        reply = "  **Steps**\n1. Open settings\n"
        engine = QueryEngine(FakeEmbedder(), FakeStore(), FakeLLM(reply))
        assert engine.answer("how").answer == reply
