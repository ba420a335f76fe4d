"""Prompt template for grounded question answering.

The template has three named slots: the system instructions, the context
block built from retrieved chunks, and the user's question. Swap any of
them by constructing a different ``PromptTemplate``.
"""

from typing import Iterable

from pydantic import BaseModel

from schemas.chunk import QueryResult

# ---------------------------------------------------------------------------
# Answer synthesis: grounded answer generation
# ---------------------------------------------------------------------------

ANSWER_SYSTEM = """\
You are a helpful customer support chatbot. \
Use the provided context to answer the user's question as accurately as possible. \
If the answer is not in the context, say you don't know. \
Prefer structured answers. \
Do not make up information. \
Do not use technical jargon, or variable names passed to you."""

ANSWER_USER = """\
Context:
{context}

User question: {question}"""

CONTEXT_ENTRY = "Context {index} (from: {title}):\n{content}"
CONTEXT_SEPARATOR = "\n\n"


def build_context(results: Iterable[QueryResult], entry: str = CONTEXT_ENTRY) -> str:
    """Label each retrieved chunk and join them in the store's order.

    No results gives an empty string.
    """
    return CONTEXT_SEPARATOR.join(
        entry.format(index=i, title=r.title, content=r.content)
        for i, r in enumerate(results, 1)
    )


class PromptTemplate(BaseModel):
    system: str = ANSWER_SYSTEM
    user: str = ANSWER_USER
    context_entry: str = CONTEXT_ENTRY

    def render_context(self, results: Iterable[QueryResult]) -> str:
        return build_context(results, self.context_entry)

    def build_messages(self, context: str, question: str) -> list[dict]:
        """Two-message chat prompt: system instructions, then context + question."""
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user.format(context=context, question=question)},
        ]


DEFAULT_TEMPLATE = PromptTemplate()
