"""Recursive separator chunking for article text.

Text is split on the coarsest separator present (paragraph break, line
break, sentence punctuation, comma, space, and finally individual
characters) and only pieces that are still too large are split again with
the next separator. The small pieces are then merged back into chunks of
at most ``chunk_size`` units, each chunk starting with up to
``chunk_overlap`` units carried over from the end of the previous one.

Length is measured in characters by default, or in embedding-model tokens
when ``unit="tokens"``.
"""

import logging
import re
from typing import Callable, Optional

import tiktoken

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Token counter (shared encoder instance)
# ---------------------------------------------------------------------------
_ENCODER: Optional[tiktoken.Encoding] = None


def _get_encoder() -> tiktoken.Encoding:
    global _ENCODER
    if _ENCODER is None:
        _ENCODER = tiktoken.get_encoding("cl100k_base")
    return _ENCODER


def count_tokens(text: str) -> int:
    return len(_get_encoder().encode(text))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CHUNK_SIZE = 500
DEFAULT_CHUNK_OVERLAP = 100

# Separators in priority order for recursive splitting
SEPARATORS = ["\n\n", "\n", ".", "!", "?", ",", " ", ""]


class Chunker:
    """Splits text into ordered, overlapping chunks."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP,
        separators: Optional[list[str]] = None,
        unit: str = "characters",
        keep_separator: str = "end",
    ):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(
                f"Overlap ({chunk_overlap}) must be in [0, chunk size ({chunk_size}))"
            )
        if unit not in ("characters", "tokens"):
            raise ValueError(f"unit must be 'characters' or 'tokens', got {unit!r}")
        if keep_separator not in ("start", "end"):
            raise ValueError(f"keep_separator must be 'start' or 'end', got {keep_separator!r}")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = list(separators) if separators is not None else list(SEPARATORS)
        self.unit = unit
        self.keep_separator = keep_separator
        self._length: Callable[[str], int] = len if unit == "characters" else count_tokens

    def split(self, text: str) -> list[str]:
        """Split text into chunks. Identical input always yields identical output."""
        if not text or not text.strip():
            return []
        return self._recursive_split(text, self.separators)

    # -------------------------------------------------------------------
    # Core splitting utilities
    # -------------------------------------------------------------------

    def _recursive_split(self, text: str, separators: list[str]) -> list[str]:
        # Pick the first separator that actually occurs in the text
        separator = separators[-1] if separators else ""
        remaining: list[str] = []
        for i, sep in enumerate(separators):
            if sep == "":
                separator = sep
                break
            if sep in text:
                separator = sep
                remaining = separators[i + 1:]
                break

        chunks: list[str] = []
        pending: list[str] = []
        for piece in self._split_keep_separator(text, separator, self.keep_separator):
            if self._length(piece) < self.chunk_size:
                pending.append(piece)
                continue

            if pending:
                chunks.extend(self._merge_splits(pending))
                pending = []
            if remaining:
                chunks.extend(self._recursive_split(piece, remaining))
            else:
                # Nothing finer to split on: keep the oversized piece whole
                stripped = piece.strip()
                if stripped:
                    chunks.append(stripped)

        if pending:
            chunks.extend(self._merge_splits(pending))
        return chunks

    @staticmethod
    def _split_keep_separator(text: str, separator: str, position: str = "end") -> list[str]:
        """Split on a separator, keeping it on the end of each piece or the start of the next."""
        if separator == "":
            return list(text)
        parts = re.split(f"({re.escape(separator)})", text)
        if position == "start":
            pieces = [parts[0]] + [parts[i] + parts[i + 1] for i in range(1, len(parts) - 1, 2)]
        else:
            pieces = [parts[i] + parts[i + 1] for i in range(0, len(parts) - 1, 2)]
            pieces.append(parts[-1])
        return [p for p in pieces if p != ""]

    def _merge_splits(self, splits: list[str]) -> list[str]:
        """Merge small splits into chunks respecting the size limit with overlap."""
        chunks: list[str] = []
        current: list[str] = []
        total = 0

        for piece in splits:
            piece_len = self._length(piece)

            if total + piece_len > self.chunk_size and current:
                chunk_text = "".join(current).strip()
                if chunk_text:
                    chunks.append(chunk_text)

                # Overlap: drop leading pieces until what's left fits the
                # overlap budget and leaves room for the next piece
                while total > self.chunk_overlap or (
                    total + piece_len > self.chunk_size and total > 0
                ):
                    total -= self._length(current[0])
                    current.pop(0)

            current.append(piece)
            total += piece_len

        chunk_text = "".join(current).strip()
        if chunk_text:
            chunks.append(chunk_text)
        return chunks
