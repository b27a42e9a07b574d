"""
CoNekt — Text Similarity Scorer

Scores the overlap of two free-text answers as the Jaccard coefficient of
their word sets:

  tokens(t)      = {w.lower() for w in t.split() if len(w) > 2}
  similarity(a,b) = |tokens(a) ∩ tokens(b)| / |tokens(a) ∪ tokens(b)|

Dropping words of two characters or fewer removes most stop-word noise
("a", "to", "of", "in") without carrying a stop-word list.  Absent or blank
inputs score 0.
"""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")

_MIN_TOKEN_LENGTH = 3


class SimilarityService:
    """Pure word-overlap similarity between two texts."""

    def similarity(self, text_a: str | None, text_b: str | None) -> float:
        """Return the Jaccard similarity of the two texts in [0, 1].

        Symmetric and deterministic; token order and repetition are
        irrelevant.
        """
        if not text_a or not text_b:
            return 0.0

        tokens_a = self.tokenize(text_a)
        tokens_b = self.tokenize(text_b)

        union = tokens_a | tokens_b
        if not union:
            return 0.0

        return len(tokens_a & tokens_b) / len(union)

    @staticmethod
    def tokenize(text: str) -> set[str]:
        """Lowercased whitespace-separated words longer than two characters."""
        return {
            word
            for word in _WHITESPACE.split(text.lower())
            if len(word) >= _MIN_TOKEN_LENGTH
        }
