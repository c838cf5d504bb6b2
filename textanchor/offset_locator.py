"""
Character offsets: the secondary positioning strategy.

Offsets are positions in a container's flattened text. They survive
attribute and path churn, but not text inserted before the target.
All offsets returned here refer to the original, unnormalised text.
"""

from __future__ import annotations

from textanchor.normalize import aggressive_normalize, collapse_whitespace
from textanchor.tree import Span, TreeNode, span_from_offsets, text_content

# Fraction of words that must match positionally in the word-sequence pass
WORD_MATCH_RATIO = 0.8


class OffsetLocator:
    """Computes and resolves character offsets within a container."""

    def compute_offset(self, container: TreeNode, text: str) -> int:
        """
        Offset of the first occurrence of `text` in the container's flattened text.

        Matching happens on whitespace-normalised text first, then on
        aggressively normalised text (case-folded, punctuation stripped),
        then by word sequence. The match position is mapped back to the
        original text.

        Returns:
            The offset, or -1 if the text cannot be found
        """
        if not text:
            return -1

        flattened = text_content(container)
        target = collapse_whitespace(text).text
        if not target:
            return -1

        normalized = collapse_whitespace(flattened)
        index = normalized.find(target)
        if index != -1:
            return normalized.to_original(index)

        return self._compute_fuzzy_offset(flattened, text)

    def locate_by_offset(self, container: TreeNode, offset: int, length: int) -> Span | None:
        """
        Span of `length` characters starting at `offset` in the flattened text.

        The span may cover several text nodes. When the text is shorter than
        `offset + length` the span is clamped to what is available.
        """
        if offset < 0 or length <= 0:
            return None
        return span_from_offsets(container, offset, offset + length)

    def is_offset_plausible(self, container: TreeNode, offset: int, length: int) -> bool:
        """True iff the range fits inside the container's flattened text."""
        return 0 <= offset and offset + length <= len(text_content(container))

    def _compute_fuzzy_offset(self, flattened: str, text: str) -> int:
        normalized = aggressive_normalize(flattened)
        target = aggressive_normalize(text).text
        if not target:
            return -1

        index = normalized.find(target)
        if index == -1:
            index = find_word_sequence(normalized.text, target)
        if index == -1:
            return -1
        return normalized.to_original(index)


def find_word_sequence(haystack: str, target: str, ratio: float = WORD_MATCH_RATIO) -> int:
    """
    Character offset of the first word window that matches `target` positionally.

    Both strings must already be normalised with single spaces between
    words. A window matches when at least `ratio` of its words equal the
    target word at the same position.

    Returns:
        Offset into `haystack`, or -1
    """
    target_words = [w for w in target.split(" ") if w]
    if not target_words:
        return -1

    # (start offset, word) pairs so the window start maps straight to a position
    words: list[tuple[int, str]] = []
    position = 0
    for word in haystack.split(" "):
        if word:
            words.append((position, word))
        position += len(word) + 1

    span = len(target_words)
    for i in range(len(words) - span + 1):
        matches = sum(
            1 for j, expected in enumerate(target_words) if words[i + j][1] == expected
        )
        if matches / span >= ratio:
            return words[i][0]
    return -1
