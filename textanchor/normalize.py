"""
Text normalisation that remembers where every character came from.

Offsets found in normalised text are only useful if they can be mapped back
to the original string, so each normaliser returns a `NormalizedText` that
carries, for every output character, the index of the source character that
produced it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

# Punctuation removed by the aggressive pass (dashes included)
AGGRESSIVE_PUNCTUATION = frozenset(".,;:!?()[]{}'\"-–—")


@dataclass(frozen=True)
class NormalizedText:
    """
    Normalised string plus its index map.

    Attributes:
        text: The normalised text
        positions: positions[i] is the source index of text[i]
        source_length: Length of the original string
    """

    text: str
    positions: tuple[int, ...]
    source_length: int

    def to_original(self, index: int) -> int:
        """Map a start index in `text` to the original string."""
        if index < 0:
            return 0
        if index >= len(self.positions):
            return self.source_length
        return self.positions[index]

    def to_original_end(self, index: int) -> int:
        """Map an exclusive end index in `text` to the original string."""
        if index <= 0:
            return 0
        if index > len(self.positions):
            return self.source_length
        return self.positions[index - 1] + 1

    def find(self, needle: str, start: int = 0) -> int:
        return self.text.find(needle, start)


def _normalize(
    text: str,
    lowercase: bool,
    drop: Callable[[str], bool] | None,
) -> NormalizedText:
    chars: list[str] = []
    positions: list[int] = []
    pending_space: int | None = None

    for index, char in enumerate(text):
        if drop is not None and drop(char):
            continue
        if char.isspace():
            if chars and pending_space is None:
                pending_space = index
            continue
        if pending_space is not None:
            chars.append(" ")
            positions.append(pending_space)
            pending_space = None
        produced = char.lower() if lowercase else char
        # lower() may expand one character into several
        for piece in produced:
            chars.append(piece)
            positions.append(index)

    return NormalizedText(
        text="".join(chars),
        positions=tuple(positions),
        source_length=len(text),
    )


def collapse_whitespace(text: str) -> NormalizedText:
    """Collapse whitespace runs to one space and trim."""
    return _normalize(text, lowercase=False, drop=None)


def aggressive_normalize(text: str) -> NormalizedText:
    """Case-fold, strip common punctuation and dashes, collapse whitespace."""
    return _normalize(text, lowercase=True, drop=AGGRESSIVE_PUNCTUATION.__contains__)


def _is_symbol(char: str) -> bool:
    return not (char.isalnum() or char == "_" or char.isspace())


def similarity_normalize(text: str) -> NormalizedText:
    """Lower-case, keep only word characters and whitespace, collapse, trim."""
    return _normalize(text, lowercase=True, drop=_is_symbol)


def normalize_whitespace(text: str) -> str:
    return collapse_whitespace(text).text
