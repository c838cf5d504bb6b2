"""Selection capture: turn flattened-text offsets into a TextSpan with context."""

from __future__ import annotations

from textanchor.config import CONTEXT_LENGTH
from textanchor.models import InvalidSelectionError, TextSpan
from textanchor.normalize import normalize_whitespace
from textanchor.tree import TreeNode, text_content


def capture_selection(
    container: TreeNode,
    start: int,
    end: int,
    container_id: str,
    context_length: int = CONTEXT_LENGTH,
) -> TextSpan:
    """
    Capture the text between `start` and `end` of the container's flattened text.

    Leading and trailing whitespace is trimmed off the selection. Up to
    `context_length` characters of whitespace-normalised context are taken
    on each side, cut back to a word boundary.

    Raises:
        InvalidSelectionError: If the range is empty, out of bounds or only whitespace
    """
    flattened = text_content(container)
    if start < 0 or end <= start or end > len(flattened):
        raise InvalidSelectionError(
            f"Selection [{start}, {end}) is outside the container text "
            f"(length {len(flattened)})"
        )

    while start < end and flattened[start].isspace():
        start += 1
    while end > start and flattened[end - 1].isspace():
        end -= 1
    if start == end:
        raise InvalidSelectionError("Selection contains only whitespace")

    return TextSpan(
        selected_text=flattened[start:end],
        container=container,
        start_offset=start,
        end_offset=end,
        container_id=container_id,
        context_before=context_segment(flattened[:start], context_length, from_start=False),
        context_after=context_segment(flattened[end:], context_length, from_start=True),
    )


def context_segment(text: str, max_length: int, from_start: bool) -> str:
    """
    Normalised context of at most `max_length` characters.

    `from_start` keeps the beginning of `text` (context after a selection);
    otherwise the end is kept (context before). Partial words at the cut are
    dropped when a space allows it.
    """
    normalized = normalize_whitespace(text)
    if len(normalized) <= max_length:
        return normalized

    if from_start:
        segment = normalized[:max_length]
        if normalized[max_length] == " ":
            return segment
        last_space = segment.rfind(" ")
        return segment[:last_space] if last_space > 0 else segment

    segment = normalized[-max_length:]
    if normalized[-max_length - 1] == " ":
        return segment
    first_space = segment.find(" ")
    return segment[first_space + 1 :] if first_space >= 0 else segment
