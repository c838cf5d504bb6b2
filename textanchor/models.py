"""
Core data models for text anchoring.

`TextSpan` is what a selection-capture collaborator hands in; `Anchor` is
the persisted record handed to storage. An Anchor is immutable and carries
no live node references, so it can be serialised verbatim and resolved
against any later snapshot of the document.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Self

import yaml
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from textanchor.tree import TreeNode


class AnchorStrategy(str, Enum):
    """Positioning strategies, in descending precision."""

    PATH_BASED = "path"
    OFFSET_BASED = "offset"
    FUZZY_MATCH = "fuzzy"


KNOWN_STRATEGIES = frozenset(strategy.value for strategy in AnchorStrategy)


class InvalidSelectionError(ValueError):
    """Raised when a selection cannot be turned into an anchor."""


@dataclass(frozen=True)
class TextSpan:
    """
    A user selection, as captured against the current document.

    Attributes:
        selected_text: The selected text
        container: Node the selection belongs to
        start_offset: Selection start in the container's flattened text
        end_offset: Selection end (exclusive) in the container's flattened text
        container_id: Logical id of the container (e.g. a message id)
        context_before: Text immediately before the selection
        context_after: Text immediately after the selection
    """

    selected_text: str
    container: TreeNode
    start_offset: int
    end_offset: int
    container_id: str
    context_before: str = ""
    context_after: str = ""


def content_checksum(context_before: str, selected_text: str, context_after: str) -> str:
    """Deterministic SHA-256 digest over before + selected + after text."""
    content = f"{context_before}{selected_text}{context_after}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class Anchor(BaseModel):
    """
    Persisted, strategy-tagged descriptor of a text span's location.

    Field types are enforced on construction; the semantic rules (ordered
    offsets, confidence range, known strategy, ...) are checked by
    `anchor_errors`, so a damaged record read back from storage can still
    be loaded and then rejected before resolution.

    Serialised with camelCase keys:

        anchor.model_dump(by_alias=True)["selectedText"]
        Anchor.model_validate_json(payload)
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    selected_text: str
    start_offset: int
    end_offset: int
    structural_path: str
    container_id: str
    context_before: str = ""
    context_after: str = ""
    content_checksum: str = ""
    confidence: float = 0.0
    strategy: str = AnchorStrategy.PATH_BASED.value

    def checksum_matches(self) -> bool:
        """True if the stored checksum matches the stored text."""
        expected = content_checksum(
            self.context_before, self.selected_text, self.context_after
        )
        return self.content_checksum == expected

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.model_dump(by_alias=True, mode="json"),
            sort_keys=False,
            allow_unicode=True,
        )

    @classmethod
    def from_yaml(cls, yaml_text: str) -> Self:
        """
        Load an anchor from YAML.

        Example:
            anchor = Anchor.from_yaml('''
                selectedText: Type Safety
                startOffset: 18
                endOffset: 29
                structuralPath: /html/body[1]/div[1]
                containerId: msg-1
                contextBefore: "TypeScript offers "
                confidence: 0.85
                strategy: path
            ''')
        """
        data = yaml.safe_load(yaml_text) or {}
        return cls.model_validate(data)


def anchor_errors(anchor: Anchor) -> list[str]:
    """
    List every rule the anchor breaks. An empty list means the anchor is valid.
    """
    errors: list[str] = []

    if not anchor.selected_text or not anchor.selected_text.strip():
        errors.append("selectedText is empty")
    if not anchor.structural_path:
        errors.append("structuralPath is empty")
    if not anchor.container_id:
        errors.append("containerId is empty")
    if anchor.start_offset < 0 or anchor.end_offset < 0:
        errors.append("offsets must be non-negative")
    if anchor.end_offset <= anchor.start_offset:
        errors.append("endOffset must be greater than startOffset")
    if not 0.0 <= anchor.confidence <= 1.0:
        errors.append(f"confidence {anchor.confidence} outside [0, 1]")
    if anchor.strategy not in KNOWN_STRATEGIES:
        errors.append(f"unknown strategy {anchor.strategy!r}")
    if not anchor.context_before and not anchor.context_after:
        errors.append("contextBefore and contextAfter are both empty")

    return errors
