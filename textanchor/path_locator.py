"""
Structural paths: the primary, most precise positioning strategy.

A path records, for every level from the document root down to a node, the
node's tag and its 1-based index among same-tag siblings:

    /html/body[1]/div[2]/p[1]

Paths are cheap and exact while the document structure is stable. They do
no partial matching: a path either resolves completely or not at all.
`recover_path` is the looser lookup the fallback strategies use once it
no longer does.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

from textanchor.logging_config import logger
from textanchor.tree import (
    DocumentTree,
    Span,
    TreeNode,
    is_text_node,
    iter_text_nodes,
    lineage,
    span_from_offsets,
    text_content,
)

SEGMENT_PATTERN = re.compile(r"^(?P<tag>[^\s/\[\]]+)(?:\[(?P<index>[0-9]+)\])?$")


class PathError(ValueError):
    """Raised when a path cannot be built for a node."""


class PathSyntaxError(PathError):
    """Raised when a path string is malformed."""


@dataclass(frozen=True)
class PathSegment:
    tag: str
    index: int = 1

    def __str__(self) -> str:
        return f"{self.tag}[{self.index}]"


def parse_path(path: str) -> list[PathSegment]:
    """
    Split a path into segments.

    Raises:
        PathSyntaxError: If the path is not well formed
    """
    if not is_well_formed(path):
        raise PathSyntaxError(f"Malformed structural path: {path!r}")

    segments: list[PathSegment] = []
    for raw in path[1:].split("/"):
        match = SEGMENT_PATTERN.match(raw)
        if match is None:
            raise PathSyntaxError(f"Malformed path segment {raw!r} in {path!r}")
        index = int(match.group("index") or 1)
        if index < 1:
            raise PathSyntaxError(f"Path index must be 1 or higher in {path!r}")
        segments.append(PathSegment(tag=match.group("tag"), index=index))
    return segments


def is_well_formed(path: str) -> bool:
    """
    Structural sanity check.

    Checks the leading root marker, balanced index brackets and segment
    shape. A well-formed path is safe to evaluate but may still not resolve.
    """
    if not path or not isinstance(path, str) or not path.startswith("/"):
        return False
    if path.count("[") != path.count("]"):
        return False
    raw_segments = path[1:].split("/")
    return all(SEGMENT_PATTERN.match(raw) for raw in raw_segments)


def _same_tag_index(parent: TreeNode, node: TreeNode) -> int:
    index = 0
    for sibling in parent.children:
        if is_text_node(sibling) or sibling.tag != node.tag:
            continue
        index += 1
        if sibling is node:
            return index
    raise PathError(f"<{node.tag}> is not a child of <{parent.tag}>")


class PathLocator:
    """Builds and resolves structural paths against a snapshot."""

    def build_path(self, tree: DocumentTree, node: TreeNode) -> str:
        """
        Build the structural path from the root of `tree` to `node`.

        Raises:
            PathError: If `node` is a text node or not reachable from the root
        """
        if is_text_node(node):
            raise PathError("Structural paths address elements, not text nodes")

        chain = lineage(tree.root, node)
        if chain is None:
            raise PathError(f"<{node.tag}> is not part of the document")

        parts = [chain[0].tag]
        for parent, child in zip(chain, chain[1:]):
            parts.append(f"{child.tag}[{_same_tag_index(parent, child)}]")
        return "/" + "/".join(parts)

    def resolve_path(self, tree: DocumentTree, path: str) -> TreeNode | None:
        """
        Evaluate `path` top-down against `tree`.

        Returns the node matching the full chain, or None if any segment
        fails to resolve or the path is malformed.
        """
        try:
            segments = parse_path(path)
        except PathSyntaxError as e:
            logger.debug(str(e))
            return None

        root_segment, *rest = segments
        if root_segment.tag != tree.root.tag or root_segment.index != 1:
            return None

        node: TreeNode = tree.root
        for segment in rest:
            node = self._child_at(node, segment)
            if node is None:
                return None
        return node

    def is_well_formed(self, path: str) -> bool:
        return is_well_formed(path)

    def locate_text(self, node: TreeNode, text: str, near: int | None = None) -> Span | None:
        """
        Find `text` under `node`.

        Without `near`, the first occurrence wins: single text nodes are
        scanned first, in document order, so the tightest span wins, and
        text split across several nodes is found in the flattened text as
        a second pass. With `near`, the occurrence whose start is closest
        to that offset in the flattened text wins (earliest on a tie).
        """
        if not text:
            return None
        if near is not None:
            return self._locate_nearest(node, text, near)

        position = 0
        for text_node in iter_text_nodes(node):
            value = text_node.text or ""
            index = value.find(text)
            if index != -1:
                return span_from_offsets(node, position + index, position + index + len(text))
            position += len(value)

        index = text_content(node).find(text)
        if index == -1:
            return None
        return span_from_offsets(node, index, index + len(text))

    def recover_path(self, tree: DocumentTree, path: str) -> list[TreeNode]:
        """
        Elements whose own path ends the way `path` ends.

        Used once `path` no longer resolves, typically because a wrapper was
        inserted or removed above the target. Segments are compared
        bottom-up on tag and same-tag index; the root segment never takes
        part. Returns the elements agreeing on the most trailing segments,
        in document order, or an empty list when not even the last segment
        matches anywhere.
        """
        try:
            segments = parse_path(path)[1:]
        except PathSyntaxError as e:
            logger.debug(str(e))
            return []
        if not segments:
            return []

        best_depth = 0
        found: list[TreeNode] = []
        for element, trail in _addressed_descendants(tree.root, ()):
            depth = 0
            while (
                depth < min(len(segments), len(trail))
                and segments[-1 - depth] == trail[-1 - depth]
            ):
                depth += 1
            if depth == 0 or depth < best_depth:
                continue
            if depth > best_depth:
                best_depth = depth
                found = []
            found.append(element)
        return found

    @staticmethod
    def _locate_nearest(node: TreeNode, text: str, near: int) -> Span | None:
        flattened = text_content(node)
        best = -1
        index = flattened.find(text)
        while index != -1:
            if best == -1 or abs(index - near) < abs(best - near):
                best = index
            index = flattened.find(text, index + 1)
        if best == -1:
            return None
        return span_from_offsets(node, best, best + len(text))

    @staticmethod
    def _child_at(node: TreeNode, segment: PathSegment) -> TreeNode | None:
        seen = 0
        for child in node.children:
            if is_text_node(child) or child.tag != segment.tag:
                continue
            seen += 1
            if seen == segment.index:
                return child
        return None


def _addressed_descendants(
    node: TreeNode, trail: tuple[PathSegment, ...]
) -> Iterator[tuple[TreeNode, tuple[PathSegment, ...]]]:
    """Yield every element below `node` with its path segments from `node` down."""
    seen: dict[str, int] = {}
    for child in node.children:
        if is_text_node(child):
            continue
        seen[child.tag] = seen.get(child.tag, 0) + 1
        child_trail = (*trail, PathSegment(tag=child.tag, index=seen[child.tag]))
        yield child, child_trail
        yield from _addressed_descendants(child, child_trail)
