"""Resolution strategies.

Each strategy turns an Anchor plus the current snapshot into a candidate
span, or None. The coordinator iterates them in priority order and decides
whether a candidate is acceptable; strategies never validate their own
output beyond what they need to pick between containers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from textanchor.containers import AttributeContainerResolver, ContainerResolver
from textanchor.matcher import MatchContext, SimilarityMatcher
from textanchor.models import Anchor, AnchorStrategy
from textanchor.offset_locator import OffsetLocator
from textanchor.path_locator import PathLocator
from textanchor.tree import DocumentTree, Span, TreeNode

if TYPE_CHECKING:
    from textanchor.config import AnchorConfig


class ResolutionStrategy(Protocol):
    """Protocol for one step of the resolution cascade."""

    strategy: AnchorStrategy

    def attempt(self, anchor: Anchor, tree: DocumentTree) -> Span | None:
        """Locate the anchor's text in `tree`.

        Args:
            anchor: A validated anchor
            tree: Current document snapshot

        Returns:
            A candidate span, or None if this strategy cannot place it
        """
        ...


@dataclass
class PathStrategy:
    """Resolve the structural path, then find the exact text inside that node.

    When the text occurs more than once, the occurrence nearest the stored
    start offset is taken.
    """

    paths: PathLocator = field(default_factory=PathLocator)
    strategy: AnchorStrategy = AnchorStrategy.PATH_BASED

    def attempt(self, anchor: Anchor, tree: DocumentTree) -> Span | None:
        node = self.paths.resolve_path(tree, anchor.structural_path)
        if node is None:
            return None
        return self.paths.locate_text(node, anchor.selected_text, near=anchor.start_offset)


@dataclass
class OffsetStrategy:
    """Find a container and read the stored offset range.

    Containers come from the path, then the id, then path recovery. The
    first whose text at the stored offsets equals the anchor text wins;
    otherwise the first span produced is returned for the coordinator to
    judge.
    """

    paths: PathLocator = field(default_factory=PathLocator)
    offsets: OffsetLocator = field(default_factory=OffsetLocator)
    containers: ContainerResolver = field(default_factory=AttributeContainerResolver)
    strategy: AnchorStrategy = AnchorStrategy.OFFSET_BASED

    def attempt(self, anchor: Anchor, tree: DocumentTree) -> Span | None:
        length = anchor.end_offset - anchor.start_offset
        expected = anchor.selected_text.strip()

        first: Span | None = None
        for container in candidate_containers(
            anchor, tree, self.paths, self.containers, recover=True
        ):
            span = self.offsets.locate_by_offset(container, anchor.start_offset, length)
            if span is None:
                continue
            if span.text.strip() == expected:
                return span
            if first is None:
                first = span
        return first


@dataclass
class FuzzyStrategy:
    """Approximate search using the stored context, widening to the whole document."""

    paths: PathLocator = field(default_factory=PathLocator)
    matcher: SimilarityMatcher = field(default_factory=SimilarityMatcher)
    containers: ContainerResolver = field(default_factory=AttributeContainerResolver)
    strategy: AnchorStrategy = AnchorStrategy.FUZZY_MATCH

    def attempt(self, anchor: Anchor, tree: DocumentTree) -> Span | None:
        scope = next(
            iter(candidate_containers(anchor, tree, self.paths, self.containers)),
            tree.root,
        )
        context = MatchContext(before=anchor.context_before, after=anchor.context_after)
        return self.matcher.find_in_node(scope, anchor.selected_text, context)


def candidate_containers(
    anchor: Anchor,
    tree: DocumentTree,
    paths: PathLocator,
    containers: ContainerResolver,
    recover: bool = False,
) -> list[TreeNode]:
    """
    Containers worth searching, without duplicates.

    The path target comes first, then the id lookup. With `recover`, a
    path that no longer resolves also contributes the elements found by
    `PathLocator.recover_path`, after the id lookup.
    """
    found: list[TreeNode] = []
    by_path = paths.resolve_path(tree, anchor.structural_path)
    if by_path is not None:
        found.append(by_path)
    by_id = containers.find_container(tree, anchor.container_id)
    if by_id is not None:
        found.append(by_id)
    if by_path is None and recover:
        found.extend(paths.recover_path(tree, anchor.structural_path))

    unique: list[TreeNode] = []
    for node in found:
        if all(node is not seen for seen in unique):
            unique.append(node)
    return unique


def build_strategies(
    config: AnchorConfig,
    containers: ContainerResolver | None = None,
) -> list[ResolutionStrategy]:
    """Instantiate the strategies named in `config.strategy_order`, in that order."""
    if containers is None:
        containers = AttributeContainerResolver(attributes=config.container_attributes)

    paths = PathLocator()
    available: dict[AnchorStrategy, ResolutionStrategy] = {
        AnchorStrategy.PATH_BASED: PathStrategy(paths=paths),
        AnchorStrategy.OFFSET_BASED: OffsetStrategy(paths=paths, containers=containers),
        AnchorStrategy.FUZZY_MATCH: FuzzyStrategy(
            paths=paths,
            matcher=SimilarityMatcher(threshold=config.min_confidence),
            containers=containers,
        ),
    }
    return [available[strategy] for strategy in config.strategy_order]
