"""
Anchor creation and resolution.

Creation runs every locator over the selection and scores how likely the
resulting anchor is to resolve later. Resolution walks the strategies in
priority order under a wall-clock budget and returns the first candidate
that passes validation.

Resolution states:

    not started -> trying strategy i -> validated  -> done (span)
                                     -> rejected   -> trying strategy i+1
                                     -> timed out  -> done (not found)
                -> exhausted                       -> done (not found)

The coordinator keeps no anchor state between calls. Its only mutable
state is the metrics store.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from textanchor.config import AnchorConfig
from textanchor.containers import ContainerResolver
from textanchor.logging_config import logger
from textanchor.matcher import calculate_similarity
from textanchor.metrics import AnchorMetrics, MetricsSample, Operation
from textanchor.models import (
    Anchor,
    AnchorStrategy,
    InvalidSelectionError,
    TextSpan,
    anchor_errors,
    content_checksum,
)
from textanchor.offset_locator import OffsetLocator
from textanchor.path_locator import PathError, PathLocator
from textanchor.strategies import ResolutionStrategy, build_strategies
from textanchor.tree import (
    DocumentTree,
    Span,
    TreeNode,
    is_text_node,
    iter_text_nodes,
    lineage,
    text_content,
)

BASE_CONFIDENCE = 0.5
PATH_BONUS = 0.2
OFFSET_BONUS = 0.15

# (minimum combined context length, bonus), highest first
CONTEXT_BONUSES = ((50, 0.10), (20, 0.05))

# (minimum selection length, bonus), highest first
LENGTH_BONUSES = ((30, 0.05), (10, 0.025))


class ResolutionStatus(str, Enum):
    """Outcome of a resolution attempt."""

    FOUND = "found"
    ORPHANED = "orphaned"
    TIMED_OUT = "timed_out"
    INVALID = "invalid"


@dataclass(frozen=True)
class ResolutionResult:
    """
    Outcome of resolving an anchor, with diagnostics.

        result = coordinator.resolve(anchor, tree)
        if result.found:
            highlight(result.span)
        elif result.timed_out:
            retry_later()
    """

    status: ResolutionStatus
    span: Span | None = None
    strategy: AnchorStrategy | None = None
    attempts: tuple[AnchorStrategy, ...] = ()
    elapsed_ms: float = 0.0
    confidence: float = 0.0

    @property
    def found(self) -> bool:
        return self.status == ResolutionStatus.FOUND

    @property
    def orphaned(self) -> bool:
        return self.status == ResolutionStatus.ORPHANED

    @property
    def timed_out(self) -> bool:
        return self.status == ResolutionStatus.TIMED_OUT

    @property
    def invalid(self) -> bool:
        return self.status == ResolutionStatus.INVALID


class AnchorCoordinator:
    """
    Creates anchors from selections and resolves them against snapshots.

    Example:
        coordinator = AnchorCoordinator()
        anchor = coordinator.create_anchor(selection, tree)
        ...
        span = coordinator.resolve_anchor(anchor, later_tree)
    """

    def __init__(
        self,
        config: AnchorConfig | None = None,
        containers: ContainerResolver | None = None,
        strategies: list[ResolutionStrategy] | None = None,
    ) -> None:
        self.config = config or AnchorConfig()
        self.paths = PathLocator()
        self.offsets = OffsetLocator()
        self.metrics = AnchorMetrics(capacity=self.config.metrics_capacity)
        self._strategies = (
            strategies
            if strategies is not None
            else build_strategies(self.config, containers=containers)
        )

    @property
    def strategies(self) -> list[ResolutionStrategy]:
        return list(self._strategies)

    # === Creation ===

    def create_anchor(self, span: TextSpan, tree: DocumentTree) -> Anchor:
        """
        Build a persistable anchor for a selection.

        Args:
            span: The captured selection
            tree: Snapshot the selection was made in

        Returns:
            Anchor tagged with the path-based strategy

        Raises:
            InvalidSelectionError: If the selection is malformed or cannot be
                located in its container
        """
        started = time.perf_counter()
        try:
            anchor = self._build_anchor(span, tree)
        except InvalidSelectionError as e:
            logger.warning(f"Anchor creation failed: {e}")
            self._record(Operation.CREATE, started, success=False)
            raise

        self._record(
            Operation.CREATE,
            started,
            success=True,
            strategy=AnchorStrategy.PATH_BASED,
            confidence=anchor.confidence,
        )
        logger.debug(
            f"Created anchor {anchor.structural_path} "
            f"[{anchor.start_offset}:{anchor.end_offset}] confidence={anchor.confidence}"
        )
        return anchor

    def _build_anchor(self, span: TextSpan, tree: DocumentTree) -> Anchor:
        validate_selection(span)

        container, shift = self._container_element(span.container, tree)
        try:
            path = self.paths.build_path(tree, container)
        except PathError as e:
            raise InvalidSelectionError(f"Cannot address selection container: {e}") from e

        start = self._selection_offset(container, span, shift)
        end = start + len(span.selected_text)

        confidence = self.calculate_confidence(
            tree=tree,
            container=container,
            path=path,
            start_offset=start,
            selected_text=span.selected_text,
            context_before=span.context_before,
            context_after=span.context_after,
        )

        return Anchor(
            selected_text=span.selected_text,
            start_offset=start,
            end_offset=end,
            structural_path=path,
            container_id=span.container_id,
            context_before=span.context_before,
            context_after=span.context_after,
            content_checksum=content_checksum(
                span.context_before, span.selected_text, span.context_after
            ),
            confidence=confidence,
            strategy=AnchorStrategy.PATH_BASED.value,
        )

    def _container_element(self, container: TreeNode, tree: DocumentTree) -> tuple[TreeNode, int]:
        """Element owning the selection, and the shift from container offsets to its text."""
        chain = lineage(tree.root, container)
        if chain is None:
            raise InvalidSelectionError("Selection container is not part of the document")
        if not is_text_node(container):
            return container, 0
        if len(chain) < 2:
            raise InvalidSelectionError("Selection container has no parent element")

        parent = chain[-2]
        shift = 0
        for text_node in iter_text_nodes(parent):
            if text_node is container:
                break
            shift += len(text_node.text or "")
        return parent, shift

    def _selection_offset(self, container: TreeNode, span: TextSpan, shift: int) -> int:
        flattened = text_content(container)
        start = span.start_offset + shift
        if flattened[start : start + len(span.selected_text)] == span.selected_text:
            return start

        offset = self.offsets.compute_offset(container, span.selected_text)
        if offset < 0:
            raise InvalidSelectionError(
                f"Selected text {span.selected_text!r} not found in its container"
            )
        return offset

    def calculate_confidence(
        self,
        tree: DocumentTree,
        container: TreeNode,
        path: str,
        start_offset: int,
        selected_text: str,
        context_before: str,
        context_after: str,
    ) -> float:
        """
        Heuristic likelihood that an anchor will resolve in the future.

        Starts at 0.5 and adds bonuses for a path that resolves, a plausible
        offset, longer context and a longer selection. Capped at 1.0.
        """
        confidence = BASE_CONFIDENCE

        if self.paths.resolve_path(tree, path) is not None:
            confidence += PATH_BONUS

        if self.offsets.is_offset_plausible(container, start_offset, len(selected_text)):
            confidence += OFFSET_BONUS

        context_length = len(context_before) + len(context_after)
        for minimum, bonus in CONTEXT_BONUSES:
            if context_length >= minimum:
                confidence += bonus
                break

        for minimum, bonus in LENGTH_BONUSES:
            if len(selected_text) >= minimum:
                confidence += bonus
                break

        return min(round(confidence, 6), 1.0)

    # === Validation ===

    def validate_anchor(self, anchor: Anchor) -> bool:
        """True if the anchor satisfies every rule needed for resolution."""
        errors = anchor_errors(anchor)
        if errors:
            logger.info(f"Rejecting anchor: {'; '.join(errors)}")
            return False
        return True

    def validate_resolved_range(self, span: Span, anchor: Anchor) -> bool:
        """
        Accept a candidate span if its text equals the anchor text (trimmed),
        or is at least `min_confidence` similar to it.
        """
        found = span.text.strip()
        expected = anchor.selected_text.strip()
        if found == expected:
            return True
        return calculate_similarity(found, expected) >= self.config.min_confidence

    # === Resolution ===

    def resolve_anchor(self, anchor: Anchor, tree: DocumentTree) -> Span | None:
        """Resolve an anchor to a span, or None when it cannot be placed."""
        return self.resolve(anchor, tree).span

    def resolve(self, anchor: Anchor, tree: DocumentTree) -> ResolutionResult:
        """
        Resolve an anchor, reporting how the cascade ended.

        Never raises: strategy errors are logged and count as a miss.
        """
        started = time.perf_counter()
        budget_ms = self.config.max_resolution_ms
        attempts: list[AnchorStrategy] = []
        span: Span | None = None
        status = ResolutionStatus.ORPHANED

        with logger.indent_block(
            f"Resolving anchor {anchor.selected_text[:40]!r} in {anchor.container_id}"
        ):
            if not self.validate_anchor(anchor):
                status = ResolutionStatus.INVALID
            else:
                for handler in self._strategies:
                    if _elapsed_ms(started) >= budget_ms:
                        logger.info(
                            f"Resolution budget of {budget_ms}ms exhausted "
                            f"after {len(attempts)} strategies"
                        )
                        status = ResolutionStatus.TIMED_OUT
                        break

                    attempts.append(handler.strategy)
                    candidate = self._attempt(handler, anchor, tree)
                    if candidate is None:
                        continue
                    if self.validate_resolved_range(candidate, anchor):
                        logger.debug(f"{handler.strategy.value}: accepted {candidate.text!r}")
                        span = candidate
                        status = ResolutionStatus.FOUND
                        break
                    logger.debug(f"{handler.strategy.value}: rejected {candidate.text!r}")

        result = ResolutionResult(
            status=status,
            span=span,
            strategy=attempts[-1] if attempts else None,
            attempts=tuple(attempts),
            elapsed_ms=_elapsed_ms(started),
            confidence=anchor.confidence,
        )
        self.metrics.record(
            MetricsSample(
                operation=Operation.RESOLVE,
                strategy=result.strategy,
                elapsed_ms=result.elapsed_ms,
                success=result.found,
                timed_out=result.timed_out,
                confidence=anchor.confidence,
            )
        )
        return result

    def _attempt(
        self,
        handler: ResolutionStrategy,
        anchor: Anchor,
        tree: DocumentTree,
    ) -> Span | None:
        try:
            candidate = handler.attempt(anchor, tree)
        except Exception as e:
            logger.warning(f"{handler.strategy.value}: strategy failed: {e}")
            return None
        if candidate is None:
            logger.debug(f"{handler.strategy.value}: no candidate")
        return candidate

    def _record(
        self,
        operation: Operation,
        started: float,
        success: bool,
        strategy: AnchorStrategy | None = None,
        confidence: float = 0.0,
    ) -> None:
        self.metrics.record(
            MetricsSample(
                operation=operation,
                strategy=strategy,
                elapsed_ms=_elapsed_ms(started),
                success=success,
                confidence=confidence,
            )
        )


def validate_selection(span: TextSpan) -> None:
    """
    Check a captured selection before anchoring it.

    Raises:
        InvalidSelectionError: If the selection cannot produce a valid anchor
    """
    if not span.selected_text or not span.selected_text.strip():
        raise InvalidSelectionError("Selection must contain non-empty text")
    if span.container is None:
        raise InvalidSelectionError("Selection must reference its container")
    if span.start_offset < 0 or span.end_offset < 0:
        raise InvalidSelectionError("Selection offsets must be non-negative")
    if span.end_offset <= span.start_offset:
        raise InvalidSelectionError("Selection end offset must be greater than start offset")
    if not span.container_id:
        raise InvalidSelectionError("Selection must include a container id")
    if not span.context_before and not span.context_after:
        raise InvalidSelectionError("Selection must carry context before or after the text")


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000
