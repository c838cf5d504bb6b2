"""
textanchor - Re-locate captured text spans in documents that have changed.

This library provides:
- Immutable document snapshots built from HTML/XML (lxml)
- Anchor creation from a text selection, with a reliability score
- Anchor resolution through a cascade of strategies: structural path,
  character offset and approximate text matching

Import patterns:

    # Primary API (recommended)
    from textanchor import AnchorCoordinator, Anchor, capture_selection, parse_html

    # Full submodule imports (for individual locators)
    from textanchor.path_locator import PathLocator
    from textanchor.matcher import SimilarityMatcher, calculate_similarity

Example usage:

    from textanchor import AnchorCoordinator, capture_selection, parse_html

    tree = parse_html('<div id="m1">TypeScript offers Type Safety.</div>')
    container = tree.root.children[0].children[0]  # html > body > div
    coordinator = AnchorCoordinator()

    selection = capture_selection(container, 18, 29, container_id="m1")
    anchor = coordinator.create_anchor(selection, tree)

    later = parse_html('<div id="m1">TypeScript provides Type Safety.</div>')
    result = coordinator.resolve(anchor, later)
    if result.found:
        print(result.span.text, result.strategy)
"""

from textanchor.config import AnchorConfig
from textanchor.coordinator import AnchorCoordinator, ResolutionResult, ResolutionStatus
from textanchor.models import Anchor, AnchorStrategy, InvalidSelectionError, TextSpan
from textanchor.selection import capture_selection
from textanchor.tree import DocumentTree, Element, Span, Text, parse_html, parse_xml

__all__ = [
    "Anchor",
    "AnchorConfig",
    "AnchorCoordinator",
    "AnchorStrategy",
    "DocumentTree",
    "Element",
    "InvalidSelectionError",
    "ResolutionResult",
    "ResolutionStatus",
    "Span",
    "Text",
    "TextSpan",
    "capture_selection",
    "parse_html",
    "parse_xml",
]
