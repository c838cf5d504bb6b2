"""Container lookup by logical id.

Site adapters decide how a container's logical id is exposed in the
document. The engine only depends on the `ContainerResolver` protocol; the
attribute-based resolver covers adapters that stamp the id onto an element.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from textanchor.config import CONTAINER_ID_ATTRIBUTES
from textanchor.tree import DocumentTree, TreeNode


class ContainerResolver(Protocol):
    """Protocol for locating a container node from its logical id."""

    def find_container(self, tree: DocumentTree, container_id: str) -> TreeNode | None:
        """Return the container element for `container_id`, or None."""
        ...


@dataclass(frozen=True)
class AttributeContainerResolver:
    """Finds the first element (document order) carrying the id in one of `attributes`."""

    attributes: tuple[str, ...] = CONTAINER_ID_ATTRIBUTES

    def find_container(self, tree: DocumentTree, container_id: str) -> TreeNode | None:
        if not container_id:
            return None
        for element in tree.iter_elements():
            for name in self.attributes:
                if element.attributes.get(name) == container_id:
                    return element
        return None
