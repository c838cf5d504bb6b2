"""
Read-only document tree snapshots.

Anchoring never touches a live document. Callers hand in a snapshot built
from `Element` and `Text` nodes (or any object satisfying `TreeNode`), and
every lookup is recomputed against that snapshot on each call.

Snapshots are usually built from markup:

    tree = parse_html("<div id='m1'><p>Hello <b>world</b></p></div>")
    text_content(tree.root)  # "Hello world"
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from lxml import etree, html

if TYPE_CHECKING:
    from lxml.etree import _Element


TEXT_TAG = "#text"


class TreeNode(Protocol):
    """Minimal read-only node interface walked by the locators."""

    @property
    def tag(self) -> str: ...

    @property
    def children(self) -> Sequence[TreeNode]: ...

    @property
    def text(self) -> str | None: ...

    @property
    def attributes(self) -> Mapping[str, str]: ...


@dataclass(frozen=True, eq=False)
class Text:
    """A text-bearing leaf."""

    text: str

    @property
    def tag(self) -> str:
        return TEXT_TAG

    @property
    def children(self) -> tuple[()]:
        return ()

    @property
    def attributes(self) -> Mapping[str, str]:
        return {}


@dataclass(frozen=True, eq=False)
class Element:
    """An element node. Carries no text of its own; text lives in `Text` children."""

    tag: str
    attributes: Mapping[str, str] = field(default_factory=dict)
    children: tuple[Element | Text, ...] = ()

    @property
    def text(self) -> None:
        return None

    def get(self, name: str, default: str | None = None) -> str | None:
        """Attribute lookup, mirroring lxml's `Element.get`."""
        return self.attributes.get(name, default)


Node = Element | Text


@dataclass(frozen=True)
class DocumentTree:
    """A snapshot of a whole document, rooted at a single element."""

    root: Element

    def iter_elements(self) -> Iterator[Element]:
        return iter_elements(self.root)

    def text_content(self) -> str:
        return text_content(self.root)

    def contains(self, node: TreeNode) -> bool:
        return lineage(self.root, node) is not None


@dataclass(frozen=True)
class Segment:
    """A slice `[start, end)` of a single text node."""

    node: Text
    start: int
    end: int

    @property
    def text(self) -> str:
        return self.node.text[self.start : self.end]


@dataclass(frozen=True)
class Span:
    """
    A resolved location inside a specific snapshot.

    Attributes:
        container: Node whose flattened text the offsets refer to
        start: Start offset in the container's flattened text
        end: End offset (exclusive) in the container's flattened text
        segments: Covered text-node slices, in document order
    """

    container: TreeNode
    start: int
    end: int
    segments: tuple[Segment, ...]

    @property
    def text(self) -> str:
        return "".join(segment.text for segment in self.segments)

    @property
    def start_node(self) -> Text:
        return self.segments[0].node

    @property
    def start_offset(self) -> int:
        return self.segments[0].start

    @property
    def end_node(self) -> Text:
        return self.segments[-1].node

    @property
    def end_offset(self) -> int:
        return self.segments[-1].end

    def __len__(self) -> int:
        return self.end - self.start


def is_text_node(node: TreeNode) -> bool:
    return node.text is not None


def iter_text_nodes(node: TreeNode) -> Iterator[TreeNode]:
    """Yield text-bearing descendants of `node` (or `node` itself) in document order."""
    if is_text_node(node):
        yield node
        return
    for child in node.children:
        yield from iter_text_nodes(child)


def iter_elements(node: TreeNode) -> Iterator[TreeNode]:
    """Yield `node` and all element descendants in document order."""
    if is_text_node(node):
        return
    yield node
    for child in node.children:
        yield from iter_elements(child)


def text_content(node: TreeNode) -> str:
    """Flattened text of `node`: all text descendants joined in document order."""
    return "".join(text_node.text or "" for text_node in iter_text_nodes(node))


def lineage(root: TreeNode, target: TreeNode) -> list[TreeNode] | None:
    """
    Chain of nodes from `root` down to `target` (both inclusive).

    Nodes are matched by identity. Returns None when `target` is not
    reachable from `root`.
    """
    if root is target:
        return [root]
    stack: list[tuple[TreeNode, list[TreeNode]]] = [(root, [root])]
    while stack:
        node, chain = stack.pop()
        # reversed keeps the walk in document order
        for child in reversed(node.children):
            if child is target:
                return [*chain, child]
            if child.children:
                stack.append((child, [*chain, child]))
    return None


def span_from_offsets(container: TreeNode, start: int, end: int) -> Span | None:
    """
    Build a span covering `[start, end)` of the container's flattened text.

    Returns None for an empty range or one that starts outside the text.
    The end is clamped to the available text.
    """
    if start < 0 or end <= start:
        return None

    segments: list[Segment] = []
    position = 0
    for text_node in iter_text_nodes(container):
        value = text_node.text or ""
        node_start = position
        node_end = position + len(value)
        position = node_end

        if node_end <= start or not value:
            continue
        if node_start >= end:
            break
        segments.append(
            Segment(
                node=text_node,
                start=max(start, node_start) - node_start,
                end=min(end, node_end) - node_start,
            )
        )

    if not segments:
        return None

    clamped_end = min(end, position)
    return Span(container=container, start=start, end=clamped_end, segments=tuple(segments))


def get_tag_name(elem: _Element) -> str:
    """Tag name of an lxml element without namespace prefix."""
    tag = elem.tag
    if isinstance(tag, str) and "}" in tag:
        return tag.split("}")[-1]
    return tag if isinstance(tag, str) else ""


def from_lxml(elem: _Element, lowercase: bool = False) -> Element:
    """
    Convert an lxml element into an immutable snapshot.

    `.text` and `.tail` strings become `Text` nodes. Comments and
    processing instructions are dropped, their tails kept.
    """
    children: list[Element | Text] = []
    if elem.text:
        children.append(Text(elem.text))

    for child in elem:
        if isinstance(child.tag, str):
            children.append(from_lxml(child, lowercase=lowercase))
        if child.tail:
            children.append(Text(child.tail))

    tag = get_tag_name(elem)
    if lowercase:
        tag = tag.lower()

    attributes = {get_tag_name_from_key(k): str(v) for k, v in elem.attrib.items()}
    return Element(tag=tag, attributes=attributes, children=tuple(children))


def get_tag_name_from_key(key: str) -> str:
    """Strip a `{namespace}` prefix from an attribute key."""
    return key.split("}")[-1] if "}" in key else key


def parse_html(markup: str | bytes) -> DocumentTree:
    """Parse HTML into a snapshot. The root is always the `html` element."""
    document = html.document_fromstring(markup)
    return DocumentTree(root=from_lxml(document, lowercase=True))


def parse_xml(markup: str | bytes) -> DocumentTree:
    """Parse an XML document into a snapshot."""
    if isinstance(markup, str):
        markup = markup.encode("utf-8")
    parser = etree.XMLParser(remove_comments=True, resolve_entities=False)
    return DocumentTree(root=from_lxml(etree.fromstring(markup, parser)))
