"""Shared fixtures for textanchor tests."""

import pytest

from textanchor.coordinator import AnchorCoordinator
from textanchor.tree import DocumentTree, Element, Text

SAMPLE_TEXT = "TypeScript offers Type Safety and Better IDE Support."


def message(container_id: str, text: str) -> Element:
    """A chat message container: <div data-container-id=...><p>text</p></div>."""
    return Element(
        "div",
        {"data-container-id": container_id, "class": "message"},
        (Element("p", children=(Text(text),)),),
    )


def document(*children: Element) -> DocumentTree:
    """Wrap elements in <html><body>...</body></html>."""
    return DocumentTree(Element("html", children=(Element("body", children=children),)))


def find_by_id(tree: DocumentTree, container_id: str) -> Element:
    for element in tree.iter_elements():
        if container_id in (element.get("data-container-id"), element.get("id")):
            return element
    raise LookupError(container_id)


@pytest.fixture
def coordinator() -> AnchorCoordinator:
    return AnchorCoordinator()


@pytest.fixture
def conversation() -> DocumentTree:
    """Two-message conversation; msg-2 holds SAMPLE_TEXT."""
    return document(
        message("msg-1", "What does TypeScript give me?"),
        message("msg-2", SAMPLE_TEXT),
    )


@pytest.fixture
def mixed_paragraph() -> Element:
    """<p>Hello <b>brave</b> new world</p> with the text split over three nodes."""
    return Element(
        "p",
        children=(Text("Hello "), Element("b", children=(Text("brave"),)), Text(" new world")),
    )
