"""Tests for structural path building and resolution."""

import pytest

from textanchor.path_locator import (
    PathError,
    PathLocator,
    PathSegment,
    PathSyntaxError,
    parse_path,
)
from textanchor.tree import DocumentTree, Element, Text


@pytest.fixture
def locator() -> PathLocator:
    return PathLocator()


@pytest.fixture
def tree() -> DocumentTree:
    """html > body > [div, p, div > [span, text, span]]"""
    spans = (
        Element("span", children=(Text("first"),)),
        Text(" and "),
        Element("span", children=(Text("second"),)),
    )
    body = Element(
        "body",
        children=(
            Element("div", children=(Text("intro"),)),
            Element("p", children=(Text("para"),)),
            Element("div", children=spans),
        ),
    )
    return DocumentTree(Element("html", children=(body,)))


def _second_span(tree: DocumentTree) -> Element:
    return tree.root.children[0].children[2].children[2]


class TestParsePath:
    """Tests for path parsing."""

    def test_segments(self) -> None:
        assert parse_path("/html/body[1]/div[2]") == [
            PathSegment("html", 1),
            PathSegment("body", 1),
            PathSegment("div", 2),
        ]

    @pytest.mark.parametrize("path", ["", "html/body[1]", "/html/body[1", "/html//p"])
    def test_malformed(self, path) -> None:
        with pytest.raises(PathSyntaxError):
            parse_path(path)

    def test_zero_index_is_rejected(self) -> None:
        with pytest.raises(PathSyntaxError):
            parse_path("/html/body[0]")


class TestBuildPath:
    """Tests for building paths."""

    def test_same_tag_siblings_are_counted(self, locator, tree) -> None:
        assert locator.build_path(tree, _second_span(tree)) == "/html/body[1]/div[2]/span[2]"

    def test_root_has_no_index(self, locator, tree) -> None:
        assert locator.build_path(tree, tree.root) == "/html"

    def test_text_node_is_rejected(self, locator, tree) -> None:
        with pytest.raises(PathError):
            locator.build_path(tree, tree.root.children[0].children[0].children[0])

    def test_detached_node_is_rejected(self, locator, tree) -> None:
        with pytest.raises(PathError):
            locator.build_path(tree, Element("div"))


class TestResolvePath:
    """Tests for resolving paths."""

    def test_round_trip_returns_same_node(self, locator, tree) -> None:
        node = _second_span(tree)
        assert locator.resolve_path(tree, locator.build_path(tree, node)) is node

    def test_root_index_is_accepted(self, locator, tree) -> None:
        assert locator.resolve_path(tree, "/html[1]/body[1]") is tree.root.children[0]

    @pytest.mark.parametrize(
        "path",
        [
            "/html/body[1]/div[3]",
            "/html/body[1]/section[1]",
            "/doc/body[1]",
            "/html/body[0]",
            "not a path",
        ],
    )
    def test_unresolvable_paths_return_none(self, locator, tree, path) -> None:
        assert locator.resolve_path(tree, path) is None

    def test_is_well_formed(self, locator) -> None:
        assert locator.is_well_formed("/html/body[1]/div[2]")
        assert not locator.is_well_formed("/html/body[1]]")
        assert not locator.is_well_formed("html")


class TestLocateText:
    """Tests for finding text inside a resolved node."""

    def test_prefers_single_text_node(self, locator, tree) -> None:
        container = tree.root.children[0].children[2]
        span = locator.locate_text(container, "second")

        assert span.text == "second"
        assert span.start == len("first and ")
        assert len(span.segments) == 1

    def test_text_across_nodes(self, locator, tree) -> None:
        container = tree.root.children[0].children[2]
        span = locator.locate_text(container, "first and sec")

        assert span.text == "first and sec"
        assert [segment.text for segment in span.segments] == ["first", " and ", "sec"]

    def test_missing_text(self, locator, tree) -> None:
        assert locator.locate_text(tree.root, "absent") is None
        assert locator.locate_text(tree.root, "") is None

    def test_near_picks_closest_occurrence(self, locator) -> None:
        node = Element("p", children=(Text("foo bar. "), Text("foo bar.")))

        assert locator.locate_text(node, "foo bar.").start == 0
        assert locator.locate_text(node, "foo bar.", near=9).start == 9
        assert locator.locate_text(node, "foo bar.", near=3).start == 0
        assert locator.locate_text(node, "absent", near=9) is None


class TestRecoverPath:
    """Tests for looser lookups once a path stops resolving."""

    def test_finds_element_under_inserted_wrapper(self, locator) -> None:
        target = Element("div", children=(Text("moved"),))
        wrapped = DocumentTree(Element("html", children=(Element("section", children=(target,)),)))

        assert locator.resolve_path(wrapped, "/html/div[1]") is None
        assert locator.recover_path(wrapped, "/html/div[1]") == [target]

    def test_longest_agreeing_tail_wins(self, locator) -> None:
        loose = Element("span", children=(Text("a"),))
        nested = Element("span", children=(Text("b"),))
        body = Element(
            "body",
            children=(Element("p", children=(loose,)), Element("div", children=(nested,))),
        )
        tree = DocumentTree(Element("html", children=(body,)))

        assert locator.recover_path(tree, "/html/main[1]/div[1]/span[1]") == [nested]

    def test_ties_are_kept_in_document_order(self, locator) -> None:
        first = Element("div", children=(Text("a"),))
        second = Element("div", children=(Text("b"),))
        root = Element(
            "html",
            children=(
                Element("section", children=(first,)),
                Element("section", children=(second,)),
            ),
        )
        assert locator.recover_path(DocumentTree(root), "/html/div[1]") == [first, second]

    @pytest.mark.parametrize("path", ["/html", "/html/table[1]", "not a path"])
    def test_nothing_to_recover(self, locator, tree, path) -> None:
        assert locator.recover_path(tree, path) == []
