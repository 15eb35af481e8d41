"""
Tests for jtree.core.tree module.

Tests cover forest construction from flat span lists: parent resolution,
orphan promotion, reference kinds, ordering, the trace start time and
cycle breaking.
"""

import random
from typing import List, Optional

import pytest

from jtree.core.parser import CHILD_OF, Process, Reference, Span, Trace
from jtree.core.tree import SpanNode, SpanTree, build_tree, get_parent_id, sort_nodes

FOLLOWS_FROM = "FOLLOWS_FROM"


def make_span(
    span_id: str,
    start: int = 0,
    parent: Optional[str] = None,
    duration: int = 100,
    process: str = "p1",
    ref_type: str = CHILD_OF,
) -> Span:
    """Create a span with an optional reference to a parent."""
    references = (Reference(ref_type, parent),) if parent is not None else ()
    return Span(
        spanId=span_id,
        operation=f"op-{span_id}",
        references=references,
        startTime=start,
        duration=duration,
        processId=process,
    )


def make_trace(spans: List[Span]) -> Trace:
    return Trace(
        traceId="trace-1",
        spans=spans,
        processes={"p1": Process("frontend"), "p2": Process("backend")},
    )


def ids(nodes: List[SpanNode]) -> List[str]:
    return [node.spanId for node in nodes]


def flatten_forest(tree: SpanTree) -> List[SpanNode]:
    """Collect every node of the forest in pre-order."""
    nodes: List[SpanNode] = []
    stack = list(reversed(tree.roots))
    while stack:
        node = stack.pop()
        nodes.append(node)
        stack.extend(reversed(node.children))
    return nodes


@pytest.fixture
def four_span_trace() -> Trace:
    """root -> {child1 -> grandchild, child2}, given out of order."""
    return make_trace([
        make_span("grandchild", 1100, parent="child1", process="p2"),
        make_span("child2", 1250, parent="root"),
        make_span("root", 1000),
        make_span("child1", 1050, parent="root", process="p2"),
    ])


class TestGetParentId:
    """Tests for parent resolution from references."""

    def test_no_references(self) -> None:
        """A span without references has no parent."""
        assert get_parent_id(make_span("a")) is None

    def test_child_of_reference(self) -> None:
        """CHILD_OF gives the parent."""
        assert get_parent_id(make_span("b", parent="a")) == "a"

    def test_follows_from_ignored(self) -> None:
        """FOLLOWS_FROM never establishes a parent."""
        assert get_parent_id(make_span("b", parent="a", ref_type=FOLLOWS_FROM)) is None

    def test_first_child_of_wins(self) -> None:
        """The first CHILD_OF reference is used, after skipping other kinds."""
        span = Span(
            spanId="c",
            references=(
                Reference(FOLLOWS_FROM, "x"),
                Reference(CHILD_OF, "a"),
                Reference(CHILD_OF, "b"),
            ),
        )
        assert get_parent_id(span) == "a"


class TestBuildTree:
    """Tests for build_tree."""

    def test_single_root_span(self) -> None:
        """One span yields one root with no children."""
        tree = build_tree(make_trace([make_span("root", 1000)]))
        assert ids(tree.roots) == ["root"]
        assert tree.roots[0].children == []
        assert tree.roots[0].service == "frontend"

    def test_parent_child_relationship(self) -> None:
        """A CHILD_OF reference attaches the span to its parent."""
        tree = build_tree(make_trace([
            make_span("root", 1000),
            make_span("child", 1100, parent="root"),
        ]))
        assert ids(tree.roots) == ["root"]
        assert ids(tree.roots[0].children) == ["child"]

    def test_child_before_parent_in_input(self) -> None:
        """Construction does not depend on parents coming first."""
        tree = build_tree(make_trace([
            make_span("child", 1100, parent="root"),
            make_span("root", 1000),
        ]))
        assert ids(tree.roots) == ["root"]
        assert ids(tree.roots[0].children) == ["child"]

    def test_multiple_roots(self) -> None:
        """Spans without parents are all roots."""
        tree = build_tree(make_trace([make_span("a", 2000), make_span("b", 1000)]))
        assert ids(tree.roots) == ["b", "a"]

    def test_multi_level_nesting(self, four_span_trace: Trace) -> None:
        """The four span scenario nests grandchild under child1."""
        tree = build_tree(four_span_trace)
        assert ids(tree.roots) == ["root"]
        root = tree.roots[0]
        assert ids(root.children) == ["child1", "child2"]
        assert ids(root.children[0].children) == ["grandchild"]
        assert root.children[1].children == []

    def test_services_resolved(self, four_span_trace: Trace) -> None:
        """Each node carries the service of its process."""
        tree = build_tree(four_span_trace)
        services = {node.spanId: node.service for node in flatten_forest(tree)}
        assert services == {
            "root": "frontend",
            "child1": "backend",
            "grandchild": "backend",
            "child2": "frontend",
        }

    def test_missing_process_gives_empty_service(self) -> None:
        """An unknown process identifier is not an error."""
        tree = build_tree(make_trace([make_span("a", process="nope")]))
        assert tree.roots[0].service == ""

    def test_orphan_promoted_to_root(self) -> None:
        """A span whose parent is missing becomes a root."""
        tree = build_tree(make_trace([
            make_span("root", 1000),
            make_span("orphan", 1500, parent="missing"),
        ]))
        assert ids(tree.roots) == ["root", "orphan"]

    def test_follows_from_gives_independent_roots(self) -> None:
        """A FOLLOWS_FROM link between two spans creates no edge."""
        tree = build_tree(make_trace([
            make_span("a", 1000),
            make_span("b", 2000, parent="a", ref_type=FOLLOWS_FROM),
        ]))
        assert ids(tree.roots) == ["a", "b"]
        assert all(node.children == [] for node in tree.roots)

    def test_empty_trace(self) -> None:
        """No spans gives no roots and a start time of 0."""
        tree = build_tree(make_trace([]))
        assert tree.roots == []
        assert tree.startTime == 0


class TestOrdering:
    """Tests for start time ordering."""

    def test_roots_sorted_by_start_time(self) -> None:
        """Roots are sorted ascending regardless of input order."""
        tree = build_tree(make_trace([
            make_span("c", 3000),
            make_span("a", 1000),
            make_span("b", 2000),
        ]))
        assert ids(tree.roots) == ["a", "b", "c"]

    def test_children_sorted_by_start_time(self) -> None:
        """Every child list is sorted ascending."""
        tree = build_tree(make_trace([
            make_span("root", 0),
            make_span("c3", 300, parent="root"),
            make_span("c1", 100, parent="root"),
            make_span("c2", 200, parent="root"),
            make_span("g2", 250, parent="c1"),
            make_span("g1", 150, parent="c1"),
        ]))
        root = tree.roots[0]
        assert ids(root.children) == ["c1", "c2", "c3"]
        assert ids(root.children[0].children) == ["g1", "g2"]

    def test_equal_start_times_keep_input_order(self) -> None:
        """Ties are broken by input order."""
        tree = build_tree(make_trace([
            make_span("root", 0),
            make_span("x", 100, parent="root"),
            make_span("y", 100, parent="root"),
            make_span("z", 100, parent="root"),
            make_span("r2", 0),
        ]))
        assert ids(tree.roots) == ["root", "r2"]
        assert ids(tree.roots[0].children) == ["x", "y", "z"]

    def test_sort_nodes_in_place(self) -> None:
        """sort_nodes reorders the given list."""
        nodes = [SpanNode(make_span("b", 2)), SpanNode(make_span("a", 1))]
        sort_nodes(nodes)
        assert ids(nodes) == ["a", "b"]


class TestStartTime:
    """Tests for the trace start time."""

    def test_start_time_is_minimum(self, four_span_trace: Trace) -> None:
        """The start time is the earliest span start."""
        assert build_tree(four_span_trace).startTime == 1000

    def test_start_time_from_orphan(self) -> None:
        """Every span counts, not only roots of the main tree."""
        tree = build_tree(make_trace([
            make_span("root", 5000),
            make_span("orphan", 10, parent="missing"),
        ]))
        assert tree.startTime == 10


class TestConservation:
    """Every span appears exactly once in the forest."""

    @pytest.mark.parametrize("seed", range(10))
    def test_random_forests_keep_every_span(self, seed: int) -> None:
        """Random parent links, orphans included, never drop or duplicate spans."""
        rng = random.Random(seed)
        spans = []
        for i in range(40):
            parent = None
            roll = rng.random()
            if i > 0 and roll < 0.7:
                parent = f"s{rng.randrange(i)}"
            elif roll < 0.8:
                parent = "ghost"
            spans.append(make_span(f"s{i}", rng.randrange(1000), parent=parent))
        rng.shuffle(spans)

        tree = build_tree(make_trace(spans))
        seen = ids(flatten_forest(tree))
        assert sorted(seen) == sorted(s.spanId for s in spans)
        assert len(seen) == len(set(seen))

        for node in flatten_forest(tree):
            starts = [child.span.startTime for child in node.children]
            assert starts == sorted(starts)
        root_starts = [root.span.startTime for root in tree.roots]
        assert root_starts == sorted(root_starts)


class TestCycles:
    """Cyclic parent references are broken instead of losing spans."""

    def test_self_reference_becomes_root(self) -> None:
        """A span that is its own parent is a root."""
        tree = build_tree(make_trace([make_span("a", 0, parent="a")]))
        assert ids(tree.roots) == ["a"]
        assert tree.roots[0].children == []

    def test_two_span_cycle(self) -> None:
        """In a two span cycle, the first span in input order becomes root."""
        tree = build_tree(make_trace([
            make_span("a", 0, parent="b"),
            make_span("b", 10, parent="a"),
        ]))
        assert ids(tree.roots) == ["a"]
        assert ids(tree.roots[0].children) == ["b"]

    def test_cycle_below_real_root(self) -> None:
        """A cycle not reachable from the root still keeps all spans."""
        tree = build_tree(make_trace([
            make_span("root", 0),
            make_span("x", 10, parent="z"),
            make_span("y", 20, parent="x"),
            make_span("z", 30, parent="y"),
        ]))
        assert sorted(ids(flatten_forest(tree))) == ["root", "x", "y", "z"]
        assert ids(tree.roots) == ["root", "x"]

    def test_cycle_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """Breaking a cycle is reported."""
        with caplog.at_level("WARNING", logger="jtree.core.tree"):
            build_tree(make_trace([make_span("a", 0, parent="a")]))
        assert "own ancestor" in caplog.text


class TestDuplicateIds:
    """Duplicate span identifiers."""

    def test_duplicate_ids_keep_both_spans(self, caplog: pytest.LogCaptureFixture) -> None:
        """Both spans get a node; children attach to the first."""
        with caplog.at_level("WARNING", logger="jtree.core.tree"):
            tree = build_tree(make_trace([
                make_span("a", 0),
                make_span("a", 5),
                make_span("c", 10, parent="a"),
            ]))
        assert len(tree.roots) == 2
        assert ids(tree.roots[0].children) == ["c"]
        assert tree.roots[1].children == []
        assert "Duplicate span ID a" in caplog.text
