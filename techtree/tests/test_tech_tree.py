"""Test suite for the technology prerequisite graph."""

import random

from techtree.core.types import Technology
from techtree.services.tech_tree import GraphStats, TechnologyTree, build_tech_tree


def tech(tech_id: str, *prerequisites: str, start: bool = False) -> Technology:
    return Technology(
        package_id="test",
        id=tech_id,
        prerequisites=list(prerequisites),
        start_tech=start
    )


def techs(*records: Technology) -> dict[str, Technology]:
    return {t.id: t for t in records}


def edges(tree: TechnologyTree) -> set[tuple[str, str]]:
    return {
        (name, successor)
        for name, node in tree.nodes.items()
        for successor in node.successors
    }


class TestBuild:
    """Test graph construction."""

    def test_dangling_prerequisite(self):
        tree = build_tech_tree(techs(tech("b", "a")))

        assert len(tree) == 2
        assert tree["a"].data is None
        assert tree["a"].is_dangling
        assert tree["a"].successors == ["b"]
        assert tree["b"].predecessors == ["a"]
        assert tree.dangling == ["a"]

    def test_known_prerequisite(self):
        tree = build_tech_tree(techs(tech("a"), tech("b", "a")))

        assert tree["a"].data.id == "a"
        assert tree["a"].successors == ["b"]
        assert tree["b"].predecessors == ["a"]
        assert tree.dangling == []

    def test_dangling_node_is_shared(self):
        tree = build_tech_tree(techs(tech("b", "missing"), tech("c", "missing")))

        assert tree.dangling == ["missing"]
        assert tree["missing"].successors == ["b", "c"]

    def test_duplicate_prerequisite_is_one_edge(self):
        tree = build_tech_tree(techs(tech("a"), tech("b", "a", "a")))

        assert tree["a"].successors == ["b"]
        assert tree["b"].predecessors == ["a"]

    def test_start_tech_roots(self):
        tree = build_tech_tree(techs(tech("root", start=True), tech("leaf", "root")))

        assert tree.start_tech == ["root"]
        assert [n.name for n in tree.roots()] == ["root"]

    def test_multiple_parents(self):
        tree = build_tech_tree(techs(tech("a"), tech("b"), tech("c", "a", "b")))

        assert [n.name for n in tree.predecessors("c")] == ["a", "b"]
        assert [n.name for n in tree.successors("a")] == ["c"]

    def test_determinism(self):
        records = [
            tech("a", start=True),
            tech("b", "a"),
            tech("c", "a", "x"),
            tech("d", "b", "c"),
            tech("e", "y", "d"),
        ]
        reference = build_tech_tree(techs(*records))

        for seed in range(5):
            shuffled = list(records)
            random.Random(seed).shuffle(shuffled)
            tree = build_tech_tree(techs(*shuffled))

            assert set(tree.nodes) == set(reference.nodes)
            assert edges(tree) == edges(reference)
            assert tree.dump() == reference.dump()


class TestTraversal:
    """Test search from a root."""

    def setup_method(self):
        self.tree = TechnologyTree.build(techs(
            tech("a", start=True),
            tech("b", "a"),
            tech("c", "b"),
            tech("d", "a"),
        ))

    def test_find_by_id(self):
        node = self.tree.find_by_id("a", "c")
        assert node is not None
        assert node.name == "c"

    def test_find_by_id_includes_root(self):
        assert self.tree.find_by_id("a", "a").name == "a"

    def test_find_by_id_unreachable(self):
        assert self.tree.find_by_id("d", "c") is None

    def test_find_unknown_root(self):
        assert self.tree.find_by_id("nope", "a") is None

    def test_find_by_technology(self):
        node = self.tree.find("a", tech("d"))
        assert node is not None
        assert node.name == "d"

    def test_walk_order(self):
        assert [n.name for n in self.tree.walk("a")] == ["a", "b", "c", "d"]

    def test_cycle_terminates(self):
        tree = build_tech_tree(techs(tech("a", "b"), tech("b", "a")))

        assert tree.find_by_id("a", "missing") is None
        assert {n.name for n in tree.walk("a")} == {"a", "b"}


class TestReporting:
    """Test stats and dump output."""

    def test_stats(self):
        tree = build_tech_tree(techs(tech("a", start=True), tech("b", "a", "z")))
        assert tree.stats() == GraphStats(num_nodes=3, num_edges=2, num_dangling=1, num_start=1)

    def test_dump(self):
        tree = build_tech_tree(techs(tech("a", start=True), tech("b", "a", "z")))
        assert tree.dump() == (
            "a [start]\n"
            "  <- -\n"
            "  -> b\n"
            "b\n"
            "  <- a, z\n"
            "  -> -\n"
            "z [dangling]\n"
            "  <- -\n"
            "  -> b\n"
        )

    def test_empty_tree(self):
        tree = build_tech_tree({})
        assert len(tree) == 0
        assert tree.dump() == ""
