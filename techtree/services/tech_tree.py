"""Technology prerequisite graph.

Nodes live in a single name-keyed index; adjacency is stored as lists of
node names, so the graph can hold multiple parents and even cycles
without shared-object bookkeeping. A prerequisite that names no known
technology becomes a dangling node (``data is None``).
"""

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional

from techtree.core.types import Technology
from techtree.observ import get_logger


logger = get_logger(__name__)


@dataclass
class GraphNode:
    """One technology, or a placeholder for a missing prerequisite."""
    name: str
    data: Optional[Technology] = None
    predecessors: list[str] = field(default_factory=list)
    successors: list[str] = field(default_factory=list)

    @property
    def is_dangling(self) -> bool:
        return self.data is None


@dataclass
class GraphStats:
    """Graph statistics."""
    num_nodes: int
    num_edges: int
    num_dangling: int
    num_start: int


@dataclass
class TechnologyTree:
    """Prerequisite graph with start technologies and dangling nodes as roots."""

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    start_tech: list[str] = field(default_factory=list)
    dangling: list[str] = field(default_factory=list)

    @classmethod
    def build(cls, technologies: Mapping[str, Technology]) -> "TechnologyTree":
        """Build the graph from ``id -> Technology``.

        Ids are visited in sorted order so the result does not depend on
        the iteration order of ``technologies``.
        """
        tree = cls()
        ids = sorted(technologies)

        for tech_id in ids:
            tree.nodes[tech_id] = GraphNode(name=tech_id, data=technologies[tech_id])

        for tech_id in ids:
            tree._link_prerequisites(tree.nodes[tech_id])
            if technologies[tech_id].start_tech:
                tree.start_tech.append(tech_id)

        logger.debug(
            "tech_tree_built",
            nodes=len(tree.nodes),
            start_tech=len(tree.start_tech),
            dangling=len(tree.dangling)
        )
        return tree

    def _link_prerequisites(self, node: GraphNode) -> None:
        if node.data is None:
            return

        for prerequisite in node.data.prerequisites:
            parent = self.nodes.get(prerequisite)
            if parent is None:
                parent = GraphNode(name=prerequisite)
                self.nodes[prerequisite] = parent
                self.dangling.append(prerequisite)

            if node.name in parent.successors:
                continue
            parent.successors.append(node.name)
            node.predecessors.append(parent.name)

    # ─────────────────────────────────────────────────────────────────────────
    # Accessors
    # ─────────────────────────────────────────────────────────────────────────

    def __contains__(self, name: str) -> bool:
        return name in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, name: str) -> GraphNode:
        return self.nodes[name]

    def predecessors(self, name: str) -> list[GraphNode]:
        return [self.nodes[n] for n in self.nodes[name].predecessors]

    def successors(self, name: str) -> list[GraphNode]:
        return [self.nodes[n] for n in self.nodes[name].successors]

    def roots(self) -> list[GraphNode]:
        """Start technologies followed by dangling nodes."""
        return [self.nodes[n] for n in self.start_tech + self.dangling]

    # ─────────────────────────────────────────────────────────────────────────
    # Traversal
    # ─────────────────────────────────────────────────────────────────────────

    def walk(self, root: str) -> Iterator[GraphNode]:
        """Depth-first walk along successors, each node at most once."""
        if root not in self.nodes:
            return

        visited: set[str] = set()
        stack = [root]
        while stack:
            name = stack.pop()
            if name in visited:
                continue
            visited.add(name)

            node = self.nodes[name]
            yield node
            # Reversed so the first successor is visited first.
            stack.extend(reversed(node.successors))

    def find(self, root: str, tech: Technology) -> Optional[GraphNode]:
        """First node reachable from ``root`` holding ``tech``."""
        for node in self.walk(root):
            if node.data is not None and node.data == tech:
                return node
        return None

    def find_by_id(self, root: str, tech_id: str) -> Optional[GraphNode]:
        """First node reachable from ``root`` named ``tech_id``."""
        for node in self.walk(root):
            if node.name == tech_id:
                return node
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Reporting
    # ─────────────────────────────────────────────────────────────────────────

    def stats(self) -> GraphStats:
        return GraphStats(
            num_nodes=len(self.nodes),
            num_edges=sum(len(node.successors) for node in self.nodes.values()),
            num_dangling=len(self.dangling),
            num_start=len(self.start_tech)
        )

    def dump(self) -> str:
        """Human-readable listing of every node and its neighbours."""
        lines = []
        for name in sorted(self.nodes):
            node = self.nodes[name]
            flags = []
            if node.is_dangling:
                flags.append("dangling")
            if name in self.start_tech:
                flags.append("start")
            header = f"{name} [{', '.join(flags)}]" if flags else name

            lines.append(header)
            lines.append(f"  <- {', '.join(node.predecessors) or '-'}")
            lines.append(f"  -> {', '.join(node.successors) or '-'}")
        return "\n".join(lines) + "\n" if lines else ""


def build_tech_tree(technologies: Mapping[str, Technology]) -> TechnologyTree:
    """Build a ``TechnologyTree`` from resolved technologies."""
    return TechnologyTree.build(technologies)
