"""Core CallGraph class holding nodes and per-call-site targets."""

from __future__ import annotations

from collections.abc import Iterator

from edgewalk.core.models import CallGraphNode, CallSite


class CallGraph:
    """Directed multigraph of methods and the call sites that may invoke them.

    Nodes keep insertion order. Targets are recorded per (node, call site)
    and may form cycles.
    """

    __slots__ = ("_nodes", "_targets")

    def __init__(self) -> None:
        self._nodes: list[CallGraphNode] = []
        self._targets: dict[tuple[int, int], list[CallGraphNode]] = {}

    def add_node(self, node: CallGraphNode) -> CallGraphNode:
        """Add a node. O(1)."""
        self._nodes.append(node)
        return node

    def add_target(self, node: CallGraphNode, site: CallSite, target: CallGraphNode) -> None:
        """Record that ``site`` in ``node`` may invoke ``target``. O(1)."""
        self._targets.setdefault((id(node), site.program_counter), []).append(target)

    def possible_targets(self, node: CallGraphNode, site: CallSite) -> list[CallGraphNode]:
        """Get the nodes a call site may invoke. O(1)."""
        return list(self._targets.get((id(node), site.program_counter), []))

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def num_edges(self) -> int:
        return sum(len(targets) for targets in self._targets.values())

    def __iter__(self) -> Iterator[CallGraphNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"CallGraph(nodes={self.num_nodes}, edges={self.num_edges})"
