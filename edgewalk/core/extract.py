"""Walk a call graph and collect caller -> callee edges."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from edgewalk.core.classify import is_real_function
from edgewalk.core.graph import CallGraph
from edgewalk.core.models import CallGraphNode, CallSite, Edge, FileRange, MethodDescriptor
from edgewalk.core.naming import DEFAULT_NAMING, NamingScheme
from edgewalk.core.positions import to_file_range
from edgewalk.core.resolve import resolve_call_target


class DropReason(Enum):
    """Why a node, call site or target produced no edge."""

    NOT_A_FUNCTION = "not_a_function"
    CALLER_OUTSIDE_BASE = "caller_outside_base"
    NO_TARGETS = "no_targets"
    TARGET_NOT_A_FUNCTION = "target_not_a_function"
    CALLEE_OUTSIDE_BASE = "callee_outside_base"


DropCallback = Callable[[DropReason, str], None]


class ExtractStats:
    """Counts from an extraction pass. Pass ``record`` as the drop callback."""

    def __init__(self) -> None:
        self.nodes: int = 0
        self.call_sites: int = 0
        self.edges: int = 0
        self.dropped: dict[DropReason, int] = {reason: 0 for reason in DropReason}

    def record(self, reason: DropReason, detail: str) -> None:
        self.dropped[reason] += 1

    def __repr__(self) -> str:
        drops = ", ".join(f"{r.value}={n}" for r, n in self.dropped.items() if n)
        return (
            f"ExtractStats(nodes={self.nodes}, call_sites={self.call_sites}, "
            f"edges={self.edges}, dropped=[{drops}])"
        )


def extract_edges(
    graph: CallGraph,
    base_dir: str,
    naming: NamingScheme = DEFAULT_NAMING,
    on_drop: DropCallback | None = None,
    stats: ExtractStats | None = None,
) -> list[Edge]:
    """Extract every (caller, callee) edge of a call graph.

    One flat pass over nodes in the graph's own order. Nothing is
    deduplicated: the same edge may be emitted many times.

    Args:
        graph: Call graph produced by an engine
        base_dir: Directory that decides which positions belong to the project
        naming: Engine naming conventions for synthetic code
        on_drop: Optional callback invoked for every skipped node, site or target
        stats: Optional counters updated during the pass

    Returns:
        Edges in extraction order
    """
    if stats is not None:
        on_drop = _chain(stats.record, on_drop)

    def drop(reason: DropReason, detail: str) -> None:
        if on_drop is not None:
            on_drop(reason, detail)

    edges: list[Edge] = []

    for node in graph:
        if stats is not None:
            stats.nodes += 1
        if not is_real_function(node.method, naming):
            drop(DropReason.NOT_A_FUNCTION, node.method.qualified_name)
            continue

        for site in node.call_sites:
            if stats is not None:
                stats.call_sites += 1

            caller = to_file_range(node.method.source_position_at(site), base_dir)
            if caller is None:
                drop(DropReason.CALLER_OUTSIDE_BASE, _site_detail(node, site))
                continue

            targets = _target_methods(graph, node, site)
            if not targets:
                drop(DropReason.NO_TARGETS, _site_detail(node, site))
                continue

            edges.extend(_edges_for_site(caller, targets, base_dir, naming, drop))

    if stats is not None:
        stats.edges = len(edges)
    return edges


def _target_methods(
    graph: CallGraph, node: CallGraphNode, site: CallSite
) -> list[MethodDescriptor]:
    """Distinct target methods of a call site, in first-seen order."""
    seen: dict[MethodDescriptor, None] = {}
    for target in graph.possible_targets(node, site):
        seen.setdefault(target.method, None)
    return list(seen)


def _edges_for_site(
    caller: FileRange,
    targets: list[MethodDescriptor],
    base_dir: str,
    naming: NamingScheme,
    drop: DropCallback,
) -> list[Edge]:
    """Create the edges from one call site to each reportable target."""
    edges: list[Edge] = []
    for target in targets:
        method = resolve_call_target(target, naming)
        if not is_real_function(method, naming):
            drop(DropReason.TARGET_NOT_A_FUNCTION, method.qualified_name)
            continue

        callee = to_file_range(method.position, base_dir)
        if callee is None:
            drop(DropReason.CALLEE_OUTSIDE_BASE, method.qualified_name)
            continue

        edges.append(Edge(caller=caller, callee=callee))
    return edges


def _site_detail(node: CallGraphNode, site: CallSite) -> str:
    label = f" ({site.label})" if site.label else ""
    return f"{node.method.qualified_name}@{site.program_counter}{label}"


def _chain(first: DropCallback, second: DropCallback | None) -> DropCallback:
    if second is None:
        return first

    def both(reason: DropReason, detail: str) -> None:
        first(reason, detail)
        second(reason, detail)

    return both
