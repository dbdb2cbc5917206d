"""Pipeline that coordinates graph construction, extraction and serialization."""

from __future__ import annotations

from pathlib import Path

from edgewalk.core.extract import DropCallback, ExtractStats, extract_edges
from edgewalk.core.graph import CallGraphEngine
from edgewalk.core.models import Edge
from edgewalk.core.naming import DEFAULT_NAMING, NamingScheme
from edgewalk.core.serialize import serialize
from edgewalk.languages import JavaScriptEngine


def base_dir_for(entry: Path) -> str:
    """Directory whose files count as the analyzed project: the entry file's parent."""
    return str(entry.resolve().parent)


def collect_edges(
    entry: Path,
    engine: CallGraphEngine | None = None,
    naming: NamingScheme = DEFAULT_NAMING,
    on_drop: DropCallback | None = None,
    stats: ExtractStats | None = None,
) -> list[Edge]:
    """Build the call graph of ``entry`` and extract its edges.

    Engine failures propagate; nothing is extracted from a partial graph.
    """
    if engine is None:
        engine = JavaScriptEngine(naming=naming)
    graph = engine.build(entry)
    return extract_edges(graph, base_dir_for(entry), naming, on_drop=on_drop, stats=stats)


def export_call_graph(
    entry: Path,
    engine: CallGraphEngine | None = None,
    naming: NamingScheme = DEFAULT_NAMING,
    on_drop: DropCallback | None = None,
) -> str:
    """Build, extract and serialize the call graph of ``entry`` as JSON text."""
    return serialize(collect_edges(entry, engine, naming, on_drop=on_drop))
