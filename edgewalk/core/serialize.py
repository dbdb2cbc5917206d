"""Render edges as JSON or DOT text."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from edgewalk.core.models import Edge, FileRange


def file_range_to_dict(file_range: FileRange) -> dict[str, Any]:
    """Convert a FileRange to a JSON-serializable dict."""
    return {"file": file_range.file, "range": file_range.range}


def edges_to_dicts(edges: Iterable[Edge]) -> list[dict[str, Any]]:
    """Convert edges to ``{"caller": ..., "callee": ...}`` dicts, order preserved."""
    return [
        {
            "caller": file_range_to_dict(edge.caller),
            "callee": file_range_to_dict(edge.callee),
        }
        for edge in edges
    ]


def serialize(edges: Iterable[Edge]) -> str:
    """Serialize edges as a compact JSON array. No edges gives ``[]``."""
    return json.dumps(edges_to_dicts(edges), separators=(",", ":"))


def _dot_id(file_range: FileRange) -> str:
    label = str(file_range).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{label}"'


def to_dot(edges: Iterable[Edge], graph_name: str = "callgraph") -> str:
    """Render edges as a Graphviz digraph, one line per edge."""
    lines = [f"digraph {graph_name} {{"]
    for edge in edges:
        lines.append(f"  {_dot_id(edge.caller)} -> {_dot_id(edge.callee)};")
    lines.append("}")
    return "\n".join(lines)
