"""
Call graph container and engine interface.

Data Structures:
    - CallGraph: Nodes in engine order plus per-call-site possible targets

Interfaces:
    - CallGraphEngine: Protocol for anything that builds a CallGraph from an entry file

The graph is read-only once built and may contain cycles (recursion) and
unreachable nodes. Consumers make one flat pass over it and never traverse.
"""

from edgewalk.core.graph.base import CallGraph
from edgewalk.core.graph.engine import CallGraphEngine

__all__ = [
    "CallGraph",
    "CallGraphEngine",
]
