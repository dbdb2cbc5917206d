"""Protocol for call graph engines."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from edgewalk.core.graph.base import CallGraph


class CallGraphEngine(Protocol):
    """Protocol for engines that build a call graph from an entry file."""

    def build(self, entry: Path) -> CallGraph:
        """Build the call graph of the program reachable from ``entry``."""
        ...

    def supports(self, entry: Path) -> bool:
        """Check if this engine can analyze the given entry file."""
        ...
