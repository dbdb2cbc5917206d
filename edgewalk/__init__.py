"""
Edgewalk: Flatten a program's call graph into caller -> callee source ranges.

Edgewalk takes the call graph an analysis engine builds for an entry file and
emits every edge as a pair of `{file, range}` positions, enabling you to:
- Feed call relations into dead-code elimination or lazy loading tools
- Diff call graphs across revisions as plain JSON
- Render the same edges as Graphviz DOT

Usage:
    from pathlib import Path
    from edgewalk.core.pipeline import export_call_graph

    print(export_call_graph(Path("site/index.js")))
"""

__version__ = "0.1.0"
