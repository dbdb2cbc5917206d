"""
Core module: data models, exceptions, and the extraction pipeline.

Models (models.py):
    - MethodDescriptor / DeclaringType / MethodKind: Engine method model
    - CallGraphNode / CallSite / SourcePosition: Graph inputs
    - FileRange / Edge: Extraction outputs

Exceptions (exceptions.py):
    - EdgewalkError: Base exception for all edgewalk errors
    - EngineError: The engine could not produce a call graph
    - EntryFileError / ParseError / AnalysisCancelledError: Specific engine failures

Pipeline:
    - classify.is_real_function: Keep only user-written functions
    - resolve.resolve_call_target: Collapse constructor dispatch onto bodies
    - positions.to_file_range: Make positions relative to the base directory
    - extract.extract_edges: One flat pass producing edges
    - serialize.serialize / serialize.to_dot: Text output
"""

from edgewalk.core.exceptions import (
    AnalysisCancelledError,
    EdgewalkError,
    EngineError,
    EntryFileError,
    ParseError,
)
from edgewalk.core.extract import DropReason, ExtractStats, extract_edges
from edgewalk.core.models import (
    CallGraphNode,
    CallSite,
    DeclaringType,
    Edge,
    FileRange,
    MethodDescriptor,
    MethodKind,
    SourcePosition,
)
from edgewalk.core.naming import DEFAULT_NAMING, NamingScheme
from edgewalk.core.serialize import serialize, to_dot

__all__ = [
    # Models
    "CallGraphNode",
    "CallSite",
    "DeclaringType",
    "Edge",
    "FileRange",
    "MethodDescriptor",
    "MethodKind",
    "SourcePosition",
    # Naming
    "DEFAULT_NAMING",
    "NamingScheme",
    # Exceptions
    "AnalysisCancelledError",
    "EdgewalkError",
    "EngineError",
    "EntryFileError",
    "ParseError",
    # Pipeline
    "DropReason",
    "ExtractStats",
    "extract_edges",
    "serialize",
    "to_dot",
]
