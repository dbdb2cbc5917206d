"""Data models for Edgewalk."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class MethodKind(Enum):
    """How a method came to exist in the call graph."""

    ORDINARY = "ordinary"
    SYNTHETIC = "synthetic"
    CONSTRUCTOR = "constructor"


@dataclass(frozen=True)
class SourcePosition:
    """A (url, start, end) locator into source text. ``url`` is None when not file-backed."""

    url: str | None
    start_offset: int
    end_offset: int


@dataclass(eq=False)
class DeclaringType:
    """The construct that declares methods, addressed by qualified name."""

    name: str
    methods: dict[str, MethodDescriptor] = field(default_factory=dict)

    def add_method(self, method: MethodDescriptor) -> None:
        self.methods[method.name] = method

    def get_method(self, selector: str) -> MethodDescriptor | None:
        """Get method by selector, or None if this type does not declare it."""
        return self.methods.get(selector)

    def __repr__(self) -> str:
        return f"DeclaringType({self.name})"


@dataclass(eq=False)
class CallSite:
    """A call expression inside a method body."""

    program_counter: int
    label: str | None = None


@dataclass(eq=False)
class MethodDescriptor:
    """A method in the call graph.

    Compared and hashed by identity: two descriptors are the same target only
    when they are the same object.
    """

    declaring_type: DeclaringType
    name: str
    kind: MethodKind
    position: SourcePosition | None = None
    site_positions: dict[int, SourcePosition] = field(default_factory=dict)

    def source_position_at(self, site: CallSite) -> SourcePosition | None:
        """Position of a call site inside this method."""
        return self.site_positions.get(site.program_counter)

    @property
    def qualified_name(self) -> str:
        return f"{self.declaring_type.name}.{self.name}"

    def __repr__(self) -> str:
        return f"MethodDescriptor({self.qualified_name}, {self.kind.value})"


@dataclass(eq=False)
class CallGraphNode:
    """A method together with the call sites it contains."""

    method: MethodDescriptor
    call_sites: list[CallSite] = field(default_factory=list)

    def add_call_site(self, site: CallSite, position: SourcePosition | None = None) -> None:
        self.call_sites.append(site)
        if position is not None:
            self.method.site_positions[site.program_counter] = position

    def __repr__(self) -> str:
        return f"CallGraphNode({self.method.qualified_name}, sites={len(self.call_sites)})"


@dataclass(frozen=True)
class FileRange:
    """A source range in a file relative to the base directory."""

    file: str
    start: int
    end: int

    @property
    def range(self) -> list[int]:
        return [self.start, self.end]

    def __str__(self) -> str:
        return f"{self.file}[{self.start}:{self.end}]"


@dataclass(frozen=True)
class Edge:
    """A caller -> callee relationship between two source ranges."""

    caller: FileRange
    callee: FileRange
