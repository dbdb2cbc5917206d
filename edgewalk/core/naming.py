"""Engine naming conventions used to recognize synthetic code."""

from __future__ import annotations

from dataclasses import dataclass

BOOTSTRAP_FILES = ("prologue.js", "preamble.js")


@dataclass(frozen=True)
class NamingScheme:
    """Names an engine gives to its own scaffolding.

    Attributes:
        bootstrap_files: Runtime-support files the engine injects into every analysis
        sentinel: Prefix of every declaring type name
        synthetic_marker: Substring marking synthetic DOM/runtime modelling helpers
        function_selector: Selector of an ordinary function body
        constructor_name: Reserved name of constructor-dispatch methods
    """

    bootstrap_files: tuple[str, ...] = BOOTSTRAP_FILES
    sentinel: str = "L"
    synthetic_marker: str = "/make_node"
    function_selector: str = "do"
    constructor_name: str = "ctor"

    def bootstrap_prefixes(self) -> tuple[str, ...]:
        return tuple(f"{self.sentinel}{name}/" for name in self.bootstrap_files)

    def type_name(self, *parts: str) -> str:
        """Build a declaring type name from path-like parts."""
        return self.sentinel + "/".join(parts)


DEFAULT_NAMING = NamingScheme()
