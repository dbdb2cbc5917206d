"""
Call graph engines: build a CallGraph from an entry source file.

Components:
    - JavaScriptEngine: tree-sitter based, name-resolving engine for JavaScript
      files and the scripts of HTML pages

The engine produces the full node model the extractor consumes:
    - A synthetic fake root that invokes the script's top level
    - One ordinary function-body method per function, method and class
    - Constructor-dispatch methods for `new` targets
    - Prelude methods for well-known runtime globals

Adding a new engine:
    1. Create a class implementing the CallGraphEngine protocol
    2. Implement build() to return a CallGraph
    3. Implement supports() to check entry file extensions
"""

from edgewalk.languages.javascript import JavaScriptEngine

__all__ = [
    "JavaScriptEngine",
]
