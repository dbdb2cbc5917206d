"""JavaScript call graph engine built on tree-sitter.

Entry files are either a single script or an HTML page whose inline
`<script>` blocks and local `<script src>` files are analyzed together, in
document order, sharing one global scope.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote, urlsplit

import tree_sitter_html
import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from edgewalk.core.exceptions import AnalysisCancelledError, EntryFileError, ParseError
from edgewalk.core.graph import CallGraph
from edgewalk.core.models import (
    CallGraphNode,
    CallSite,
    DeclaringType,
    MethodDescriptor,
    MethodKind,
    SourcePosition,
)
from edgewalk.core.naming import DEFAULT_NAMING, NamingScheme

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tree_sitter_javascript.language())
HTML_LANGUAGE = Language(tree_sitter_html.language())

SCRIPT_SUFFIXES = (".js", ".mjs", ".cjs")
PAGE_SUFFIXES = (".html", ".htm")
SUFFIXES = SCRIPT_SUFFIXES + PAGE_SUFFIXES

# <script type="..."> values that hold JavaScript
SCRIPT_TYPES = frozenset(
    {
        "",
        "application/ecmascript",
        "application/javascript",
        "module",
        "text/ecmascript",
        "text/javascript",
    }
)

PRELUDE_FILE = "prologue.js"

# Globals modelled by the engine's own runtime prelude
PRELUDE_GLOBALS = frozenset(
    {
        "Array",
        "Boolean",
        "Date",
        "Error",
        "Function",
        "JSON",
        "Math",
        "Number",
        "Object",
        "Promise",
        "RegExp",
        "String",
        "clearInterval",
        "clearTimeout",
        "decodeURIComponent",
        "encodeURIComponent",
        "eval",
        "isNaN",
        "parseFloat",
        "parseInt",
        "require",
        "setInterval",
        "setTimeout",
    }
)

FAKE_ROOT_TYPE = "FakeRoot"
FAKE_ROOT_METHOD = "fakeRootMethod"

_FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "generator_function_declaration",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
    }
)
_DECLARATION_TYPES = frozenset({"function_declaration", "generator_function_declaration"})
_CLASS_TYPES = frozenset({"class_declaration", "class"})
_CALL_TYPES = frozenset({"call_expression", "new_expression"})
_INDIRECT_CALLS = frozenset({"call", "apply"})
_MAX_LABEL = 40


@dataclass(frozen=True)
class _Script:
    """One parsed script: a file of its own or an inline block of a page."""

    file: Path
    root: Node
    offset: int = 0
    inline: bool = False


@dataclass(eq=False)
class _Function:
    """A function-like scope discovered while walking the syntax tree."""

    type: DeclaringType
    body: CallGraphNode
    parent: _Function | None = None
    bindings: dict[str, _Function] = field(default_factory=dict)
    sites: list[tuple[CallSite, Node]] = field(default_factory=list)
    ctor: CallGraphNode | None = None
    script: int = 0

    def lookup(self, name: str) -> _Function | None:
        """Resolve an identifier through the lexical scope chain."""
        scope: _Function | None = self
        while scope is not None:
            if name in scope.bindings:
                return scope.bindings[name]
            scope = scope.parent
        return None


class JavaScriptEngine:
    """Builds a name-based call graph for a JavaScript file or an HTML page.

    Identifiers resolve through lexical scopes, member calls resolve to every
    function stored under the same property name (field-based), and `new F()`
    targets F's constructor-dispatch method. Top-level declarations of all
    scripts on a page share the global scope.
    """

    def __init__(
        self, naming: NamingScheme = DEFAULT_NAMING, timeout: float | None = None
    ) -> None:
        self._naming = naming
        self._timeout = timeout
        self._parser = Parser(JS_LANGUAGE)
        self._html_parser = Parser(HTML_LANGUAGE)

    def supports(self, entry: Path) -> bool:
        """Check if this engine supports the given file."""
        return entry.suffix.lower() in SUFFIXES

    def build(self, entry: Path) -> CallGraph:
        """Parse ``entry`` and build its call graph."""
        if not entry.is_file():
            raise EntryFileError(f"Entry file not found: {entry}")
        if not self.supports(entry):
            raise EntryFileError(f"Unsupported entry file: {entry}")

        entry = entry.resolve()
        deadline = time.monotonic() + self._timeout if self._timeout is not None else None

        if entry.suffix.lower() in PAGE_SUFFIXES:
            scripts = self._page_scripts(entry)
        else:
            scripts = [self._parse_script(entry, _read(entry))]

        builder = _GraphBuilder(entry, self._naming, deadline)
        graph = builder.build(scripts)
        logger.debug("Built %r for %s (%d scripts)", graph, entry, len(scripts))
        return graph

    def _parse_script(
        self, file: Path, source: bytes, offset: int = 0, inline: bool = False
    ) -> _Script:
        tree = self._parser.parse(source)
        if tree.root_node.has_error:
            where = f"inline script at byte {offset} of {file}" if inline else str(file)
            raise ParseError(f"Syntax error in {where}")
        return _Script(file, tree.root_node, offset, inline)

    def _page_scripts(self, page: Path) -> list[_Script]:
        """Scripts of an HTML page in document order.

        Remote scripts and non-JavaScript script types are skipped. A local
        script that does not exist is an error.
        """
        source = _read(page)
        tree = self._html_parser.parse(source)

        scripts = []
        for element in _script_elements(tree.root_node):
            attributes = _attributes(element)
            script_type = attributes.get("type", "").strip().lower()
            if script_type not in SCRIPT_TYPES:
                logger.debug("Skipping <script type=%r> in %s", script_type, page)
                continue

            src = attributes.get("src", "").strip()
            if src:
                path = _local_script(page, src)
                if path is None:
                    logger.debug("Skipping remote script %s", src)
                    continue
                if not path.is_file():
                    raise EntryFileError(f"Script not found: {src} (referenced from {page})")
                scripts.append(self._parse_script(path, _read(path)))
                continue

            for raw in element.named_children:
                if raw.type == "raw_text":
                    code = source[raw.start_byte : raw.end_byte]
                    scripts.append(self._parse_script(page, code, raw.start_byte, inline=True))
        return scripts


class _GraphBuilder:
    """Two passes over the scripts: collect functions and sites, then resolve targets."""

    def __init__(self, entry: Path, naming: NamingScheme, deadline: float | None) -> None:
        self.entry = entry
        self.graph = CallGraph()
        self._naming = naming
        self._deadline = deadline

        self._functions: list[_Function] = []
        self._by_node: dict[tuple[int, str, int, int], _Function] = {}
        self._properties: dict[str, list[_Function]] = {}
        self._prelude: dict[str, _Function] = {}
        self._globals: dict[str, _Function] = {}
        self._pending: list[tuple[Node, _Function]] = []

        # Script being walked in the first pass
        self._script = 0
        self._url = entry.as_uri()
        self._offset = 0

    def build(self, scripts: list[_Script]) -> CallGraph:
        fake_root = self._add_fake_root()

        for index, script in enumerate(scripts):
            self._script = index
            self._url = script.file.as_uri()
            self._offset = script.offset

            if script.inline:
                type_name = self._naming.type_name(
                    script.file.as_posix(), f"__script@{script.offset}"
                )
                label = f"{script.file.name}@{script.offset}"
            else:
                type_name = self._naming.type_name(script.file.as_posix())
                label = script.file.name
            top = self._add_function(type_name, None, script.root, bindings=self._globals)

            site = CallSite(program_counter=index, label=label)
            fake_root.add_call_site(site)
            self.graph.add_target(fake_root, site, top.body)

            self._walk(script.root, top)

        for function in self._functions:
            self._check_deadline()
            for site, call in function.sites:
                for target in self._resolve_call(call, function):
                    self.graph.add_target(function.body, site, target)

        return self.graph

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise AnalysisCancelledError(f"Analysis of {self.entry} timed out")

    def _position(self, node: Node) -> SourcePosition:
        return SourcePosition(
            url=self._url,
            start_offset=self._offset + node.start_byte,
            end_offset=self._offset + node.end_byte,
        )

    def _node_key(self, node: Node, script: int) -> tuple[int, str, int, int]:
        return (script, node.type, node.start_byte, node.end_byte)

    def _add_fake_root(self) -> CallGraphNode:
        root_type = DeclaringType(self._naming.type_name(FAKE_ROOT_TYPE))
        method = MethodDescriptor(root_type, FAKE_ROOT_METHOD, MethodKind.SYNTHETIC)
        root_type.add_method(method)
        return self.graph.add_node(CallGraphNode(method))

    def _add_function(
        self,
        type_name: str,
        parent: _Function | None,
        node: Node,
        bindings: dict[str, _Function] | None = None,
    ) -> _Function:
        """Declare a function type with its body method and graph node."""
        declaring_type = DeclaringType(type_name)
        method = MethodDescriptor(
            declaring_type,
            self._naming.function_selector,
            MethodKind.ORDINARY,
            position=self._position(node),
        )
        declaring_type.add_method(method)
        body = self.graph.add_node(CallGraphNode(method))

        function = _Function(declaring_type, body, parent, script=self._script)
        if bindings is not None:
            function.bindings = bindings
        self._functions.append(function)
        self._by_node[self._node_key(node, self._script)] = function
        return function

    def _add_nested(self, name: str, scope: _Function, node: Node) -> _Function:
        return self._add_function(f"{scope.type.name}/{name}", scope, node)

    def _constructor(self, function: _Function) -> CallGraphNode:
        """Constructor-dispatch node of a function, created on first `new`."""
        if function.ctor is None:
            method = MethodDescriptor(
                function.type, self._naming.constructor_name, MethodKind.CONSTRUCTOR
            )
            function.type.add_method(method)
            function.ctor = self.graph.add_node(CallGraphNode(method))
        return function.ctor

    def _prelude_function(self, name: str) -> _Function:
        """Runtime prelude model of a well-known global."""
        if name not in self._prelude:
            declaring_type = DeclaringType(self._naming.type_name(PRELUDE_FILE, name))
            method = MethodDescriptor(
                declaring_type, self._naming.function_selector, MethodKind.ORDINARY
            )
            declaring_type.add_method(method)
            body = self.graph.add_node(CallGraphNode(method))
            self._prelude[name] = _Function(declaring_type, body)
        return self._prelude[name]

    # First pass: functions, bindings and call sites

    def _walk(self, root: Node, scope: _Function) -> None:
        """Pre-order walk with an explicit stack; handlers defer the nodes they descend into."""
        stack = [(child, scope) for child in reversed(root.named_children)]
        while stack:
            self._check_deadline()
            node, node_scope = stack.pop()
            self._visit(node, node_scope)
            stack.extend(reversed(self._pending))
            self._pending.clear()

    def _defer(self, node: Node, scope: _Function) -> None:
        self._pending.append((node, scope))

    def _defer_children(self, node: Node, scope: _Function) -> None:
        self._pending.extend((child, scope) for child in node.named_children)

    def _visit(self, node: Node, scope: _Function) -> None:
        if node.type in _FUNCTION_TYPES:
            self._visit_function(node, scope)
        elif node.type in _CLASS_TYPES:
            self._visit_class(node, scope)
        elif node.type in _CALL_TYPES:
            self._visit_call(node, scope)
        elif node.type == "variable_declarator":
            self._visit_declarator(node, scope)
        elif node.type == "assignment_expression":
            self._visit_assignment(node, scope)
        elif node.type == "pair":
            self._visit_pair(node, scope)
        elif node.type == "method_definition":
            self._visit_method(node, scope)
        else:
            self._defer_children(node, scope)

    def _visit_function(self, node: Node, scope: _Function, name: str | None = None) -> _Function:
        """Handle function declarations, expressions and arrow functions."""
        name_node = node.child_by_field_name("name")
        own_name = _text(name_node) if name_node is not None else None
        function = self._add_nested(name or own_name or f"__anon@{node.start_byte}", scope, node)

        if own_name is not None and node.type in _DECLARATION_TYPES:
            scope.bindings[own_name] = function
        elif own_name is not None and node.type in _FUNCTION_TYPES:
            function.bindings[own_name] = function

        self._defer_children(node, function)
        return function

    def _visit_class(self, node: Node, scope: _Function, name: str | None = None) -> _Function:
        """Handle classes; the class body is its constructor method when it has one."""
        name_node = node.child_by_field_name("name")
        own_name = _text(name_node) if name_node is not None else None
        body = node.child_by_field_name("body")

        constructor = None
        if body is not None:
            for member in body.named_children:
                if member.type == "method_definition" and _member_name(member) == "constructor":
                    constructor = member
                    break

        function = self._add_nested(
            name or own_name or f"__anon@{node.start_byte}",
            scope,
            constructor if constructor is not None else node,
        )
        self._by_node[self._node_key(node, self._script)] = function
        if own_name is not None:
            if node.type == "class_declaration":
                scope.bindings[own_name] = function
            else:
                function.bindings[own_name] = function

        heritage = [c for c in node.named_children if c.type == "class_heritage"]
        for clause in heritage:
            self._defer_children(clause, scope)

        if body is not None:
            for member in body.named_children:
                if member == constructor:
                    self._defer_children(member, function)
                else:
                    self._defer(member, function)
        return function

    def _visit_method(self, node: Node, scope: _Function) -> None:
        """Handle methods in classes and object literals."""
        name = _member_name(node)
        function = self._visit_function(node, scope, name=name or None)
        if name:
            self._properties.setdefault(name, []).append(function)

    def _visit_value(self, value: Node, scope: _Function, name: str) -> _Function | None:
        """Visit an initializer, returning the function it defines, if any."""
        value = _unwrap(value)
        if value.type in _FUNCTION_TYPES:
            return self._visit_function(value, scope, name=name)
        if value.type in _CLASS_TYPES:
            return self._visit_class(value, scope, name=name)
        self._defer(value, scope)
        return None

    def _visit_declarator(self, node: Node, scope: _Function) -> None:
        """Handle: var f = function() {}, const C = class {}"""
        name_node = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if value is None:
            return
        if name_node is None or name_node.type != "identifier":
            self._defer_children(node, scope)
            return

        name = _text(name_node)
        function = self._visit_value(value, scope, name)
        if function is not None:
            scope.bindings[name] = function

    def _visit_assignment(self, node: Node, scope: _Function) -> None:
        """Handle: f = function() {}, obj.m = function() {}"""
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is None or right is None:
            self._defer_children(node, scope)
            return

        if left.type == "identifier":
            name = _text(left)
            function = self._visit_value(right, scope, name)
            if function is not None:
                self._binding_scope(name, scope).bindings[name] = function
        elif left.type == "member_expression":
            self._defer(left, scope)
            prop = left.child_by_field_name("property")
            name = _text(prop) if prop is not None else ""
            function = self._visit_value(right, scope, name or f"__anon@{right.start_byte}")
            if function is not None and name:
                self._properties.setdefault(name, []).append(function)
        else:
            self._defer_children(node, scope)

    def _visit_pair(self, node: Node, scope: _Function) -> None:
        """Handle object literal entries: { m: function() {} }"""
        key = node.child_by_field_name("key")
        value = node.child_by_field_name("value")
        if key is None or value is None:
            self._defer_children(node, scope)
            return

        name = _property_key(key)
        if name is None:
            self._defer_children(node, scope)
            return

        function = self._visit_value(value, scope, name)
        if function is not None:
            self._properties.setdefault(name, []).append(function)

    def _visit_call(self, node: Node, scope: _Function) -> None:
        """Record a call site, then descend into the callee and arguments."""
        callee = node.child_by_field_name(
            "constructor" if node.type == "new_expression" else "function"
        )
        label = _text(callee) if callee is not None else None
        if label is not None and len(label) > _MAX_LABEL:
            label = label[: _MAX_LABEL - 3] + "..."

        site = CallSite(program_counter=len(scope.sites), label=label)
        scope.body.add_call_site(site, self._position(node))
        scope.sites.append((site, node))

        self._defer_children(node, scope)

    def _binding_scope(self, name: str, scope: _Function) -> _Function:
        """Scope that owns ``name``; undeclared names land on the script scope."""
        current: _Function = scope
        while current.parent is not None:
            if name in current.bindings:
                return current
            current = current.parent
        return current

    # Second pass: targets

    def _resolve_call(self, call: Node, scope: _Function) -> list[CallGraphNode]:
        if call.type == "new_expression":
            ctor = call.child_by_field_name("constructor")
            if ctor is None:
                return []
            return [self._constructor(f) for f in self._resolve_callee(ctor, scope)]

        callee = call.child_by_field_name("function")
        if callee is None:
            return []
        return [f.body for f in self._resolve_callee(callee, scope)]

    def _resolve_callee(self, expr: Node, scope: _Function) -> list[_Function]:
        """Functions an expression in callee position may evaluate to."""
        expr = _unwrap(expr)

        if expr.type == "identifier":
            name = _text(expr)
            function = scope.lookup(name)
            if function is not None:
                return [function]
            if name in PRELUDE_GLOBALS:
                return [self._prelude_function(name)]
            return []

        if expr.type in _FUNCTION_TYPES or expr.type in _CLASS_TYPES:
            function = self._by_node.get(self._node_key(expr, scope.script))
            return [function] if function is not None else []

        if expr.type == "member_expression":
            prop = expr.child_by_field_name("property")
            if prop is None:
                return []
            name = _text(prop)
            if name in _INDIRECT_CALLS:
                obj = expr.child_by_field_name("object")
                if obj is not None:
                    return self._resolve_callee(obj, scope)
            return list(self._properties.get(name, []))

        return []


def _text(node: Node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


def _unwrap(node: Node) -> Node:
    """Strip parentheses around an expression."""
    while node.type == "parenthesized_expression" and node.named_children:
        node = node.named_children[0]
    return node


def _property_key(key: Node) -> str | None:
    if key.type in ("property_identifier", "identifier", "private_property_identifier"):
        return _text(key)
    if key.type == "string":
        return _text(key)[1:-1]
    if key.type == "number":
        return _text(key)
    return None


def _member_name(node: Node) -> str:
    name = node.child_by_field_name("name")
    if name is None:
        return ""
    return _property_key(name) or ""


def _read(path: Path) -> bytes:
    source = path.read_bytes()
    try:
        source.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"Cannot read {path}: {e}") from e
    return source


def _script_elements(root: Node) -> list[Node]:
    """All <script> elements of an HTML tree in document order."""
    found = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "script_element":
            found.append(node)
            continue
        stack.extend(reversed(node.named_children))
    return found


def _attributes(element: Node) -> dict[str, str]:
    """Attributes of an element's start tag; names lower-cased, bare attributes map to ''."""
    attributes: dict[str, str] = {}
    for tag in element.named_children:
        if tag.type != "start_tag":
            continue
        for attribute in tag.named_children:
            if attribute.type != "attribute":
                continue
            name = ""
            value = ""
            for part in attribute.named_children:
                if part.type == "attribute_name":
                    name = _text(part).lower()
                elif part.type == "attribute_value":
                    value = _text(part)
                elif part.type == "quoted_attribute_value":
                    value = "".join(_text(v) for v in part.named_children)
            if name:
                attributes.setdefault(name, value)
    return attributes


def _local_script(page: Path, src: str) -> Path | None:
    """Resolve a script reference against the page's directory; None when remote."""
    parts = urlsplit(src)
    if parts.scheme or parts.netloc:
        return None
    return (page.parent / unquote(parts.path).lstrip("/")).resolve()
