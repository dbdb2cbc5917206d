"""Integration tests for the JavaScript engine, pipeline and CLI."""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from edgewalk.cli import app
from edgewalk.core.classify import is_real_function
from edgewalk.core.extract import DropReason, extract_edges
from edgewalk.core.models import Edge, FileRange, MethodKind
from edgewalk.core.pipeline import base_dir_for, collect_edges, export_call_graph
from edgewalk.languages import JavaScriptEngine


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as td:
        yield Path(td)


def write_js(directory: Path, code: str, name: str = "app.js") -> Path:
    """Write a JavaScript file and return its path."""
    file_path = directory / name
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(code)
    return file_path


def span(code: str, text: str, file: str = "app.js", occurrence: int = 0) -> FileRange:
    """FileRange of the n-th occurrence of ``text`` in ``code``."""
    start = -1
    for _ in range(occurrence + 1):
        start = code.index(text, start + 1)
    return FileRange(file=file, start=start, end=start + len(text))


def edge(caller: FileRange, callee: FileRange) -> Edge:
    return Edge(caller=caller, callee=callee)


def sorted_edges(edges: list[Edge]) -> list[Edge]:
    return sorted(edges, key=lambda e: (e.caller.start, e.callee.start))


class TestJavaScriptEngine:
    """Tests for the call graph the engine builds."""

    def test_node_model(self, temp_dir: Path) -> None:
        """Test fake root, script, function and prelude nodes."""
        entry = write_js(temp_dir, "function a() {}\na();\nsetTimeout(a, 10);\n")
        graph = JavaScriptEngine().build(entry)

        kinds = [node.method.kind for node in graph]
        assert kinds[0] is MethodKind.SYNTHETIC
        fake_root = next(iter(graph))
        assert fake_root.method.declaring_type.name == "LFakeRoot"

        names = [node.method.declaring_type.name for node in graph]
        script = f"L{entry.resolve().as_posix()}"
        assert script in names
        assert f"{script}/a" in names
        assert "Lprologue.js/setTimeout" in names

        real = [n for n in graph if is_real_function(n.method)]
        assert [n.method.declaring_type.name for n in real] == [script, f"{script}/a"]

    def test_fake_root_targets_script(self, temp_dir: Path) -> None:
        """Test that the synthetic root invokes the top-level script."""
        entry = write_js(temp_dir, "var x = 1;\n")
        graph = JavaScriptEngine().build(entry)

        root = next(iter(graph))
        targets = graph.possible_targets(root, root.call_sites[0])
        assert [t.method.declaring_type.name for t in targets] == [
            f"L{entry.resolve().as_posix()}"
        ]

    def test_call_site_numbering(self, temp_dir: Path) -> None:
        """Test that call sites are numbered in source order per function."""
        code = "function a() { b(); c(); }\nfunction b() {}\nfunction c() {}\na();\n"
        graph = JavaScriptEngine().build(write_js(temp_dir, code))

        a = next(n for n in graph if n.method.declaring_type.name.endswith("/a"))
        assert [s.program_counter for s in a.call_sites] == [0, 1]
        assert [s.label for s in a.call_sites] == ["b", "c"]

    def test_supports(self) -> None:
        """Test entry file extensions."""
        engine = JavaScriptEngine()
        assert engine.supports(Path("app.js"))
        assert engine.supports(Path("app.mjs"))
        assert engine.supports(Path("index.html"))
        assert engine.supports(Path("INDEX.HTM"))
        assert not engine.supports(Path("app.ts"))


class TestEdgeExtraction:
    """End-to-end tests from source text to edges."""

    def test_top_level_and_nested_calls(self, temp_dir: Path) -> None:
        """Test the top-level -> a -> b example."""
        code = "function a() { b(); }\nfunction b() {}\na();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert sorted_edges(edges) == [
            edge(span(code, "b()"), span(code, "function b() {}")),
            edge(span(code, "a()", occurrence=1), span(code, "function a() { b(); }")),
        ]

    def test_constructor_call(self, temp_dir: Path) -> None:
        """Test that `new F()` points at F's definition."""
        code = "function F() {}\nvar f = new F();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [edge(span(code, "new F()"), span(code, "function F() {}"))]

    def test_class_constructor(self, temp_dir: Path) -> None:
        """Test that `new C()` points at the class constructor method."""
        code = "class C {\n  constructor() {}\n  run() {}\n}\nvar c = new C();\nc.run();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert sorted_edges(edges) == [
            edge(span(code, "new C()"), span(code, "constructor() {}")),
            edge(span(code, "c.run()"), span(code, "run() {}")),
        ]

    def test_class_without_constructor(self, temp_dir: Path) -> None:
        """Test that a class without a constructor is its own body."""
        code = "class D {}\nnew D();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [edge(span(code, "new D()"), span(code, "class D {}"))]

    def test_object_literal_method(self, temp_dir: Path) -> None:
        """Test field-based resolution of member calls."""
        code = "var o = { m: function () {} };\no.m();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [edge(span(code, "o.m()"), span(code, "function () {}"))]

    def test_assigned_property(self, temp_dir: Path) -> None:
        """Test functions stored through member assignment."""
        code = "var o = {};\no.run = function () {};\no.run();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [edge(span(code, "o.run()"), span(code, "function () {}"))]

    def test_variable_bound_arrow(self, temp_dir: Path) -> None:
        """Test that const-bound arrow functions resolve by name."""
        code = "const f = () => 1;\nf();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [edge(span(code, "f()"), span(code, "() => 1"))]

    def test_call_and_apply(self, temp_dir: Path) -> None:
        """Test that f.call() and f.apply() target f."""
        code = "function f() {}\nf.call(null);\nf.apply(null, []);\n"
        edges = collect_edges(write_js(temp_dir, code))

        callee = span(code, "function f() {}")
        assert sorted_edges(edges) == [
            edge(span(code, "f.call(null)"), callee),
            edge(span(code, "f.apply(null, [])"), callee),
        ]

    def test_immediately_invoked(self, temp_dir: Path) -> None:
        """Test that an IIFE targets its own function expression."""
        code = "(function () { })();\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [
            edge(span(code, "(function () { })()"), span(code, "function () { }"))
        ]

    def test_lexical_scoping(self, temp_dir: Path) -> None:
        """Test that inner declarations shadow outer ones."""
        code = (
            "function g() {}\n"
            "function outer() {\n"
            "  function g() {}\n"
            "  g();\n"
            "}\n"
            "outer();\n"
        )
        edges = collect_edges(write_js(temp_dir, code))

        assert sorted_edges(edges) == [
            edge(span(code, "g()", occurrence=2), span(code, "function g() {}", occurrence=1)),
            edge(
                span(code, "outer()", occurrence=1),
                span(code, "function outer() {\n  function g() {}\n  g();\n}"),
            ),
        ]

    def test_hoisting(self, temp_dir: Path) -> None:
        """Test that calls before a declaration still resolve."""
        code = "a();\nfunction a() {}\n"
        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [edge(span(code, "a()"), span(code, "function a() {}"))]

    def test_recursion(self, temp_dir: Path) -> None:
        """Test that recursive calls produce self edges."""
        code = "function r(n) { if (n) { r(n - 1); } }\nr(3);\n"
        edges = collect_edges(write_js(temp_dir, code))

        body = span(code, "function r(n) { if (n) { r(n - 1); } }")
        assert sorted_edges(edges) == [
            edge(span(code, "r(n - 1)"), body),
            edge(span(code, "r(3)"), body),
        ]

    def test_prelude_calls_dropped(self, temp_dir: Path) -> None:
        """Test that runtime globals and unknown callees give no edges."""
        code = "setTimeout(function () {}, 1);\nparseInt('1');\nunknown();\nnew Array(3);\n"
        drops: list[DropReason] = []
        edges = collect_edges(
            write_js(temp_dir, code), on_drop=lambda reason, detail: drops.append(reason)
        )

        assert edges == []
        assert drops.count(DropReason.TARGET_NOT_A_FUNCTION) == 3
        assert drops.count(DropReason.NO_TARGETS) == 1

    def test_duplicate_callers(self, temp_dir: Path) -> None:
        """Test that every call of a function is its own edge."""
        code = "function b() {}\nfunction a() { b(); b(); }\na();\nb();\n"
        edges = collect_edges(write_js(temp_dir, code))

        callee = span(code, "function b() {}")
        assert [e.callee for e in edges].count(callee) == 3

    def test_nested_entry_directory(self, temp_dir: Path) -> None:
        """Test that files are reported relative to the entry file's directory."""
        code = "function a() {}\na();\n"
        entry = write_js(temp_dir, code, name="site/js/main.js")

        edges = collect_edges(entry)

        assert base_dir_for(entry) == str((temp_dir / "site/js").resolve())
        assert edges == [
            edge(
                span(code, "a()", file="main.js", occurrence=1),
                span(code, "function a() {}", file="main.js"),
            )
        ]

    def test_other_base_filters_everything(self, temp_dir: Path) -> None:
        """Test that positions outside the base directory never appear."""
        code = "function a() {}\na();\n"
        graph = JavaScriptEngine().build(write_js(temp_dir, code))

        assert extract_edges(graph, "/definitely/not/here") == []

    def test_deeply_nested_expression(self, temp_dir: Path) -> None:
        """Test that long operator chains from bundled code are walked without recursion."""
        terms = " + ".join(['"x"'] * 1500)
        code = f"function a() {{}}\nvar s = {terms};\na();\n"

        edges = collect_edges(write_js(temp_dir, code))

        assert edges == [edge(span(code, "a()", occurrence=1), span(code, "function a() {}"))]

    def test_deeply_nested_calls(self, temp_dir: Path) -> None:
        """Test that every level of f(f(f(...))) is its own call site."""
        code = "function f() {}\n" + "f(" * 600 + ")" * 600 + ";\n"

        edges = collect_edges(write_js(temp_dir, code))

        assert len(edges) == 600
        assert {e.callee for e in edges} == {span(code, "function f() {}")}
        assert edges[0].caller == FileRange("app.js", 16, 16 + 1200)

    def test_repeatable(self, temp_dir: Path) -> None:
        """Test that two runs give the same JSON."""
        code = "function a() { b(); }\nfunction b() { a(); }\na();\n"
        entry = write_js(temp_dir, code)

        assert export_call_graph(entry) == export_call_graph(entry)


class TestHtmlPages:
    """Tests for HTML entry pages and the scripts they load."""

    def test_page_with_two_scripts(self, temp_dir: Path) -> None:
        """Test that external and inline scripts share globals and keep their own files."""
        lib = "function helper() {}\n"
        code = "function start() { helper(); }\n"
        page = (
            "<!DOCTYPE html>\n<html>\n<head>\n"
            '<script src="js/lib.js"></script>\n'
            '<script src="js/app.js"></script>\n'
            "</head>\n<body>\n<script>\nstart();\n</script>\n</body>\n</html>\n"
        )
        write_js(temp_dir, lib, name="js/lib.js")
        write_js(temp_dir, code, name="js/app.js")
        entry = write_js(temp_dir, page, name="index.html")

        edges = collect_edges(entry)

        assert edges == [
            edge(
                span(code, "helper()", file="js/app.js"),
                span(lib, "function helper() {}", file="js/lib.js"),
            ),
            edge(
                span(page, "start()", file="index.html"),
                span(code, "function start() { helper(); }", file="js/app.js"),
            ),
        ]

    def test_fake_root_calls_scripts_in_order(self, temp_dir: Path) -> None:
        """Test that each script gets its own top-level node in document order."""
        write_js(temp_dir, "var x = 1;\n", name="one.js")
        page = '<script src="one.js"></script>\n<script>var y = 2;</script>\n'
        entry = write_js(temp_dir, page, name="index.html")

        graph = JavaScriptEngine().build(entry)

        root = next(iter(graph))
        scripts = [
            graph.possible_targets(root, site)[0].method.declaring_type.name
            for site in root.call_sites
        ]
        page_path = entry.resolve().as_posix()
        assert scripts == [
            f"L{(temp_dir / 'one.js').resolve().as_posix()}",
            f"L{page_path}/__script@{page.index('var y')}",
        ]

    def test_skipped_scripts(self, temp_dir: Path) -> None:
        """Test that remote scripts and non-JavaScript script types are ignored."""
        code = "function a() {}\na();\n"
        page = (
            '<script src="https://cdn.example.com/lib.js"></script>\n'
            '<script type="text/template">not (valid javascript</script>\n'
            f"<script>{code}</script>\n"
        )
        entry = write_js(temp_dir, page, name="index.html")

        graph = JavaScriptEngine().build(entry)
        edges = collect_edges(entry)

        root = next(iter(graph))
        assert len(root.call_sites) == 1
        assert edges == [
            edge(
                span(page, "a()", file="index.html", occurrence=1),
                span(page, "function a() {}", file="index.html"),
            )
        ]

    def test_script_outside_base_dropped(self, temp_dir: Path) -> None:
        """Test that functions from scripts above the page's directory are filtered."""
        write_js(temp_dir, "function go() {}\n", name="shared.js")
        page = '<script src="../shared.js"></script>\n<script>go();</script>\n'
        entry = write_js(temp_dir, page, name="site/index.html")
        reasons: list[DropReason] = []

        edges = collect_edges(entry, on_drop=lambda reason, detail: reasons.append(reason))

        assert edges == []
        assert DropReason.CALLEE_OUTSIDE_BASE in reasons


class TestCli:
    """Tests for the edgewalk command."""

    def test_json_output(self, temp_dir: Path) -> None:
        """Test that stdout is exactly the JSON edge list."""
        code = "function a() { b(); }\nfunction b() {}\na();\n"
        entry = write_js(temp_dir, code)

        result = CliRunner().invoke(app, [str(entry)])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data) == 2
        assert all(set(item) == {"caller", "callee"} for item in data)
        assert all(item["caller"]["file"] == "app.js" for item in data)
        assert result.stdout.strip() == export_call_graph(entry)

    def test_empty_program(self, temp_dir: Path) -> None:
        """Test that a program without calls prints an empty array."""
        entry = write_js(temp_dir, "var x = 1;\n")

        result = CliRunner().invoke(app, [str(entry)])

        assert result.exit_code == 0
        assert result.stdout.strip() == "[]"

    def test_dot_output(self, temp_dir: Path) -> None:
        """Test the DOT output format."""
        entry = write_js(temp_dir, "function a() {}\na();\n")

        result = CliRunner().invoke(app, [str(entry), "--format", "dot"])

        assert result.exit_code == 0
        assert result.stdout.startswith("digraph callgraph {")
        assert '"app.js[16:19]" -> "app.js[0:15]";' in result.stdout

    def test_verbose(self, temp_dir: Path) -> None:
        """Test that verbose mode does not change the JSON on stdout."""
        entry = write_js(temp_dir, "parseInt('1');\n")

        result = CliRunner().invoke(app, [str(entry), "--verbose"])

        assert result.exit_code == 0
        assert result.stdout.strip().endswith("[]")


class TestMcpServer:
    """Tests for the MCP tool handler."""

    def test_edges_tool(self, temp_dir: Path) -> None:
        """Test that the tool returns edges and extraction statistics."""
        from edgewalk.mcp.server import _handle_edges

        code = "function a() { b(); }\nfunction b() {}\na();\n"
        entry = write_js(temp_dir, code)

        result = _handle_edges(str(entry))

        assert result["edges"] == json.loads(export_call_graph(entry))
        assert result["stats"]["edges"] == 2
        assert result["stats"]["dropped"]["not_a_function"] == 1

    def test_tool_listing(self) -> None:
        """Test that the server registers its tool with the 1.x decorator API."""
        from edgewalk.mcp.server import list_tools

        tools = asyncio.run(list_tools())

        assert [tool.name for tool in tools] == ["edgewalk_edges"]
        assert tools[0].inputSchema["required"] == ["entry"]

    def test_engine_error_reported(self, temp_dir: Path) -> None:
        """Test that engine failures come back as an error payload."""
        from edgewalk.mcp.server import call_tool

        content = asyncio.run(call_tool("edgewalk_edges", {"entry": str(temp_dir / "gone.js")}))

        assert "not found" in json.loads(content[0].text)["error"]
