import pytest
from pathlib import Path

from prettynode.errors import SourceSyntaxError
from prettynode.lang.javascript import JavaScriptModuleParser
from prettynode.parsers import ModuleParserRegistry, parse_file

samples_dir = Path(__file__).parent / "samples"


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #
def _to_map(symbols):
    return {s.name: s for s in symbols}


def _bindings(module_info):
    return [
        (b.from_module, b.import_name, b.as_name) for b in module_info.import_bindings
    ]


def _parse_source(source: str):
    return JavaScriptModuleParser().parse_source(source, "inline")


# --------------------------------------------------------------------------- #
# ES modules
# --------------------------------------------------------------------------- #
def test_javascript_parser_on_simple_file():
    module_info = parse_file(samples_dir / "simple.js")

    assert module_info.name == "simple"

    # imports
    assert len(module_info.imports) == 8
    assert module_info.imports[0].startswith("import React")
    assert module_info.imports[3].startswith("const fs = require")
    assert module_info.imports[-1].startswith("export * as shapes")

    assert _bindings(module_info) == [
        ("react", "default", "React"),
        ("react", "useState", "useLocalState"),
        ("react", "useEffect", None),
        ("path", "*", "path"),
        ("fs", "default", "fs"),
        ("path", "join", None),
        ("path", "resolve", "resolvePath"),
        (None, "counter", "makeCounter"),
        ("./helper", "helper", None),
        ("./extra", "*", None),
        ("./shapes", "*", "shapes"),
    ]
    assert module_info.import_bindings[-1].is_relative is True
    assert module_info.import_bindings[0].is_relative is False

    assert module_info.exports == [
        "add",
        "fetchAll",
        "double",
        "square",
        "VERSION",
        "Shape",
        "Circle",
        "MAX",
        "makeCounter",
        "helper",
        "shapes",
        "default",
    ]

    # functions
    functions = _to_map(module_info.functions)
    assert list(functions) == ["add", "fetchAll", "counter", "double", "square", "main"]

    add = functions["add"]
    assert add.doc_comment == "Add two numbers.\n@param {number} a"
    assert [p.name for p in add.parameters] == ["a", "b"]
    assert add.parameters[1].default_value == "1"
    assert add.parameters[1].is_optional is True
    assert add.is_arrow is False

    fetch_all = functions["fetchAll"]
    assert fetch_all.is_async is True
    assert fetch_all.parameters[-1].name == "rest"
    assert fetch_all.parameters[-1].is_rest is True

    counter = functions["counter"]
    assert counter.is_generator is True
    assert [p.name for p in counter.parameters] == ["unknown", "step"]

    assert functions["double"].is_arrow is True
    assert [p.name for p in functions["double"].parameters] == ["x"]
    assert functions["square"].is_arrow is True
    assert [p.name for p in functions["square"].parameters] == ["x"]

    # constants; require bindings are not values of the module
    constants = _to_map(module_info.constants)
    assert list(constants) == ["VERSION", "MAX", "pattern", "registry", "flags"]
    assert constants["VERSION"].value_type == "string"
    assert constants["MAX"].value_type == "number"
    assert constants["pattern"].value_type == "RegExp"
    assert constants["registry"].value_type == "Map"
    assert constants["flags"].value_type == "array"

    # classes
    classes = _to_map(module_info.classes)
    shape = classes["Shape"]
    assert shape.doc_comment == "Base shape."
    assert shape.extends is None
    assert [p.name for p in shape.constructor.parameters] == ["name"]
    assert [m.name for m in shape.methods] == ["area"]
    assert shape.properties[0].name == "count"
    assert shape.properties[0].is_static is True

    circle = classes["Circle"]
    assert circle.extends == "Shape"
    assert circle.doc_comment is None
    assert [m.name for m in circle.methods] == ["area", "unit"]
    assert circle.methods[0].doc_comment == "Circle area."
    assert [p.name for p in circle.constructor.parameters] == ["radius"]


# --------------------------------------------------------------------------- #
# CommonJS
# --------------------------------------------------------------------------- #
def test_javascript_parser_on_commonjs_file():
    module_info = parse_file(samples_dir / "commonjs.js")

    assert len(module_info.imports) == 2
    assert _bindings(module_info) == [
        ("./route", "default", "Route"),
        ("./utils", "flatten", None),
    ]
    assert module_info.exports == ["createRouter", "Route", "VERSION", "Layer", "handle"]
    assert module_info.constants == []

    functions = _to_map(module_info.functions)
    assert list(functions) == ["createRouter", "handle"]
    assert functions["createRouter"].doc_comment == "Create a router."
    assert [p.name for p in functions["createRouter"].parameters] == ["options"]
    assert functions["handle"].is_arrow is True
    assert [p.name for p in functions["handle"].parameters] == ["req", "res", "next"]

    layer = _to_map(module_info.classes)["Layer"]
    assert [p.name for p in layer.constructor.parameters] == ["path", "fn"]


def test_module_exports_object():
    module_info = _parse_source(
        "function a() {}\n"
        "module.exports = { a, b: function (x) {}, c() {}, d: 1 };\n"
    )
    assert module_info.exports == ["a", "b", "c", "d"]
    assert [f.name for f in module_info.functions] == ["a", "b", "c"]


def test_module_exports_require_is_star_reexport():
    module_info = _parse_source("module.exports = require('./lib/express');\n")
    assert module_info.exports == ["default"]
    assert _bindings(module_info) == [("./lib/express", "*", None)]
    assert module_info.imports == ["module.exports = require('./lib/express');"]


def test_module_exports_named_function():
    module_info = _parse_source("module.exports = function createServer(port) {};\n")
    assert module_info.exports == ["default"]
    assert module_info.functions[0].name == "createServer"


def test_chained_module_exports_assignment():
    module_info = _parse_source(
        "exports = module.exports = createApplication;\n"
        "function createApplication(a, b) {}\n"
    )
    assert module_info.exports == ["default"]
    assert [f.name for f in module_info.functions] == ["createApplication"]


def test_chained_named_exports_record_function_once():
    module_info = _parse_source(
        "exports.run = module.exports.start = function run(task) {};\n"
    )
    assert module_info.exports == ["run", "start"]
    assert [f.name for f in module_info.functions] == ["run"]


def test_exports_require_member():
    module_info = _parse_source("exports.Router = require('./router').Router;\n")
    assert module_info.exports == ["Router"]
    assert _bindings(module_info) == [("./router", "Router", None)]


# --------------------------------------------------------------------------- #
# Edge cases
# --------------------------------------------------------------------------- #
def test_nested_scopes_are_not_visited():
    module_info = _parse_source(
        "function outer() {\n  function inner() {}\n  const hidden = 1;\n}\n"
    )
    assert [f.name for f in module_info.functions] == ["outer"]
    assert module_info.constants == []


def test_detached_comment_is_not_documentation():
    module_info = _parse_source("/** Not mine. */\n\nfunction f() {}\n")
    assert module_info.functions[0].doc_comment is None


def test_line_comment_is_not_documentation():
    module_info = _parse_source("// just a note\nfunction f() {}\n")
    assert module_info.functions[0].doc_comment is None


def test_syntax_error_raises():
    with pytest.raises(SourceSyntaxError):
        _parse_source("function (\n")


def test_registry_picks_javascript_parser():
    assert ModuleParserRegistry.get_parser_for("a/b/index.js") is JavaScriptModuleParser
    assert ModuleParserRegistry.get_parser_for("component.jsx") is JavaScriptModuleParser
    assert ModuleParserRegistry.get_parser_for("README.md") is None
