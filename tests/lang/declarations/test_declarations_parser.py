from pathlib import Path

from prettynode.lang.declarations import DeclarationFileParser, iter_statements
from prettynode.models import TypeKind
from prettynode.parsers import ModuleParserRegistry, parse_file

samples_dir = Path(__file__).parent / "samples"


# --------------------------------------------------------------------------- #
# Helpers
# --------------------------------------------------------------------------- #
def _to_map(symbols):
    return {s.name: s for s in symbols}


def _parse_source(source: str):
    return DeclarationFileParser().parse_source(source, "inline")


# --------------------------------------------------------------------------- #
# Tests
# --------------------------------------------------------------------------- #
def test_declaration_parser_on_index_file():
    module_info = parse_file(samples_dir / "index.d.ts")

    assert module_info.name == "index"

    # imports and re-exports
    assert len(module_info.imports) == 5
    assert module_info.imports[0] == 'import { EventEmitter } from "events";'
    assert [
        (b.from_module, b.import_name, b.as_name) for b in module_info.import_bindings
    ] == [
        ("events", "EventEmitter", None),
        ("http", "*", "http"),
        (None, "Mode", "AppMode"),
        ("./router", "Router", None),
        ("./router", "Route", "Layer"),
        ("./helpers", "*", None),
        ("./utils", "*", "utils"),
    ]

    assert module_info.exports == [
        "createApp",
        "compose",
        "AppOptions",
        "Plugin",
        "Mode",
        "VERSION",
        "counter",
        "Application",
        "AppMode",
        "Router",
        "Layer",
        "utils",
        "default",
    ]

    # functions; overloads collapse to the first declaration
    functions = _to_map(module_info.functions)
    assert list(functions) == ["createApp", "compose"]

    create_app = functions["createApp"]
    assert create_app.doc_comment == "Create an application."
    assert create_app.return_type == "Application"
    options, plugins = create_app.parameters
    assert (options.name, options.param_type, options.is_optional) == (
        "options",
        "AppOptions",
        True,
    )
    assert (plugins.name, plugins.param_type, plugins.is_rest) == (
        "plugins",
        "Plugin[]",
        True,
    )

    compose = functions["compose"]
    assert compose.return_type == "T"
    assert [(p.name, p.param_type) for p in compose.parameters] == [
        ("fns", "Array<(value: T) => T>"),
        ("init", "{ seed: number, label: string }"),
    ]

    # types
    types = _to_map(module_info.types)
    assert types["AppOptions"].kind == TypeKind.INTERFACE
    assert types["AppOptions"].definition == "interface AppOptions"
    assert types["Plugin"].kind == TypeKind.TYPE
    assert types["Plugin"].definition == "type Plugin = (app: Application) => void"
    assert types["Mode"].kind == TypeKind.ENUM

    # constants
    constants = _to_map(module_info.constants)
    assert constants["VERSION"].value_type == "string"
    assert constants["VERSION"].doc_comment == "Library version."
    assert constants["counter"].value_type == "number"

    # classes
    app = _to_map(module_info.classes)["Application"]
    assert app.doc_comment == "The application."
    assert app.extends == "EventEmitter"
    assert app.implements == ["Disposable"]
    assert [p.name for p in app.constructor.parameters] == ["options"]

    props = _to_map(app.properties)
    assert list(props) == ["name", "instances", "secret"]
    assert props["name"].is_readonly is True
    assert props["name"].property_type == "string"
    assert props["instances"].is_static is True
    assert props["secret"].property_type is None

    methods = _to_map(app.methods)
    assert list(methods) == ["listen", "use"]
    assert methods["listen"].doc_comment == "Start listening."
    assert methods["listen"].return_type == "http.Server"
    assert methods["listen"].parameters[1].is_optional is True
    assert methods["listen"].parameters[1].param_type == "() => void"
    assert [p.name for p in methods["use"].parameters] == ["plugin", "opts"]


def test_default_class_declaration():
    module_info = _parse_source(
        "export default class Client<T = string> extends Base<T> {\n"
        "  send(data: T): Promise<void>;\n"
        "}\n"
    )
    assert module_info.exports == ["default"]
    client = module_info.classes[0]
    assert client.name == "Client"
    assert client.extends == "Base<T>"
    assert client.methods[0].return_type == "Promise<void>"


def test_export_assignment():
    module_info = _parse_source("declare function debounce(fn: Function): Function;\nexport = debounce;\n")
    assert module_info.exports == ["default"]
    assert module_info.functions[0].name == "debounce"


def test_namespaces_and_modules_are_not_symbols():
    module_info = _parse_source(
        'declare module "x" {\n  export function f(): void;\n}\n'
        "export declare namespace Utils {\n  function g(): void;\n}\n"
    )
    assert module_info.functions == []
    assert module_info.exports == ["Utils"]


def test_import_require():
    module_info = _parse_source('import fs = require("fs");\n')
    binding = module_info.import_bindings[0]
    assert (binding.from_module, binding.import_name, binding.as_name) == (
        "fs",
        "default",
        "fs",
    )


def test_iter_statements_tracks_docs_and_lines():
    text = (
        "// header\n"
        "/** First. */\n"
        "declare const a: string;\n"
        "interface B { x: string; }\n"
        "declare const c: '};';\n"
    )
    statements = list(iter_statements(text))
    assert [s.text for s in statements] == [
        "declare const a: string;",
        "interface B { x: string; }",
        "declare const c: '};';",
    ]
    assert statements[0].doc == "First."
    assert statements[0].line == 3
    assert statements[1].doc is None


def test_registry_prefers_declaration_parser():
    assert ModuleParserRegistry.get_parser_for("index.d.ts") is DeclarationFileParser
    assert ModuleParserRegistry.get_parser_for("types.d.mts") is DeclarationFileParser


def test_declaration_parser_without_semicolons():
    module_info = parse_file(samples_dir / "nosemi.d.ts")

    assert module_info.exports == [
        "alpha",
        "beta",
        "Gamma",
        "delta",
        "LIMIT",
        "Handler",
        "Options",
        "Session",
        "foo",
        "Bar",
    ]
    assert module_info.imports == ['import { Readable } from "stream"']

    functions = _to_map(module_info.functions)
    assert functions["alpha"].return_type == "void"
    assert functions["beta"].return_type == "string"
    assert functions["delta"].doc_comment == "Runs last."
    assert functions["foo"].return_type is None
    assert [p.name for p in functions["foo"].parameters] == ["a"]

    types = _to_map(module_info.types)
    assert types["Gamma"].definition == "type Gamma = { x: string }"
    assert types["Handler"].definition.endswith("| null")
    assert types["Bar"].kind == TypeKind.INTERFACE

    assert module_info.constants[0].value_type == "number"
    session = module_info.classes[0]
    assert [p.name for p in session.properties] == ["id"]
    assert session.properties[0].property_type == "string"
    assert [m.name for m in session.methods] == ["close", "open"]
    assert session.methods[1].return_type == "Promise<void>"


def test_iter_statements_splits_on_new_declaration_lines():
    statements = list(
        iter_statements(
            "export declare const a: string\n"
            "export declare const b:\n"
            "  typeof a\n"
        )
    )

    assert [s.text for s in statements] == [
        "export declare const a: string",
        "export declare const b:\n  typeof a\n",
    ]
