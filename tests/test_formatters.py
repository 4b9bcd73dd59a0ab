import json

import pytest

from prettynode.formatters import (
    JsonFormatter,
    PrettyFormatter,
    TreeFormatter,
    create_formatter,
)
from prettynode.models import (
    ClassInfo,
    ConstantInfo,
    FunctionInfo,
    ModuleInfo,
    Parameter,
    SignatureInfo,
    SignatureKind,
)
from prettynode.settings import PrettyNodeSettings


@pytest.fixture
def plain():
    return PrettyNodeSettings(no_color=True, ascii=True)


def _tree() -> ModuleInfo:
    root = ModuleInfo(name="demo", version="1.0.0")
    root.add_export("a")
    root.add_export("B")
    root.add_function(FunctionInfo(name="a"))
    root.add_class(ClassInfo(name="B"))
    util = ModuleInfo(name="util")
    util.add_constant(ConstantInfo(name="X"))
    root.add_submodule("util", util)
    return root


def _connect() -> SignatureInfo:
    return SignatureInfo(
        name="connect",
        kind=SignatureKind.FUNCTION,
        parameters=[
            Parameter(name="host", param_type="string"),
            Parameter(name="port", param_type="number", default_value="80"),
            Parameter(name="extra", param_type="string[]", is_rest=True),
        ],
        return_type="Promise<boolean>",
    )


# ------------------------------------------------------------------ #
# tree
# ------------------------------------------------------------------ #
def test_format_tree(plain):
    out = TreeFormatter(plain).format_tree(_tree())

    assert out == (
        "[M] demo@1.0.0\n"
        "├── exp __all__: a, B\n"
        "├── fn functions: a\n"
        "├── cls classes: B\n"
        "└── [M] util\n"
        "    ├── const constants: X\n"
    )


def test_format_tree_nested_guides(plain):
    root = ModuleInfo(name="pkg")
    first = ModuleInfo(name="first")
    first.add_function(FunctionInfo(name="f"))
    root.add_submodule("first", first)
    root.add_submodule("second", ModuleInfo(name="second"))

    out = TreeFormatter(plain).format_tree(root)

    assert out == (
        "[M] pkg\n"
        "├── [M] first\n"
        "│   ├── fn functions: f\n"
        "└── [M] second\n"
    )


def test_empty_sections_are_omitted(plain):
    assert TreeFormatter(plain).format_tree(ModuleInfo(name="empty")) == "[M] empty\n"


def test_emoji_icons():
    settings = PrettyNodeSettings(no_color=True, ascii=False)

    out = TreeFormatter(settings).format_tree(_tree())

    assert out.startswith("📦 demo@1.0.0\n")
    assert "├── ⚡ functions: a\n" in out


def test_colors_are_applied():
    settings = PrettyNodeSettings(no_color=False, ascii=True)

    out = TreeFormatter(settings).format_tree(_tree())

    assert "\x1b[" in out


# ------------------------------------------------------------------ #
# signatures
# ------------------------------------------------------------------ #
def test_format_signature(plain):
    out = TreeFormatter(plain).format_signature(_connect())

    assert out == (
        "sig connect\n"
        "├── Parameters:\n"
        "├── host: string\n"
        "├── port?: number = 80\n"
        "├── ...extra: string[]\n"
        "└── Returns: Promise<boolean>\n"
    )


def test_last_parameter_closes_without_return(plain):
    sig = SignatureInfo(
        name="log",
        kind=SignatureKind.FUNCTION,
        parameters=[Parameter(name="message"), Parameter(name="level", is_optional=True)],
    )

    out = TreeFormatter(plain).format_signature(sig)

    assert out.endswith("├── message\n└── level?\n")


def test_signature_without_parameters(plain):
    sig = SignatureInfo(name="Router", kind=SignatureKind.CONSTRUCTOR, return_type="Router")

    assert TreeFormatter(plain).format_signature(sig) == "sig Router\n└── Returns: Router\n"


# ------------------------------------------------------------------ #
# output formats
# ------------------------------------------------------------------ #
def test_pretty_not_available(plain):
    out = PrettyFormatter(plain).format_signature_not_available("thing")

    assert out == "sig thing\nsignature not available"


def test_json_formats():
    formatter = JsonFormatter()

    tree = json.loads(formatter.format_tree(_tree()))
    assert tree["name"] == "demo"
    assert tree["submodules"]["util"]["constants"][0]["name"] == "X"

    sig = json.loads(formatter.format_signature(_connect()))
    assert sig["kind"] == "Function"
    assert sig["parameters"][1]["default_value"] == "80"
    assert sig["parameters"][1]["is_optional"] is True

    assert json.loads(formatter.format_signature_not_available("thing")) == {
        "name": "thing",
        "kind": "Function",
        "parameters": [],
        "return_type": None,
        "doc_comment": "signature not available",
    }


def test_create_formatter(plain):
    assert isinstance(create_formatter("json"), JsonFormatter)
    assert isinstance(create_formatter("JSON"), JsonFormatter)
    assert isinstance(create_formatter("pretty", plain), PrettyFormatter)
