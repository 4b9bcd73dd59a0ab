import pytest
from pydantic import ValidationError

from prettynode.models import (
    ClassInfo,
    FunctionInfo,
    ImportInfo,
    ModuleInfo,
    Parameter,
    SignatureInfo,
    SignatureKind,
    TypeInfo,
    TypeKind,
)


def test_rest_parameter_cannot_have_default():
    with pytest.raises(ValidationError):
        Parameter(name="args", is_rest=True, default_value="[]")


def test_default_implies_optional():
    p = Parameter(name="timeout", param_type="number", default_value="5000")
    assert p.is_optional is True


def test_import_local_name():
    assert ImportInfo(from_module="./a", import_name="x").local_name == "x"
    assert ImportInfo(from_module="./a", import_name="x", as_name="y").local_name == "y"


def test_module_exports_are_unique():
    m = ModuleInfo(name="demo")
    m.add_export("a")
    m.add_export("b")
    m.add_export("a")
    assert m.exports == ["a", "b"]


def test_submodule_name_collision_uses_alt_key():
    root = ModuleInfo(name="demo")
    assert root.add_submodule("util", ModuleInfo(name="util"), alt_key="lib/a/util") == "util"
    assert (
        root.add_submodule("util", ModuleInfo(name="util"), alt_key="lib/b/util")
        == "lib/b/util"
    )
    assert list(root.submodules) == ["util", "lib/b/util"]


def test_is_empty():
    m = ModuleInfo(name="demo")
    m.add_import("import x from 'x';")
    assert m.is_empty()
    m.add_function(FunctionInfo(name="f"))
    assert not m.is_empty()


def test_json_round_trip():
    root = ModuleInfo(name="demo", version="1.0.0", main="index.js")
    root.add_function(
        FunctionInfo(
            name="connect",
            parameters=[Parameter(name="host", param_type="string")],
            return_type="void",
            is_async=True,
        )
    )
    root.add_class(ClassInfo(name="Client", extends="Base", implements=["Closable"]))
    root.add_type(TypeInfo(name="Opts", kind=TypeKind.INTERFACE, definition="interface Opts"))
    root.add_submodule("util", ModuleInfo(name="util"))

    restored = ModuleInfo.model_validate_json(root.model_dump_json())
    assert restored == root
    assert restored.types[0].kind is TypeKind.INTERFACE


def test_signature_kind_serializes_to_name():
    sig = SignatureInfo(name="Router", kind=SignatureKind.CONSTRUCTOR)
    assert sig.model_dump(mode="json")["kind"] == "Constructor"
