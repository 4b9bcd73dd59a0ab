from prettynode import lang
from prettynode.models import (
    ClassInfo,
    ConstantInfo,
    FunctionInfo,
    ImportInfo,
    ModuleInfo,
    Parameter,
    PropertyInfo,
    SignatureInfo,
    SignatureKind,
    TypeInfo,
    TypeKind,
)
from prettynode.params import ParameterParser
from prettynode.parsers import parse_file
from prettynode.resolver import ImportChainResolver
from prettynode.explorer import PackageExplorer, explore_package
from prettynode.signature import SignatureExtractor, extract_signature

__all__ = [
    "lang",
    "ClassInfo",
    "ConstantInfo",
    "FunctionInfo",
    "ImportInfo",
    "ModuleInfo",
    "Parameter",
    "PropertyInfo",
    "SignatureInfo",
    "SignatureKind",
    "TypeInfo",
    "TypeKind",
    "ParameterParser",
    "parse_file",
    "ImportChainResolver",
    "PackageExplorer",
    "explore_package",
    "SignatureExtractor",
    "extract_signature",
]
