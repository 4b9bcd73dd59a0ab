# Importing the language modules registers their parsers.
from prettynode.lang.javascript import JavaScriptModuleParser
from prettynode.lang.typescript import TypeScriptModuleParser, TsxModuleParser
from prettynode.lang.declarations import DeclarationFileParser

__all__ = [
    "JavaScriptModuleParser",
    "TypeScriptModuleParser",
    "TsxModuleParser",
    "DeclarationFileParser",
]
