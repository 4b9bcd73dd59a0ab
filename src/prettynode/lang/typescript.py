import threading
from typing import Optional

import tree_sitter as ts
import tree_sitter_typescript as tsts

from prettynode.lang.javascript import JavaScriptModuleParser, strip_quotes, type_text
from prettynode.parsers import get_node_text
from prettynode.models import ClassInfo, Parameter, TypeInfo, TypeKind
from prettynode.logger import logger

TS_LANGUAGE = ts.Language(tsts.language_typescript())
TSX_LANGUAGE = ts.Language(tsts.language_tsx())
_local = threading.local()


def _get_parser(tsx: bool = False) -> ts.Parser:
    attr = "tsx_parser" if tsx else "ts_parser"
    parser = getattr(_local, attr, None)
    if parser is None:
        parser = ts.Parser(TSX_LANGUAGE if tsx else TS_LANGUAGE)
        setattr(_local, attr, parser)
    return parser


class TypeScriptModuleParser(JavaScriptModuleParser):
    extensions = [".ts", ".mts", ".cts"]
    tsx = False

    def __init__(self, path=None) -> None:
        super().__init__(path)
        self.parser = _get_parser(self.tsx)
        self._handlers.update(
            {
                "abstract_class_declaration": self._handle_class,
                "interface_declaration": self._handle_interface,
                "type_alias_declaration": self._handle_type_alias,
                "enum_declaration": self._handle_enum,
                "function_signature": self._handle_function,
                "ambient_declaration": self._handle_ambient_declaration,
            }
        )

    # --- parameters -------------------------------------------------
    def _parameter_from_node(self, node: ts.Node) -> Parameter:
        if node.type not in ("required_parameter", "optional_parameter"):
            return super()._parameter_from_node(node)
        pattern = node.child_by_field_name("pattern")
        param_type = type_text(node.child_by_field_name("type"))
        value = node.child_by_field_name("value")
        if pattern is not None and pattern.type == "rest_pattern":
            name = self._pattern_name(self._rest_target(pattern))
            return Parameter(
                name=name,
                param_type=param_type if name != "unknown" else None,
                is_rest=True,
            )
        name = self._pattern_name(pattern)
        if name == "unknown":
            param_type = None
        default_value = get_node_text(value) if value is not None else None
        return Parameter(
            name=name,
            param_type=param_type,
            is_optional=node.type == "optional_parameter" or value is not None,
            default_value=default_value or None,
        )

    # --- classes ----------------------------------------------------
    def _read_heritage(self, heritage: ts.Node, info: ClassInfo) -> None:
        for clause in heritage.named_children:
            if clause.type == "extends_clause":
                # Keep type arguments: `extends Base<string>`
                text = get_node_text(clause).strip()
                if text.startswith("extends"):
                    text = text[len("extends") :].strip()
                info.extends = text or None
            elif clause.type == "implements_clause":
                info.implements = [
                    get_node_text(t) for t in clause.named_children if t.type != "comment"
                ]

    # --- handlers ---------------------------------------------------
    def _handle_import(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        # `import fs = require("fs")`
        clause = next(
            (c for c in node.named_children if c.type == "import_require_clause"), None
        )
        if clause is None:
            super()._handle_import(node, exported, doc)
            return
        assert self.module_info is not None
        self.module_info.add_import(get_node_text(node))
        alias = next((c for c in clause.named_children if c.type == "identifier"), None)
        src = clause.child_by_field_name("source") or next(
            (c for c in clause.named_children if c.type == "string"), None
        )
        if alias is not None and src is not None:
            self._add_binding(
                strip_quotes(get_node_text(src)), "default", get_node_text(alias)
            )

    def _handle_export(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        # `export = Foo;` is the CommonJS-style default export.
        if self._has_token(node, "=") and node.child_by_field_name("declaration") is None:
            assert self.module_info is not None
            self.module_info.add_export("default")
            return
        super()._handle_export(node, exported, doc)

    def _handle_interface(
        self, node: ts.Node, exported: bool, doc: Optional[str]
    ) -> None:
        self._add_type(node, TypeKind.INTERFACE, exported, doc)

    def _handle_type_alias(
        self, node: ts.Node, exported: bool, doc: Optional[str]
    ) -> None:
        self._add_type(node, TypeKind.TYPE, exported, doc)

    def _handle_enum(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        self._add_type(node, TypeKind.ENUM, exported, doc)

    def _add_type(
        self, node: ts.Node, kind: TypeKind, exported: bool, doc: Optional[str]
    ) -> None:
        assert self.module_info is not None
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = get_node_text(name_node)
        self.module_info.add_type(
            TypeInfo(
                name=name,
                kind=kind,
                definition=get_node_text(node).strip().rstrip(";"),
                doc_comment=doc,
            )
        )
        if exported:
            self.module_info.add_export(name)

    def _handle_ambient_declaration(
        self, node: ts.Node, exported: bool, doc: Optional[str]
    ) -> None:
        # `declare function f(): void;`, `declare const x: number;`
        inner = next((c for c in node.named_children if c.type != "comment"), None)
        if inner is None:
            return
        handler = self._handlers.get(inner.type)
        if handler is None or handler == self._handle_ambient_declaration:
            # `declare module "x" {}` and `declare global {}` are not symbols.
            logger.debug(
                "Skipping ambient block",
                path=self.path,
                node_type=inner.type,
                line=node.start_point[0] + 1,
            )
            return
        handler(inner, exported=exported, doc=doc)


class TsxModuleParser(TypeScriptModuleParser):
    extensions = [".tsx"]
    tsx = True
