import threading
from typing import Callable, Dict, List, Optional, Tuple

import tree_sitter as ts
import tree_sitter_javascript as tsjs

from prettynode.parsers import AbstractModuleParser, clean_doc_comment, get_node_text
from prettynode.models import (
    ClassInfo,
    ConstantInfo,
    FunctionInfo,
    ImportInfo,
    Parameter,
    PropertyInfo,
)
from prettynode.logger import logger

JS_LANGUAGE = ts.Language(tsjs.language())
_local = threading.local()


def _get_parser() -> ts.Parser:
    # tree-sitter parsers are not safe to share between threads.
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = _local.parser = ts.Parser(JS_LANGUAGE)
    return parser


FUNCTION_VALUE_TYPES = (
    "arrow_function",
    "function_expression",
    "function",
    "generator_function",
)
CLASS_VALUE_TYPES = ("class", "class_declaration")

# Literal node type -> inferred constant type
_LITERAL_TYPES = {
    "string": "string",
    "template_string": "string",
    "number": "number",
    "true": "boolean",
    "false": "boolean",
    "null": "null",
    "regex": "RegExp",
    "array": "array",
    "object": "object",
}

Handler = Callable[..., None]


def strip_quotes(text: str) -> str:
    return text.strip().strip("\"'`")


def type_text(node: Optional[ts.Node]) -> Optional[str]:
    """Text of a type annotation node with the leading ``:`` removed."""
    if node is None:
        return None
    text = get_node_text(node).strip()
    if text.startswith(":"):
        text = text[1:].strip()
    return text or None


def is_relative_specifier(spec: str) -> bool:
    return spec.startswith("./") or spec.startswith("../") or spec in (".", "..")


class JavaScriptModuleParser(AbstractModuleParser):
    extensions = [".js", ".jsx", ".mjs", ".cjs"]

    def __init__(self, path=None) -> None:
        super().__init__(path)
        self.parser = _get_parser()
        self._handlers: Dict[str, Handler] = {
            "import_statement": self._handle_import,
            "export_statement": self._handle_export,
            "function_declaration": self._handle_function,
            "generator_function_declaration": self._handle_function,
            "class_declaration": self._handle_class,
            "lexical_declaration": self._handle_lexical,
            "variable_declaration": self._handle_lexical,
            "expression_statement": self._handle_expression,
        }
        self._ignored = {"comment", "empty_statement", "hash_bang_line"}

    def _process_node(self, node: ts.Node) -> None:
        if not node.is_named or node.type in self._ignored:
            return
        handler = self._handlers.get(node.type)
        if handler is None:
            self._debug_unknown_node(node)
            return
        try:
            handler(node, exported=False, doc=self._get_doc_comment(node))
        except Exception as ex:
            logger.warning(
                "Handler error; skipping statement",
                path=self.path,
                node_type=node.type,
                line=node.start_point[0] + 1,
                error=str(ex),
            )

    # --- helpers ----------------------------------------------------
    def _debug_unknown_node(self, node: ts.Node) -> None:
        logger.debug(
            "Skipping top-level node",
            path=self.path,
            node_type=node.type,
            line=node.start_point[0] + 1,
        )

    def _get_doc_comment(self, node: ts.Node) -> Optional[str]:
        sib = node.prev_sibling
        if sib is None or sib.type != "comment":
            return None
        # Only a comment directly above the statement documents it.
        if node.start_point[0] - sib.end_point[0] > 1:
            return None
        return clean_doc_comment(get_node_text(sib))

    def _has_token(self, node: ts.Node, token: str) -> bool:
        return any(not c.is_named and c.type == token for c in node.children)

    def _add_binding(
        self,
        source: str,
        import_name: str,
        as_name: Optional[str] = None,
    ) -> None:
        assert self.module_info is not None
        if as_name == import_name:
            as_name = None
        self.module_info.add_import_binding(
            ImportInfo(
                from_module=source,
                import_name=import_name,
                as_name=as_name,
                is_relative=is_relative_specifier(source),
            )
        )

    # --- parameters -------------------------------------------------
    def _extract_parameters(self, fn_node: ts.Node) -> List[Parameter]:
        single = fn_node.child_by_field_name("parameter")
        if single is not None:
            # Arrow function with a bare identifier: `x => x * 2`
            return [Parameter(name=get_node_text(single))]
        params_node = fn_node.child_by_field_name("parameters")
        if params_node is None:
            return []
        return [
            self._parameter_from_node(child)
            for child in params_node.named_children
            if child.type != "comment"
        ]

    def _parameter_from_node(self, node: ts.Node) -> Parameter:
        if node.type in ("identifier", "this"):
            return Parameter(name=get_node_text(node))
        if node.type == "assignment_pattern":
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            return Parameter(
                name=self._pattern_name(left),
                default_value=get_node_text(right) or None,
            )
        if node.type == "rest_pattern":
            return Parameter(name=self._pattern_name(self._rest_target(node)), is_rest=True)
        # Destructured parameters have no single name.
        return Parameter(name="unknown")

    def _pattern_name(self, node: Optional[ts.Node]) -> str:
        if node is not None and node.type in ("identifier", "this"):
            return get_node_text(node)
        return "unknown"

    def _rest_target(self, node: ts.Node) -> Optional[ts.Node]:
        return node.named_children[0] if node.named_children else None

    # --- symbol builders --------------------------------------------
    def _function_info(
        self, node: ts.Node, name: str, doc: Optional[str] = None
    ) -> FunctionInfo:
        return FunctionInfo(
            name=name,
            parameters=self._extract_parameters(node),
            return_type=type_text(node.child_by_field_name("return_type")),
            is_async=self._has_token(node, "async"),
            is_generator="generator" in node.type or self._has_token(node, "*"),
            is_arrow=node.type == "arrow_function",
            doc_comment=doc,
        )

    def _class_info(
        self, node: ts.Node, name: str, doc: Optional[str] = None
    ) -> ClassInfo:
        info = ClassInfo(name=name, doc_comment=doc)
        heritage = next((c for c in node.children if c.type == "class_heritage"), None)
        if heritage is not None:
            self._read_heritage(heritage, info)

        body = node.child_by_field_name("body")
        if body is None:
            return info
        seen_methods = set()
        for member in body.named_children:
            member_doc = self._get_doc_comment(member)
            if member.type in (
                "method_definition",
                "method_signature",
                "abstract_method_signature",
            ):
                name_node = member.child_by_field_name("name")
                if name_node is None or name_node.type not in (
                    "property_identifier",
                    "private_property_identifier",
                ):
                    continue
                mname = get_node_text(name_node)
                if mname == "constructor":
                    if info.constructor is None:
                        info.constructor = self._function_info(
                            member, "constructor", member_doc
                        )
                    continue
                # Overloads: the first declaration of a name wins.
                if mname in seen_methods:
                    continue
                seen_methods.add(mname)
                info.methods.append(self._function_info(member, mname, member_doc))
            elif member.type in ("field_definition", "public_field_definition"):
                prop = self._property_info(member, member_doc)
                if prop is not None:
                    info.properties.append(prop)
        return info

    def _read_heritage(self, heritage: ts.Node, info: ClassInfo) -> None:
        # JavaScript: `class_heritage` holds the parent expression directly.
        for child in heritage.named_children:
            if child.type == "comment":
                continue
            info.extends = get_node_text(child) or None
            return

    def _property_info(
        self, node: ts.Node, doc: Optional[str]
    ) -> Optional[PropertyInfo]:
        name_node = node.child_by_field_name("property") or node.child_by_field_name(
            "name"
        )
        if name_node is None:
            return None
        return PropertyInfo(
            name=get_node_text(name_node),
            property_type=type_text(node.child_by_field_name("type")),
            is_readonly=self._has_token(node, "readonly"),
            is_static=self._has_token(node, "static"),
            doc_comment=doc,
        )

    def _infer_value_type(self, value: ts.Node) -> Optional[str]:
        if value.type in _LITERAL_TYPES:
            return _LITERAL_TYPES[value.type]
        if value.type == "new_expression":
            ctor = value.child_by_field_name("constructor")
            return get_node_text(ctor) or None
        if value.type == "unary_expression" and value.named_children:
            # -1, !0
            return self._infer_value_type(value.named_children[-1])
        return None

    # --- require ----------------------------------------------------
    def _require_target(self, node: Optional[ts.Node]) -> Optional[Tuple[str, Optional[str]]]:
        """
        Match ``require('x')`` or ``require('x').Member``; returns
        (specifier, member).
        """
        if node is None:
            return None
        member = None
        if node.type == "member_expression":
            prop = node.child_by_field_name("property")
            member = get_node_text(prop) or None
            node = node.child_by_field_name("object")
            if node is None:
                return None
        if node.type != "call_expression":
            return None
        fn = node.child_by_field_name("function")
        if fn is None or fn.type != "identifier" or get_node_text(fn) != "require":
            return None
        args = node.child_by_field_name("arguments")
        str_node = (
            next((c for c in args.named_children if c.type == "string"), None)
            if args is not None
            else None
        )
        if str_node is None:
            return None
        return strip_quotes(get_node_text(str_node)), member

    def _collect_require(self, name_node: ts.Node, value: Optional[ts.Node]) -> bool:
        target = self._require_target(value)
        if target is None:
            return False
        source, member = target
        if name_node.type == "identifier":
            local = get_node_text(name_node)
            self._add_binding(source, member or "default", local)
        elif name_node.type == "object_pattern":
            for prop in name_node.named_children:
                if prop.type == "shorthand_property_identifier_pattern":
                    pname = get_node_text(prop)
                    self._add_binding(source, pname)
                elif prop.type == "pair_pattern":
                    key = prop.child_by_field_name("key")
                    val = prop.child_by_field_name("value")
                    if val is not None and val.type == "identifier":
                        self._add_binding(
                            source, get_node_text(key), get_node_text(val)
                        )
        return True

    # --- handlers ---------------------------------------------------
    def _handle_import(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        assert self.module_info is not None
        self.module_info.add_import(get_node_text(node))
        src = node.child_by_field_name("source")
        if src is None:
            return
        source = strip_quotes(get_node_text(src))
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None:
            return
        for child in clause.named_children:
            if child.type == "identifier":
                self._add_binding(source, "default", get_node_text(child))
            elif child.type == "namespace_import":
                alias = next(
                    (c for c in child.named_children if c.type == "identifier"), None
                )
                self._add_binding(source, "*", get_node_text(alias) or None)
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name = get_node_text(spec.child_by_field_name("name"))
                    alias = get_node_text(spec.child_by_field_name("alias")) or None
                    self._add_binding(source, name, alias)

    def _handle_export(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        assert self.module_info is not None
        src = node.child_by_field_name("source")
        declaration = node.child_by_field_name("declaration")

        if self._has_token(node, "default"):
            self._handle_default_export(node, declaration, doc)
            return

        if declaration is not None:
            handler = self._handlers.get(declaration.type)
            if handler is None:
                self._debug_unknown_node(declaration)
                return
            handler(declaration, exported=True, doc=doc)
            return

        source = strip_quotes(get_node_text(src)) if src is not None else None
        if source is not None:
            self.module_info.add_import(get_node_text(node))

        clause = next((c for c in node.named_children if c.type == "export_clause"), None)
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name = get_node_text(spec.child_by_field_name("name"))
                alias = get_node_text(spec.child_by_field_name("alias")) or None
                self.module_info.add_export(alias or name)
                if source is not None:
                    self._add_binding(source, name, alias)
                elif alias and alias != name:
                    # Local rename: `export { a as b }`
                    self.module_info.add_import_binding(
                        ImportInfo(import_name=name, as_name=alias)
                    )
            return

        ns = next((c for c in node.named_children if c.type == "namespace_export"), None)
        if ns is not None:
            alias = get_node_text(ns.named_children[-1]) if ns.named_children else ""
            self.module_info.add_export(strip_quotes(alias))
            if source is not None:
                self._add_binding(source, "*", strip_quotes(alias) or None)
            return

        if source is not None and self._has_token(node, "*"):
            self._add_binding(source, "*")
            return

        self._debug_unknown_node(node)

    def _handle_default_export(
        self, node: ts.Node, declaration: Optional[ts.Node], doc: Optional[str]
    ) -> None:
        assert self.module_info is not None
        value = declaration or node.child_by_field_name("value")
        self.module_info.add_export("default")
        if value is None:
            return
        name_node = value.child_by_field_name("name")
        if name_node is None:
            return
        name = get_node_text(name_node)
        if value.type in ("function_declaration", "generator_function_declaration") or (
            value.type in FUNCTION_VALUE_TYPES
        ):
            self.module_info.add_function(self._function_info(value, name, doc))
        elif value.type in CLASS_VALUE_TYPES or value.type == "abstract_class_declaration":
            self.module_info.add_class(self._class_info(value, name, doc))

    def _handle_function(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        assert self.module_info is not None
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = get_node_text(name_node)
        # Overload signatures precede the implementation; keep the first.
        if not any(f.name == name for f in self.module_info.functions):
            self.module_info.add_function(self._function_info(node, name, doc))
        if exported:
            self.module_info.add_export(name)

    def _handle_class(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        assert self.module_info is not None
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = get_node_text(name_node)
        self.module_info.add_class(self._class_info(node, name, doc))
        if exported:
            self.module_info.add_export(name)

    def _handle_lexical(self, node: ts.Node, exported: bool, doc: Optional[str]) -> None:
        assert self.module_info is not None
        has_require = False
        for decl in node.named_children:
            if decl.type != "variable_declarator":
                continue
            name_node = decl.child_by_field_name("name")
            value = decl.child_by_field_name("value")
            if name_node is None:
                continue
            is_require = self._collect_require(name_node, value)
            has_require = has_require or is_require
            if name_node.type != "identifier":
                continue
            name = get_node_text(name_node)
            if exported:
                self.module_info.add_export(name)
            if is_require:
                # Imported bindings are not values of this module.
                continue
            if value is None:
                # `declare const x: number;` still has a type worth recording.
                annotation = type_text(decl.child_by_field_name("type"))
                if annotation is not None:
                    self.module_info.add_constant(
                        ConstantInfo(name=name, value_type=annotation, doc_comment=doc)
                    )
                continue
            if value.type in FUNCTION_VALUE_TYPES:
                self.module_info.add_function(self._function_info(value, name, doc))
            else:
                value_type = type_text(decl.child_by_field_name("type"))
                if value_type is None:
                    value_type = self._infer_value_type(value)
                self.module_info.add_constant(
                    ConstantInfo(name=name, value_type=value_type, doc_comment=doc)
                )
        if has_require:
            self.module_info.add_import(get_node_text(node))

    def _handle_expression(
        self, node: ts.Node, exported: bool, doc: Optional[str]
    ) -> None:
        assert self.module_info is not None
        expr = node.named_children[0] if node.named_children else None
        if expr is None:
            return
        if expr.type == "call_expression":
            if self._require_target(expr) is not None:
                self.module_info.add_import(get_node_text(node))
            return
        if expr.type != "assignment_expression":
            return
        # `exports = module.exports = X` assigns the innermost value to every target.
        lefts = []
        rhs: Optional[ts.Node] = expr
        while rhs is not None and rhs.type == "assignment_expression":
            lefts.append(rhs.child_by_field_name("left"))
            rhs = rhs.child_by_field_name("right")
        if rhs is None:
            return
        targets = [
            target
            for target in (self._commonjs_target(lhs) for lhs in lefts if lhs is not None)
            if target is not None
        ]
        if not targets:
            return

        require = self._require_target(rhs)
        if require is not None:
            self.module_info.add_import(get_node_text(node))

        with_records = True
        for kind, name in targets:
            if kind == "module":
                self._handle_module_exports(rhs, require, doc, with_records)
            else:
                assert name is not None
                self._handle_named_export(rhs, name, require, doc, with_records)
            with_records = False

    def _handle_named_export(
        self,
        rhs: ts.Node,
        name: str,
        require: Optional[Tuple[str, Optional[str]]],
        doc: Optional[str],
        with_records: bool = True,
    ) -> None:
        assert self.module_info is not None
        self.module_info.add_export(name)
        if rhs.type in FUNCTION_VALUE_TYPES:
            if with_records:
                self.module_info.add_function(self._function_info(rhs, name, doc))
        elif rhs.type in CLASS_VALUE_TYPES:
            if with_records:
                self.module_info.add_class(self._class_info(rhs, name, doc))
        elif require is not None:
            source, member = require
            self._add_binding(source, member or "default", name)

    def _handle_module_exports(
        self,
        rhs: ts.Node,
        require: Optional[Tuple[str, Optional[str]]],
        doc: Optional[str],
        with_records: bool = True,
    ) -> None:
        assert self.module_info is not None
        if require is not None:
            if with_records:
                source, member = require
                self._add_binding(source, member or "*")
            self.module_info.add_export("default")
            return
        if rhs.type in FUNCTION_VALUE_TYPES or rhs.type in CLASS_VALUE_TYPES:
            self.module_info.add_export("default")
            name_node = rhs.child_by_field_name("name")
            if name_node is None or not with_records:
                return
            name = get_node_text(name_node)
            if rhs.type in FUNCTION_VALUE_TYPES:
                self.module_info.add_function(self._function_info(rhs, name, doc))
            else:
                self.module_info.add_class(self._class_info(rhs, name, doc))
            return
        if rhs.type == "object":
            for prop in rhs.named_children:
                if prop.type == "shorthand_property_identifier":
                    self.module_info.add_export(get_node_text(prop))
                elif prop.type == "pair":
                    key = prop.child_by_field_name("key")
                    value = prop.child_by_field_name("value")
                    kname = strip_quotes(get_node_text(key))
                    self.module_info.add_export(kname)
                    if with_records and value is not None and value.type in FUNCTION_VALUE_TYPES:
                        self.module_info.add_function(self._function_info(value, kname))
                elif prop.type == "method_definition":
                    mname = get_node_text(prop.child_by_field_name("name"))
                    self.module_info.add_export(mname)
                    if with_records:
                        self.module_info.add_function(self._function_info(prop, mname))
            return
        self.module_info.add_export("default")

    def _commonjs_target(self, lhs: ts.Node) -> Optional[Tuple[str, Optional[str]]]:
        """
        ``module.exports`` -> ("module", None); ``exports.X`` or
        ``module.exports.X`` -> ("named", "X").
        """
        text = get_node_text(lhs)
        if text == "module.exports":
            return "module", None
        if lhs.type != "member_expression":
            return None
        obj = lhs.child_by_field_name("object")
        prop = lhs.child_by_field_name("property")
        if obj is None or prop is None:
            return None
        if get_node_text(obj) in ("exports", "module.exports"):
            return "named", get_node_text(prop)
        return None
