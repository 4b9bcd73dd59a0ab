import re
from typing import Iterator, List, NamedTuple, Optional, Tuple

from prettynode.parsers import AbstractModuleParser, clean_doc_comment
from prettynode.params import ParameterParser, find_matching_paren, split_top_level
from prettynode.lang.javascript import is_relative_specifier
from prettynode.models import (
    ClassInfo,
    ConstantInfo,
    FunctionInfo,
    ImportInfo,
    ModuleInfo,
    PropertyInfo,
    TypeInfo,
    TypeKind,
)
from prettynode.logger import logger


class Statement(NamedTuple):
    text: str
    doc: Optional[str]
    line: int


# Statements whose closing brace ends them even without a semicolon.
_BLOCK_HEAD = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?(?:const\s+)?"
    r"(?:interface|class|enum|namespace|module|global)\b"
)
# A new line opening one of these starts a new statement when no `;` ended the last.
_NEXT_DECL = re.compile(
    r"(?:export|declare|import|interface|type|function|class|enum|const|let|var"
    r"|namespace|module|abstract)\b(?!\s*[(.:])"
)
# Class members start with a name, a modifier or an index signature.
_NEXT_MEMBER = re.compile(r"[#\[A-Za-z_$]")
# Line endings that leave a statement open.
_CONTINUATION = ":|&=,.?"
_DECL_PREFIX = re.compile(
    r"^(?P<export>export\s+)?(?P<default>default\s+)?(?:declare\s+)?"
)
_QUOTED = r"(?P<q>['\"])(?P<src>[^'\"]+)(?P=q)"

_IMPORT_FROM = re.compile(
    r"^import\s+(?:type\s+)?(?P<clause>[\s\S]+?)\s+from\s+" + _QUOTED
)
_IMPORT_REQUIRE = re.compile(
    r"^import\s+(?P<alias>[\w$]+)\s*=\s*require\s*\(\s*" + _QUOTED
)
_EXPORT_STAR = re.compile(
    r"^export\s+\*\s*(?:as\s+(?P<alias>[\w$]+)\s+)?from\s+" + _QUOTED
)
_EXPORT_CLAUSE = re.compile(
    r"^export\s+(?:type\s+)?\{(?P<names>[^}]*)\}\s*(?:from\s+" + _QUOTED + ")?"
)
# `export = X;` and `export default X;` (declarations are handled separately)
_EXPORT_DEFAULT = re.compile(
    r"^export\s*(?:=|default\s+(?!(?:abstract\s+)?class\b|function\b|interface\b))"
)

_CLASS = re.compile(r"^(?:abstract\s+)?class\s+(?P<name>[\w$]+)")
_INTERFACE = re.compile(r"^interface\s+(?P<name>[\w$]+)")
_TYPE_ALIAS = re.compile(r"^type\s+(?P<name>[\w$]+)")
_ENUM = re.compile(r"^(?:const\s+)?enum\s+(?P<name>[\w$]+)")
_FUNCTION = re.compile(r"^function\s*\*?\s*(?P<name>[\w$]+)")
_VARIABLE = re.compile(r"^(?:const|let|var)\s+(?P<name>[\w$]+)\s*(?P<rest>[\s\S]*)$")
_NAMESPACE = re.compile(r"^(?:namespace|module)\s+(?P<name>[\w$.]+)")

_MEMBER = re.compile(
    r"^(?P<mods>(?:(?:public|private|protected|static|readonly|abstract|declare"
    r"|override|async|get|set)\s+)*)(?P<name>#?[A-Za-z_$][\w$]*)(?P<opt>\?)?\s*"
    r"(?P<kind>[(<:;]|$)"
)


def iter_statements(text: str, boundary: re.Pattern = _NEXT_DECL) -> Iterator[Statement]:
    """
    Split declaration text into top-level statements. Each statement carries
    the JSDoc block that immediately precedes it. Comments and string
    literals are skipped when tracking bracket depth.

    Semicolons are optional: a statement also ends at a newline when the next
    code matches *boundary* and the line does not end in a continuation.
    """
    n = len(text)
    i = 0
    depth = 0
    start: Optional[int] = None
    # Start of a trailing `//` comment on the current line of a statement.
    cut: Optional[int] = None
    doc: Optional[str] = None
    pending_doc: Optional[str] = None
    while i < n:
        ch = text[i]
        if text.startswith("//", i):
            if start is not None and cut is None:
                cut = i
            j = text.find("\n", i)
            i = n if j < 0 else j
            continue
        if text.startswith("/*", i):
            j = text.find("*/", i + 2)
            end = n if j < 0 else j + 2
            if start is None:
                pending_doc = clean_doc_comment(text[i:end])
            i = end
            continue
        if start is None:
            if ch.isspace() or ch == ";":
                i += 1
                continue
            start, doc, pending_doc = i, pending_doc, None
        if ch in "'\"`":
            i = _skip_string(text, i)
            continue
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth = max(depth - 1, 0)
            if ch == "}" and depth == 0 and _BLOCK_HEAD.match(text[start:i]):
                yield Statement(text[start : i + 1], doc, text.count("\n", 0, start) + 1)
                start = None
        elif ch == ";" and depth == 0:
            yield Statement(text[start : i + 1], doc, text.count("\n", 0, start) + 1)
            start = None
        elif ch == "\n":
            end = cut if cut is not None else i
            cut = None
            if depth == 0 and _ends_at_line(text[start:end], boundary, text, i):
                yield Statement(
                    text[start:end].rstrip(), doc, text.count("\n", 0, start) + 1
                )
                start = None
        i += 1
    if start is not None and text[start:cut].strip():
        yield Statement(text[start:cut], doc, text.count("\n", 0, start) + 1)


def _ends_at_line(code: str, boundary: re.Pattern, text: str, newline: int) -> bool:
    code = code.rstrip()
    if not code or code[-1] in _CONTINUATION or code.endswith("=>"):
        return False
    return boundary.match(text, _skip_blank(text, newline)) is not None


def _skip_blank(text: str, i: int) -> int:
    """Index of the next character that is neither whitespace nor comment."""
    n = len(text)
    while i < n:
        if text[i].isspace():
            i += 1
        elif text.startswith("//", i):
            j = text.find("\n", i)
            i = n if j < 0 else j + 1
        elif text.startswith("/*", i):
            j = text.find("*/", i + 2)
            i = n if j < 0 else j + 2
        else:
            break
    return i


def _skip_string(text: str, i: int) -> int:
    quote = text[i]
    j = i + 1
    while j < len(text):
        if text[j] == "\\":
            j += 2
            continue
        if text[j] == quote:
            return j + 1
        j += 1
    return len(text)


def _skip_generics(text: str, i: int) -> int:
    """Index just past a ``<...>`` group starting at *i* (``=>`` is not a closer)."""
    if i >= len(text) or text[i] != "<":
        return i
    depth = 0
    prev = ""
    for j in range(i, len(text)):
        ch = text[j]
        if ch == "<":
            depth += 1
        elif ch == ">" and prev != "=":
            depth -= 1
            if depth == 0:
                return j + 1
        prev = ch
    return len(text)


def _strip_terminator(text: str) -> str:
    return text.strip().rstrip(";").strip()


class DeclarationFileParser(AbstractModuleParser):
    """
    Pattern-based parser for TypeScript declaration files. Declaration files
    contain no executable bodies, so statements are classified by their
    leading keywords and parameter lists are handed to ParameterParser.
    """

    extensions = [".d.ts", ".d.mts", ".d.cts"]

    def __init__(self, path=None) -> None:
        super().__init__(path)
        self.param_parser = ParameterParser()

    def parse_source(self, source: str, module_name: str) -> ModuleInfo:
        self.module_info = ModuleInfo(name=module_name)
        for statement in iter_statements(source):
            self._process_node(statement)
        logger.debug(
            "Parsed declaration file",
            path=self.path,
            functions=len(self.module_info.functions),
            classes=len(self.module_info.classes),
            types=len(self.module_info.types),
        )
        return self.module_info

    def _process_node(self, node: Statement) -> None:
        try:
            self._handle_statement(node)
        except Exception as ex:
            logger.warning(
                "Declaration handler error; skipping statement",
                path=self.path,
                line=node.line,
                error=str(ex),
            )

    # --- statements -------------------------------------------------
    def _handle_statement(self, stmt: Statement) -> None:
        assert self.module_info is not None
        text = stmt.text.strip()

        if re.match(r"import\b", text):
            self._handle_import(text)
            return
        if re.match(r"export\b", text):
            if self._handle_export_forms(text):
                return

        prefix = _DECL_PREFIX.match(text)
        assert prefix is not None
        exported = bool(prefix.group("export"))
        is_default = exported and bool(prefix.group("default"))
        body = text[prefix.end() :]

        for pattern, handler in (
            (_CLASS, self._handle_class),
            (_INTERFACE, self._handle_interface),
            (_TYPE_ALIAS, self._handle_type_alias),
            (_ENUM, self._handle_enum),
            (_FUNCTION, self._handle_function),
            (_VARIABLE, self._handle_variable),
        ):
            match = pattern.match(body)
            if match:
                name = match.group("name")
                handler(match, body, stmt.doc)
                if exported:
                    self.module_info.add_export("default" if is_default else name)
                return

        ns = _NAMESPACE.match(body)
        if ns and exported:
            self.module_info.add_export(ns.group("name"))
        logger.debug(
            "Skipping declaration statement",
            path=self.path,
            line=stmt.line,
            raw=text[:80],
        )

    def _handle_import(self, text: str) -> None:
        assert self.module_info is not None
        self.module_info.add_import(text)
        match = _IMPORT_REQUIRE.match(text)
        if match:
            self._add_binding(match.group("src"), "default", match.group("alias"))
            return
        match = _IMPORT_FROM.match(text)
        if not match:
            return
        source = match.group("src")
        clause = match.group("clause").strip()
        named = ""
        brace = clause.find("{")
        if brace >= 0:
            named = clause[brace + 1 : clause.rfind("}")]
            clause = clause[:brace]
        for part in split_top_level(clause):
            if part.startswith("*"):
                alias = part.split("as", 1)[-1].strip()
                self._add_binding(source, "*", alias or None)
            else:
                self._add_binding(source, "default", part)
        for name, alias in self._specifiers(named):
            self._add_binding(source, name, alias)

    def _handle_export_forms(self, text: str) -> bool:
        """Handle export statements that are not declarations."""
        assert self.module_info is not None
        match = _EXPORT_STAR.match(text)
        if match:
            self.module_info.add_import(text)
            alias = match.group("alias")
            if alias:
                self.module_info.add_export(alias)
            self._add_binding(match.group("src"), "*", alias)
            return True
        match = _EXPORT_CLAUSE.match(text)
        if match:
            source = match.group("src")
            if source:
                self.module_info.add_import(text)
            for name, alias in self._specifiers(match.group("names")):
                self.module_info.add_export(alias or name)
                if source:
                    self._add_binding(source, name, alias)
                elif alias:
                    self.module_info.add_import_binding(
                        ImportInfo(import_name=name, as_name=alias)
                    )
            return True
        if _EXPORT_DEFAULT.match(text):
            self.module_info.add_export("default")
            return True
        return False

    def _specifiers(self, names: str) -> List[Tuple[str, Optional[str]]]:
        result = []
        for part in split_top_level(names):
            part = re.sub(r"^type\s+", "", part)
            name, _, alias = part.partition(" as ")
            name, alias = name.strip(), alias.strip()
            if name:
                result.append((name, alias if alias and alias != name else None))
        return result

    def _add_binding(
        self, source: str, import_name: str, as_name: Optional[str] = None
    ) -> None:
        assert self.module_info is not None
        self.module_info.add_import_binding(
            ImportInfo(
                from_module=source,
                import_name=import_name,
                as_name=as_name if as_name != import_name else None,
                is_relative=is_relative_specifier(source),
            )
        )

    # --- declarations -----------------------------------------------
    def _handle_function(self, match: re.Match, text: str, doc: Optional[str]) -> None:
        assert self.module_info is not None
        name = match.group("name")
        if any(f.name == name for f in self.module_info.functions):
            # Later overloads add nothing the first one lacks.
            return
        self.module_info.add_function(
            self._callable(name, text, match.end(), doc, is_generator="*" in match.group(0))
        )

    def _callable(
        self,
        name: str,
        text: str,
        pos: int,
        doc: Optional[str],
        is_generator: bool = False,
        is_async: bool = False,
    ) -> FunctionInfo:
        pos = _skip_generics(text, pos)
        open_paren = text.find("(", pos)
        if open_paren < 0:
            return FunctionInfo(name=name, doc_comment=doc)
        close_paren = find_matching_paren(text, open_paren)
        if close_paren is None:
            close_paren = len(text)
        parameters = self.param_parser.parse_parameters(
            text[open_paren + 1 : close_paren]
        )
        rest = text[close_paren + 1 :].strip()
        return_type = None
        if rest.startswith(":"):
            return_type = _strip_terminator(rest[1:]) or None
        return FunctionInfo(
            name=name,
            parameters=parameters,
            return_type=return_type,
            is_async=is_async,
            is_generator=is_generator,
            doc_comment=doc,
        )

    def _handle_variable(self, match: re.Match, text: str, doc: Optional[str]) -> None:
        assert self.module_info is not None
        rest = match.group("rest").strip()
        value_type = None
        if rest.startswith(":"):
            value_type = _strip_terminator(rest[1:].split("=", 1)[0]) or None
        self.module_info.add_constant(
            ConstantInfo(name=match.group("name"), value_type=value_type, doc_comment=doc)
        )

    def _handle_interface(self, match: re.Match, text: str, doc: Optional[str]) -> None:
        self._add_type(match, TypeKind.INTERFACE, self._header(text), doc)

    def _handle_type_alias(self, match: re.Match, text: str, doc: Optional[str]) -> None:
        self._add_type(match, TypeKind.TYPE, _strip_terminator(text), doc)

    def _handle_enum(self, match: re.Match, text: str, doc: Optional[str]) -> None:
        self._add_type(match, TypeKind.ENUM, self._header(text), doc)

    def _add_type(
        self, match: re.Match, kind: TypeKind, definition: str, doc: Optional[str]
    ) -> None:
        assert self.module_info is not None
        self.module_info.add_type(
            TypeInfo(
                name=match.group("name"),
                kind=kind,
                definition=definition,
                doc_comment=doc,
            )
        )

    def _header(self, text: str) -> str:
        brace = self._body_start(text, 0)
        return text[:brace].strip() if brace is not None else _strip_terminator(text)

    def _body_start(self, text: str, pos: int) -> Optional[int]:
        """Index of the ``{`` opening a declaration body, skipping generics."""
        i = pos
        while i < len(text):
            if text[i] == "<":
                i = _skip_generics(text, i)
                continue
            if text[i] == "{":
                return i
            i += 1
        return None

    def _handle_class(self, match: re.Match, text: str, doc: Optional[str]) -> None:
        assert self.module_info is not None
        info = ClassInfo(name=match.group("name"), doc_comment=doc)
        brace = self._body_start(text, match.end())
        header = text[match.end() : brace].strip() if brace is not None else ""
        if header.startswith("<"):
            header = header[_skip_generics(header, 0) :].strip()

        extends = re.search(r"\bextends\s+([\s\S]+?)(?=\s+implements\b|$)", header)
        if extends:
            info.extends = extends.group(1).strip()
        implements = re.search(r"\bimplements\s+([\s\S]+)$", header)
        if implements:
            info.implements = split_top_level(implements.group(1))

        if brace is not None:
            close = find_matching_paren(text, brace)
            body = text[brace + 1 : close if close is not None else len(text)]
            self._read_members(body, info)
        self.module_info.add_class(info)

    def _read_members(self, body: str, info: ClassInfo) -> None:
        seen = set()
        for member in iter_statements(body, _NEXT_MEMBER):
            text = member.text.strip()
            match = _MEMBER.match(text)
            if not match:
                continue
            name = match.group("name")
            mods = match.group("mods").split()
            kind = match.group("kind")
            if kind in ("(", "<"):
                fn = self._callable(
                    name,
                    text,
                    match.start("kind"),
                    member.doc,
                    is_async="async" in mods,
                )
                if name == "constructor":
                    if info.constructor is None:
                        info.constructor = fn
                elif name not in seen:
                    seen.add(name)
                    info.methods.append(fn)
                continue
            property_type = None
            if kind == ":":
                property_type = _strip_terminator(text[match.end() :]) or None
            info.properties.append(
                PropertyInfo(
                    name=name,
                    property_type=property_type,
                    is_readonly="readonly" in mods,
                    is_static="static" in mods,
                    doc_comment=member.doc,
                )
            )
