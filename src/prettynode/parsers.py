import inspect
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Type, Union

from prettynode.errors import ReadError, SourceSyntaxError, UnsupportedFileError
from prettynode.helpers import module_name_for
from prettynode.logger import logger
from prettynode.models import ModuleInfo


# Abstract base parser class
class AbstractModuleParser(ABC):
    """
    Abstract base class for module parsers. A parser instance handles one file:
    it owns the ModuleInfo being built and is discarded after the pass.
    """

    extensions: List[str]
    parser: Any = None
    source_bytes: bytes
    module_info: Optional[ModuleInfo]

    def __init_subclass__(cls, **kw):
        super().__init_subclass__(**kw)
        if not inspect.isabstract(cls):
            if not hasattr(cls, "extensions") or not cls.extensions:
                raise ValueError(f"{cls.__name__} missing `extensions`")
            ModuleParserRegistry.register_parser(cls)

    def __init__(self, path: Optional[Union[str, Path]] = None) -> None:
        self.path = str(path) if path is not None else None
        self.module_info = None

    @abstractmethod
    def _process_node(self, node: Any) -> None: ...

    def parse_file(self, file_path: Union[str, Path]) -> ModuleInfo:
        self.path = str(file_path)
        try:
            with open(file_path, "rb") as file:
                raw = file.read()
            source = raw.decode("utf-8")
        except OSError as exc:
            raise ReadError(file_path, f"unable to read file: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ReadError(file_path, f"file is not valid UTF-8: {exc}") from exc
        return self.parse_source(source, module_name_for(file_path))

    def parse_source(self, source: str, module_name: str) -> ModuleInfo:
        self.source_bytes = source.encode("utf-8")
        tree = self.parser.parse(self.source_bytes)
        root_node = tree.root_node
        if root_node.has_error:
            line = _first_error_line(root_node)
            raise SourceSyntaxError(self.path, f"syntax error near line {line}")

        self.module_info = ModuleInfo(name=module_name)

        # Only top-level items are visited; nested scopes are never entered.
        for child in root_node.children:
            self._process_node(child)

        logger.debug(
            "Parsed module",
            path=self.path,
            functions=len(self.module_info.functions),
            classes=len(self.module_info.classes),
            exports=len(self.module_info.exports),
        )
        return self.module_info


class ModuleParserRegistry:
    """
    Singleton registry mapping file extensions to module parser implementations.
    """

    _instance = None
    _parsers: List[Type[AbstractModuleParser]] = []

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ModuleParserRegistry, cls).__new__(cls)
        return cls._instance

    @classmethod
    def register_parser(cls, parser: Type[AbstractModuleParser]) -> None:
        if parser not in cls._parsers:
            cls._parsers.append(parser)

    @classmethod
    def get_parsers(cls) -> List[Type[AbstractModuleParser]]:
        return cls._parsers

    @classmethod
    def get_parser_for(
        cls, path: Union[str, Path]
    ) -> Optional[Type[AbstractModuleParser]]:
        # Longest extension wins so that ".d.ts" beats ".ts".
        name = Path(path).name
        best: Optional[Type[AbstractModuleParser]] = None
        best_len = 0
        for parser in cls._parsers:
            for ext in parser.extensions:
                if name.endswith(ext) and len(ext) > best_len:
                    best, best_len = parser, len(ext)
        return best


def parse_file(path: Union[str, Path]) -> ModuleInfo:
    """
    Parse *path* with the parser registered for its extension. Raises a
    ParseError subclass on failure.
    """
    parser_cls = ModuleParserRegistry.get_parser_for(path)
    if parser_cls is None:
        raise UnsupportedFileError(path, "unsupported file type")
    return parser_cls(path).parse_file(path)


# Helpers
def get_node_text(node) -> str:
    """
    Get text of the tree sitter node
    """
    if not node or not node.text:
        return ""

    return node.text.decode("utf-8")


def clean_doc_comment(text: str) -> Optional[str]:
    """
    Strip ``/** ... */`` delimiters and leading ``*`` from a JSDoc block.
    Returns None for anything that is not a JSDoc comment.
    """
    text = text.strip()
    if not text.startswith("/**"):
        return None
    text = text[3:]
    if text.endswith("*/"):
        text = text[:-2]
    lines = []
    for line in text.split("\n"):
        line = line.strip()
        if line.startswith("* "):
            line = line[2:]
        elif line.startswith("*"):
            line = line[1:]
        lines.append(line)
    return "\n".join(lines).strip() or None


def _first_error_line(node) -> int:
    stack = [node]
    while stack:
        cur = stack.pop()
        if cur.type == "ERROR" or cur.is_missing:
            return cur.start_point[0] + 1
        stack.extend(reversed(cur.children))
    return node.start_point[0] + 1
