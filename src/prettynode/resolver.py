import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from prettynode.errors import ParseError
from prettynode.helpers import strip_source_suffix
from prettynode.known import known_signature
from prettynode.logger import logger
from prettynode.models import (
    ImportInfo,
    ModuleInfo,
    SignatureInfo,
    SignatureKind,
)
from prettynode.parsers import parse_file
from prettynode.settings import PrettyNodeSettings

DEFAULT_MAX_HOPS = 32

# Extension order used when turning a module path into a file.
MODULE_EXTENSIONS = (".js", ".ts", ".d.ts", ".mjs", ".cjs", ".jsx", ".tsx")
INDEX_FILES = ("index.js", "index.ts", "index.d.ts")

_FROM_RE = re.compile(r"\sfrom\s+['\"]([^'\"]+)['\"]")
_REQUIRE_RE = re.compile(r"require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")


def find_symbol_in_module(
    module_info: ModuleInfo, symbol_name: str
) -> Optional[SignatureInfo]:
    """
    Search functions, classes (and their methods) and constants of a single
    module for *symbol_name*. Matching is exact and case-sensitive.
    """
    for function in module_info.functions:
        if function.name == symbol_name:
            return SignatureInfo(
                name=function.name,
                kind=(
                    SignatureKind.ARROW_FUNCTION
                    if function.is_arrow
                    else SignatureKind.FUNCTION
                ),
                parameters=list(function.parameters),
                return_type=function.return_type,
                doc_comment=function.doc_comment,
            )

    for cls in module_info.classes:
        if cls.name == symbol_name:
            # A class without an explicit constructor is still callable with `new`.
            return SignatureInfo(
                name=cls.name,
                kind=SignatureKind.CONSTRUCTOR,
                parameters=list(cls.constructor.parameters) if cls.constructor else [],
                return_type=cls.name,
                doc_comment=cls.doc_comment,
            )
        for method in cls.methods:
            if method.name == symbol_name:
                return SignatureInfo(
                    name=f"{cls.name}.{method.name}",
                    kind=SignatureKind.METHOD,
                    parameters=list(method.parameters),
                    return_type=method.return_type,
                    doc_comment=method.doc_comment,
                )

    for constant in module_info.constants:
        if constant.name == symbol_name:
            # Values are reported with the Function kind and no parameters.
            return SignatureInfo(
                name=constant.name,
                kind=SignatureKind.FUNCTION,
                return_type=constant.value_type,
                doc_comment=constant.doc_comment,
            )
    return None


def parse_import_statement(import_stmt: str, symbol_name: str) -> Optional[ImportInfo]:
    """
    Heuristically classify a raw import text mentioning *symbol_name* as an
    ES module import or a CommonJS require and extract its specifier.
    """
    if not re.search(rf"(?<![\w$]){re.escape(symbol_name)}(?![\w$])", import_stmt):
        return None
    match = _FROM_RE.search(import_stmt)
    if match and symbol_name in import_stmt[: match.start()]:
        specifier = match.group(1)
    else:
        match = _REQUIRE_RE.search(import_stmt)
        if match is None:
            return None
        specifier = match.group(1)
    return ImportInfo(
        from_module=specifier,
        import_name=symbol_name,
        is_relative=specifier.startswith("."),
    )


def normalize_module_path(module_path: str) -> str:
    """
    Turn a logical module path into a package-relative slash path:
    ``lib.router`` -> ``lib/router``, ``./lib/express.js`` -> ``lib/express``.
    """
    path = module_path.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    path = path.strip("/")
    if path in ("", "."):
        return ""
    stripped = strip_source_suffix(path)
    if "/" not in path and stripped == path:
        # Dotted logical path
        return path.replace(".", "/")
    return stripped


@dataclass
class _Resolution:
    """Per-call state: nothing is shared between resolve() calls."""

    max_hops: int
    hops: int = 0
    visited: Set[Tuple[str, str]] = field(default_factory=set)
    modules: Dict[Path, Optional[ModuleInfo]] = field(default_factory=dict)

    def parse(self, path: Path) -> Optional[ModuleInfo]:
        if path not in self.modules:
            try:
                self.modules[path] = parse_file(path)
            except ParseError as exc:
                logger.debug("Skipping unparsable module", path=str(path), error=str(exc))
                self.modules[path] = None
        return self.modules[path]


class ImportChainResolver:
    """
    Resolve a symbol to its signature inside a package on disk by searching
    the start module, conventional submodule locations and the module's
    import/re-export chain, then a small table of known signatures.
    """

    def __init__(self, settings: Optional[PrettyNodeSettings] = None) -> None:
        self.max_hops = (
            settings.max_resolution_hops if settings is not None else DEFAULT_MAX_HOPS
        )

    def resolve(
        self,
        package_root: Union[str, Path],
        module_path: str,
        symbol_name: str,
        *,
        use_known: bool = True,
    ) -> Optional[SignatureInfo]:
        """
        Never raises for a missing symbol; None is the normal "not found"
        outcome. With *use_known* the known-signature table keyed by
        *module_path* is consulted last.
        """
        logger.debug(
            "Resolving symbol",
            package_root=str(package_root),
            module=module_path,
            symbol=symbol_name,
        )
        state = _Resolution(max_hops=self.max_hops)
        sig = self._resolve(
            Path(package_root), normalize_module_path(module_path), symbol_name, state
        )
        if sig is not None or not use_known:
            return sig
        return known_signature(module_path, symbol_name)

    def module_file(self, package_root: Path, module_path: str) -> Optional[Path]:
        """Locate the file backing *module_path* (already normalized)."""
        if not module_path:
            candidates = [package_root / name for name in INDEX_FILES]
        else:
            base = package_root / module_path
            candidates = [Path(f"{base}{ext}") for ext in MODULE_EXTENSIONS]
            candidates.extend(base / name for name in INDEX_FILES)
        return next((p for p in candidates if p.is_file()), None)

    # --- search steps -----------------------------------------------
    def _resolve(
        self,
        package_root: Path,
        module_path: str,
        symbol_name: str,
        state: _Resolution,
    ) -> Optional[SignatureInfo]:
        if state.hops >= state.max_hops:
            logger.debug("Resolution hop limit reached", module=module_path, symbol=symbol_name)
            return None
        state.hops += 1

        path = self.module_file(package_root, module_path)
        if path is None:
            logger.debug("Module file not found", module=module_path)
            return None
        key = (str(path), symbol_name)
        if key in state.visited:
            logger.debug("Import cycle detected", path=str(path), symbol=symbol_name)
            return None
        state.visited.add(key)

        module_info = state.parse(path)
        if module_info is None:
            return None

        sig = find_symbol_in_module(module_info, symbol_name)
        if sig is not None:
            logger.debug("Found symbol directly", path=str(path), symbol=symbol_name)
            return sig

        sig = self._find_in_submodules(package_root, symbol_name, state)
        if sig is not None:
            return sig

        for binding in self._imports_for_symbol(module_info, symbol_name):
            if binding.from_module is None:
                # `export { a as b }` renames a local symbol.
                target = module_path
            else:
                target = self._resolve_import_path(package_root, path, binding)
            if target is None:
                continue
            target_symbol = (
                symbol_name
                if binding.import_name in ("default", "*")
                else binding.import_name
            )
            logger.debug(
                "Following import",
                from_path=str(path),
                specifier=binding.from_module,
                target=target,
                symbol=target_symbol,
            )
            sig = self._resolve(package_root, target, target_symbol, state)
            if sig is not None:
                return sig
        return None

    def _find_in_submodules(
        self, package_root: Path, symbol_name: str, state: _Resolution
    ) -> Optional[SignatureInfo]:
        lower = symbol_name.lower()
        candidates = [
            f"lib/{lower}",
            f"src/{lower}",
            lower,
            "lib/router",
            "lib/express",
            "router",
        ]
        lib_dir = package_root / "lib"
        if lib_dir.is_dir():
            try:
                entries = sorted(lib_dir.iterdir())
            except OSError as exc:
                logger.debug("Cannot list lib directory", path=str(lib_dir), error=str(exc))
                entries = []
            for entry in entries:
                if lower in entry.name.lower():
                    candidates.append(f"lib/{strip_source_suffix(entry.name)}")

        for candidate in candidates:
            path = self.module_file(package_root, normalize_module_path(candidate))
            if path is None:
                continue
            module_info = state.parse(path)
            if module_info is None:
                continue
            sig = find_symbol_in_module(module_info, symbol_name)
            if sig is not None:
                logger.debug("Found symbol in submodule", path=str(path), symbol=symbol_name)
                return sig
        return None

    def _imports_for_symbol(
        self, module_info: ModuleInfo, symbol_name: str
    ) -> List[ImportInfo]:
        """
        Import bindings that may provide *symbol_name*: bindings whose local
        name matches, then star re-exports, then matches found by scanning the
        raw import texts.
        """
        result = [b for b in module_info.import_bindings if b.local_name == symbol_name]
        result.extend(
            b
            for b in module_info.import_bindings
            if b.import_name == "*" and b.as_name is None
        )
        for raw in module_info.imports:
            info = parse_import_statement(raw, symbol_name)
            if info is None:
                continue
            if any(
                b.from_module == info.from_module and b.local_name == symbol_name
                for b in result
            ):
                continue
            result.append(info)
        return result

    def _resolve_import_path(
        self, package_root: Path, current_file: Path, binding: ImportInfo
    ) -> Optional[str]:
        specifier = binding.from_module
        if specifier is None:
            return None
        if not (binding.is_relative or specifier.startswith(".")):
            # Bare specifiers are looked up inside the same package.
            return normalize_module_path(specifier)

        joined = os.path.normpath(os.path.join(str(current_file.parent), specifier))
        root = os.path.normpath(str(package_root))
        rel = os.path.relpath(joined, root)
        if rel == ".":
            return ""
        if rel.startswith(".."):
            logger.debug("Import escapes package root", specifier=specifier)
            return None
        return normalize_module_path(Path(rel).as_posix())
