import asyncio
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from prettynode.errors import ParseError
from prettynode.helpers import is_source_file, module_name_for, strip_source_suffix
from prettynode.logger import logger
from prettynode.models import ModuleInfo
from prettynode.parsers import parse_file
from prettynode.settings import PrettyNodeSettings

MAIN_ENTRY_CANDIDATES = (
    "index.js",
    "index.ts",
    "index.d.ts",
    "lib/index.js",
    "lib/index.ts",
    "src/index.js",
    "src/index.ts",
    "dist/index.js",
    "build/index.js",
)
TYPES_ENTRY_CANDIDATES = (
    "index.d.ts",
    "lib/index.d.ts",
    "types/index.d.ts",
    "dist/index.d.ts",
)
SUBMODULE_DIRS = ("lib", "src", "dist", "build", "types")

DEFAULT_WALK_DEPTH = 2


def read_package_json(package_root: Path) -> Dict[str, Any]:
    """Return the parsed ``package.json`` or an empty dict when absent or invalid."""
    path = package_root / "package.json"
    if not path.is_file():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring invalid package.json", path=str(path), error=str(exc))
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring invalid package.json", path=str(path), error="not an object")
        return {}
    return data


def _copy_symbols(target: ModuleInfo, source: ModuleInfo) -> None:
    for name in source.exports:
        target.add_export(name)
    for function in source.functions:
        target.add_function(function.model_copy(deep=True))
    for class_info in source.classes:
        target.add_class(class_info.model_copy(deep=True))
    for type_info in source.types:
        target.add_type(type_info.model_copy(deep=True))
    for constant in source.constants:
        target.add_constant(constant.model_copy(deep=True))


class PackageExplorer:
    """
    Build a ModuleInfo tree for an installed package: package metadata, the
    symbols of its entry point and, below the root, one submodule per source
    file found in the conventional source directories.
    """

    def __init__(self, settings: Optional[PrettyNodeSettings] = None) -> None:
        self.walk_depth = settings.walk_depth if settings is not None else DEFAULT_WALK_DEPTH

    def explore(
        self,
        package_root: Union[str, Path],
        package_name: str,
        max_depth: int = 2,
    ) -> ModuleInfo:
        package_root = Path(package_root)
        root = ModuleInfo(name=package_name)

        package_data = read_package_json(package_root)
        version = package_data.get("version")
        main = package_data.get("main")
        root.version = version if isinstance(version, str) else None
        root.main = main if isinstance(main, str) else None

        main_entry, types_entry = self.find_entry_points(package_root, root.main)
        logger.debug(
            "Entry points",
            package=package_name,
            main=str(main_entry) if main_entry else None,
            types=str(types_entry) if types_entry else None,
        )

        entry_info = self._parse(main_entry) if main_entry is not None else None
        if entry_info is not None:
            _copy_symbols(root, entry_info)
        if (entry_info is None or entry_info.is_empty()) and types_entry is not None:
            types_info = self._parse(types_entry)
            if types_info is not None:
                _copy_symbols(root, types_info)

        if max_depth > 1:
            self._explore_submodules(package_root, root, main_entry)
        return root

    def find_entry_points(
        self, package_root: Path, main: Optional[str]
    ) -> Tuple[Optional[Path], Optional[Path]]:
        """Return (main entry, types entry); either may be None."""
        main_entry = None
        if main:
            main_path = package_root / main
            candidates = [main_path, Path(f"{main_path}.js"), main_path / "index.js"]
            main_entry = next((p for p in candidates if p.is_file()), None)
        if main_entry is None:
            main_entry = next(
                (
                    package_root / c
                    for c in MAIN_ENTRY_CANDIDATES
                    if (package_root / c).is_file()
                ),
                None,
            )
        types_entry = next(
            (
                package_root / c
                for c in TYPES_ENTRY_CANDIDATES
                if (package_root / c).is_file()
            ),
            None,
        )
        return main_entry, types_entry

    def _explore_submodules(
        self, package_root: Path, root: ModuleInfo, main_entry: Optional[Path]
    ) -> None:
        skip = main_entry.resolve() if main_entry is not None else None
        for subdir in SUBMODULE_DIRS:
            dir_path = package_root / subdir
            if not dir_path.is_dir():
                continue
            for path in self._walk(dir_path):
                if skip is not None and path.resolve() == skip:
                    continue
                module_info = self._parse(path)
                if module_info is None:
                    continue
                rel = strip_source_suffix(path.relative_to(package_root).as_posix())
                root.add_submodule(module_name_for(path), module_info, alt_key=rel)

    def _walk(self, dir_path: Path) -> List[Path]:
        """
        Source files at most ``walk_depth`` levels below *dir_path*, in sorted
        order. Iterative traversal with os.scandir.
        """
        found: List[Path] = []
        stack: List[Tuple[Path, int]] = [(dir_path, 1)]
        while stack:
            cur, depth = stack.pop()
            try:
                with os.scandir(cur) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as exc:
                logger.debug("Cannot list directory", path=str(cur), error=str(exc))
                continue
            subdirs = []
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    if depth < self.walk_depth and entry.name != "node_modules":
                        subdirs.append((Path(entry.path), depth + 1))
                elif entry.is_file() and is_source_file(entry.name):
                    found.append(Path(entry.path))
            stack.extend(reversed(subdirs))
        return found

    def _parse(self, path: Path) -> Optional[ModuleInfo]:
        try:
            return parse_file(path)
        except ParseError as exc:
            logger.debug("Skipping unparsable file", path=str(path), error=str(exc))
            return None


async def explore_package(
    package_root: Union[str, Path],
    package_name: str,
    max_depth: int = 2,
    settings: Optional[PrettyNodeSettings] = None,
) -> ModuleInfo:
    """Run the blocking exploration in a worker thread."""
    explorer = PackageExplorer(settings)
    return await asyncio.to_thread(explorer.explore, package_root, package_name, max_depth)
