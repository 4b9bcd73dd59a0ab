import asyncio
from pathlib import Path
from typing import List, Optional

from prettynode.errors import ParseError, SymbolNotFoundError
from prettynode.explorer import read_package_json
from prettynode.helpers import (
    is_source_file,
    parse_package_spec,
    parse_signature_request,
    split_module_path,
)
from prettynode.known import known_signature
from prettynode.locator import LocalPackageLocator, PackageLocator
from prettynode.logger import logger
from prettynode.models import SignatureInfo
from prettynode.parsers import parse_file
from prettynode.resolver import ImportChainResolver, find_symbol_in_module
from prettynode.settings import PrettyNodeSettings

# Files searched for a symbol when import-chain resolution finds nothing.
COMMON_ENTRIES = (
    "index.js",
    "index.ts",
    "index.d.ts",
    "lib/index.js",
    "lib/index.ts",
    "lib/index.d.ts",
    "src/index.js",
    "src/index.ts",
    "src/index.d.ts",
)


class SignatureExtractor:
    """
    Resolve ``module:symbol`` requests against installed packages.
    """

    def __init__(
        self,
        settings: Optional[PrettyNodeSettings] = None,
        locator: Optional[PackageLocator] = None,
    ) -> None:
        self.settings = settings
        if locator is None:
            search_paths = settings.search_paths if settings is not None else None
            locator = LocalPackageLocator(search_paths)
        self.locator = locator
        self.resolver = ImportChainResolver(settings)

    def extract(self, request: str) -> SignatureInfo:
        # Raises InvalidRequestError before touching the file system.
        module_path, symbol_name = parse_signature_request(request)
        base_spec, subpath = split_module_path(module_path)
        package_name, version = parse_package_spec(base_spec)
        # Keys for the known-signature table never carry a version.
        lookup_path = package_name + (f"/{subpath}" if subpath else "")

        package_root = self.locator.locate(package_name, version)
        if package_root is not None:
            sig = self._extract_local(package_root, subpath, symbol_name)
            if sig is not None:
                return sig

        sig = known_signature(lookup_path, symbol_name)
        if sig is not None:
            return sig
        raise SymbolNotFoundError(module_path, symbol_name)

    def _extract_local(
        self, package_root: Path, subpath: str, symbol_name: str
    ) -> Optional[SignatureInfo]:
        starts = [subpath]
        if not subpath:
            package_data = read_package_json(package_root)
            for field in ("main", "types", "typings"):
                entry = package_data.get(field)
                if isinstance(entry, str) and entry not in starts:
                    starts.append(entry)

        for start in starts:
            # Known signatures are applied by extract() with the full path.
            sig = self.resolver.resolve(
                package_root, start, symbol_name, use_known=False
            )
            if sig is not None:
                return sig

        if subpath:
            return None
        return self._sweep_candidates(package_root, symbol_name)

    def _sweep_candidates(
        self, package_root: Path, symbol_name: str
    ) -> Optional[SignatureInfo]:
        """Last resort for a package root: search common entry files directly."""
        candidates: List[Path] = [package_root / entry for entry in COMMON_ENTRIES]
        lower = symbol_name.lower()
        for directory in (package_root / "lib", package_root):
            if not directory.is_dir():
                continue
            try:
                names = sorted(p.name for p in directory.iterdir())
            except OSError as exc:
                logger.debug("Cannot list directory", path=str(directory), error=str(exc))
                continue
            for name in names:
                if not is_source_file(name):
                    continue
                if directory == package_root and not name.endswith(".d.ts"):
                    continue
                if directory != package_root and lower not in name.lower():
                    continue
                candidates.append(directory / name)

        seen = set()
        for path in candidates:
            if path in seen or not path.is_file():
                continue
            seen.add(path)
            try:
                module_info = parse_file(path)
            except ParseError as exc:
                logger.debug("Skipping unparsable file", path=str(path), error=str(exc))
                continue
            sig = find_symbol_in_module(module_info, symbol_name)
            if sig is not None:
                logger.debug("Found symbol in entry sweep", path=str(path), symbol=symbol_name)
                return sig
        return None


async def extract_signature(
    request: str,
    settings: Optional[PrettyNodeSettings] = None,
    locator: Optional[PackageLocator] = None,
) -> SignatureInfo:
    """Async wrapper running the blocking extraction in a worker thread."""
    extractor = SignatureExtractor(settings, locator)
    return await asyncio.to_thread(extractor.extract, request)
