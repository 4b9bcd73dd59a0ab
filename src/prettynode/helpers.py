from pathlib import Path
from typing import Optional, Tuple, Union

from prettynode.errors import InvalidRequestError

JS_EXTENSIONS = (".js", ".mjs", ".cjs", ".jsx", ".ts", ".tsx")
DTS_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")
# Longest first so ".d.ts" wins over ".ts".
SOURCE_SUFFIXES = DTS_SUFFIXES + (".tsx", ".jsx", ".mjs", ".cjs", ".ts", ".js")


def parse_package_spec(spec: str) -> Tuple[str, Optional[str]]:
    """
    Split a package specification into name and optional version:
    ``express@4.18.0`` -> ("express", "4.18.0"), ``@types/node`` ->
    ("@types/node", None).
    """
    if spec.startswith("@"):
        # Scoped package: the version separator is the second "@".
        at_pos = spec.find("@", 1)
    else:
        at_pos = spec.rfind("@")
    if at_pos > 0:
        return spec[:at_pos], spec[at_pos + 1 :]
    return spec, None


def extract_base_package(module_path: str) -> str:
    """
    Return the package part of a module path: ``express/lib/router`` ->
    ``express``, ``@types/node/fs`` -> ``@types/node``.
    """
    parts = module_path.split("/")
    if parts[0].startswith("@") and len(parts) > 1:
        return f"{parts[0]}/{parts[1]}"
    return parts[0]


def split_module_path(module_path: str) -> Tuple[str, str]:
    """Return (base package, path inside the package)."""
    base = extract_base_package(module_path)
    return base, module_path[len(base) :].strip("/")


def parse_signature_request(request: str) -> Tuple[str, str]:
    """
    Parse a ``modulePath:symbolName`` request. Raises InvalidRequestError when
    the separator is missing or either side is empty.
    """
    module_path, sep, symbol_name = request.partition(":")
    if not sep:
        raise InvalidRequestError(
            f"Invalid import path format '{request}'. Expected 'module:symbol'"
        )
    module_path, symbol_name = module_path.strip(), symbol_name.strip()
    if not module_path or not symbol_name:
        raise InvalidRequestError(
            f"Invalid import path format '{request}'. Expected 'module:symbol'"
        )
    return module_path, symbol_name


def is_dts_file(path: Union[str, Path]) -> bool:
    return Path(path).name.endswith(DTS_SUFFIXES)


def is_js_file(path: Union[str, Path]) -> bool:
    return Path(path).suffix in JS_EXTENSIONS and not is_dts_file(path)


def is_source_file(path: Union[str, Path]) -> bool:
    return is_js_file(path) or is_dts_file(path)


def strip_source_suffix(name: str) -> str:
    for suffix in SOURCE_SUFFIXES:
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


def module_name_for(path: Union[str, Path]) -> str:
    """File stem with any JS/TS/declaration suffix removed (``index.d.ts`` -> ``index``)."""
    return strip_source_suffix(Path(path).name) or "unknown"
