from pathlib import Path
from typing import Optional, Union


class PrettyNodeError(Exception):
    """Base class for all pretty-node errors."""


class ParseError(PrettyNodeError):
    """
    A single file could not be turned into a ModuleInfo. Callers treat this as
    "the file contributes nothing" and carry on with the next candidate.
    """

    def __init__(self, path: Optional[Union[str, Path]], message: str) -> None:
        self.path = str(path) if path is not None else None
        super().__init__(f"{self.path}: {message}" if self.path else message)


class ReadError(ParseError):
    """File is unreadable or not valid UTF-8."""


class SourceSyntaxError(ParseError):
    """The grammar rejected the source text."""


class UnsupportedFileError(ParseError):
    """No parser is registered for the file extension."""


class SymbolNotFoundError(PrettyNodeError):
    def __init__(self, module_path: str, symbol_name: str) -> None:
        self.module_path = module_path
        self.symbol_name = symbol_name
        super().__init__(f"Symbol '{symbol_name}' not found in module '{module_path}'")


class InvalidRequestError(PrettyNodeError, ValueError):
    """Malformed signature request (expected ``module:symbol``)."""
