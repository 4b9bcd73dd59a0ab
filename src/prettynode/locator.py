from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence, Union

from prettynode.logger import logger


def default_search_paths() -> List[Path]:
    cwd = Path.cwd()
    return [cwd, cwd / "..", cwd / ".." / ".."]


class PackageLocator(ABC):
    """Supplies an on-disk directory holding an installed package's files."""

    @abstractmethod
    def locate(self, name: str, version: Optional[str] = None) -> Optional[Path]: ...


class LocalPackageLocator(PackageLocator):
    """
    Finds packages already installed in a ``node_modules`` directory under one
    of the search paths. The version is not checked against the installed copy.
    """

    def __init__(
        self, search_paths: Optional[Sequence[Union[str, Path]]] = None
    ) -> None:
        if search_paths:
            self.search_paths = [Path(p) for p in search_paths]
        else:
            self.search_paths = default_search_paths()

    def locate(self, name: str, version: Optional[str] = None) -> Optional[Path]:
        for search_path in self.search_paths:
            candidate = search_path / "node_modules" / name
            if (candidate / "package.json").is_file():
                logger.debug("Found local package", name=name, path=str(candidate))
                return candidate
        logger.debug(
            "Package not installed locally",
            name=name,
            version=version,
            search_paths=[str(p) for p in self.search_paths],
        )
        return None
