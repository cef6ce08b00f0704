"""Library for loading files referenced by a kustomization.

Plugins read their external data (e.g. the files behind a ConfigMap) through
a `Loader` so that every read is resolved relative to the kustomization root
and can be restricted to stay within it.
"""

from abc import ABC, abstractmethod
import logging
from pathlib import Path

from .exceptions import InputException

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "Loader",
    "FileLoader",
]


class Loader(ABC):
    """Interface for reading files relative to a kustomization root."""

    @property
    @abstractmethod
    def root(self) -> Path:
        """The directory that relative locations are resolved against."""

    @abstractmethod
    def load(self, location: str) -> bytes:
        """Return the contents of the file at the specified location."""


class FileLoader(Loader):
    """A Loader that reads from the local filesystem."""

    def __init__(self, root: Path, restrict_to_root: bool = True) -> None:
        """Initialize FileLoader."""
        self._root = root.resolve()
        self._restrict_to_root = restrict_to_root

    @property
    def root(self) -> Path:
        """The directory that relative locations are resolved against."""
        return self._root

    def resolve(self, location: str) -> Path:
        """Return the absolute path for a location, enforcing the root restriction."""
        path = Path(location)
        if not path.is_absolute():
            path = self._root / path
        path = path.resolve()
        if self._restrict_to_root and not path.is_relative_to(self._root):
            raise InputException(
                f"Security: file '{location}' is not in or below '{self._root}'"
            )
        return path

    def load(self, location: str) -> bytes:
        """Return the contents of the file at the specified location."""
        path = self.resolve(location)
        _LOGGER.debug("Loading %s", path)
        try:
            return path.read_bytes()
        except OSError as err:
            raise InputException(f"Unable to load '{location}': {err}") from err
