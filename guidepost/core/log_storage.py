"""Blob storage for dated run reports.

The pipeline only needs download-if-exists, upsert, list and delete.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class LogStorage(ABC):
    """Base class for report storage backends."""

    @abstractmethod
    def download(self, name: str) -> str | None:
        """Return the content of ``name``, or None if it does not exist."""

    @abstractmethod
    def upload(self, name: str, content: str) -> None:
        """Create or overwrite ``name`` with ``content``."""

    @abstractmethod
    def list_names(self) -> list[str]:
        """Return all stored names, sorted ascending."""

    @abstractmethod
    def remove(self, names: list[str]) -> None:
        """Delete the given names. Missing names are ignored."""


class LocalLogStorage(LogStorage):
    """Stores reports as files in a single directory."""

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def download(self, name: str) -> str | None:
        path = self._dir / name
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def upload(self, name: str, content: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        (self._dir / name).write_text(content, encoding="utf-8")
        logger.debug("Wrote report %s", self._dir / name)

    def list_names(self) -> list[str]:
        if not self._dir.is_dir():
            return []
        return sorted(p.name for p in self._dir.iterdir() if p.is_file())

    def remove(self, names: list[str]) -> None:
        for name in names:
            (self._dir / name).unlink(missing_ok=True)
