from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class StorageService(ABC):
    """Abstract base class for upload-target stores (transfer sinks)."""

    @abstractmethod
    async def save_file(self, source: Path, path: str) -> str:
        """
        Copy a local file into the storage.

        A file already stored under the same path is replaced entirely,
        never merged.

        Args:
            source: The local file to copy.
            path: The destination path/key in the storage (relative to root).

        Returns:
            The path/key where the file was saved.
        """
        pass

    @abstractmethod
    def get_url(self, path: str) -> Optional[str]:
        """
        Get the accessible location of a stored file.

        Args:
            path: The storage path/key.

        Returns:
            The URL or local path, or None if the file does not exist.
        """
        pass
