import logging
from pathlib import Path
from typing import Optional

import aioshutil

from .base import StorageService

logger = logging.getLogger(__name__)


class LocalStorageService(StorageService):
    """Implementation of StorageService for a local staging directory."""

    def __init__(self, media_root: Path):
        self.media_root = Path(media_root)
        self.media_root.mkdir(parents=True, exist_ok=True)
        logger.debug(f"LocalStorageService initialized with base path {self.media_root}")

    async def save_file(self, source: Path, path: str) -> str:
        full_path = self.media_root / path
        full_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Copying {source} to local storage: {full_path}")
        # copyfile truncates an existing destination before writing
        await aioshutil.copyfile(str(source), str(full_path))

        logger.info(f"Successfully saved file: {full_path}")
        return path

    def get_url(self, path: str) -> Optional[str]:
        full_path = self.media_root / path
        if not full_path.exists():
            return None
        return str(full_path.resolve())
