import asyncio
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from app.capture.recovery import MetadataRecoveryReader
from app.models.photo import PhotoRecord

logger = logging.getLogger(__name__)


class PhotoRegistry:
    """
    In-memory index of photo records, most recently touched first.

    It owns no persistence: ``reload`` rebuilds it from the pictures directory.
    """

    def __init__(self, reader: MetadataRecoveryReader):
        self.reader = reader
        self._records: Dict[str, PhotoRecord] = {}
        self._order: List[str] = []

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, photo_id: str) -> bool:
        return photo_id in self._records

    def list(self) -> List[PhotoRecord]:
        return [self._records[photo_id] for photo_id in self._order]

    def get(self, photo_id: str) -> Optional[PhotoRecord]:
        return self._records.get(photo_id)

    def upsert_front(self, record: PhotoRecord) -> None:
        if record.id in self._records:
            self._order.remove(record.id)
        self._records[record.id] = record
        self._order.insert(0, record.id)

    def replace(self, photo_id: str, transform: Callable[[PhotoRecord], PhotoRecord]) -> Optional[PhotoRecord]:
        """Applies ``transform`` in place of the record; no-op when the id is unknown."""
        current = self._records.get(photo_id)
        if current is None:
            logger.debug(f"Replace skipped, {photo_id} is no longer registered")
            return None
        updated = transform(current)
        self._records[photo_id] = updated
        return updated

    async def remove(self, photo_id: str) -> Optional[PhotoRecord]:
        record = self._records.pop(photo_id, None)
        if record is None:
            return None
        self._order.remove(photo_id)

        try:
            await asyncio.to_thread(Path(record.file_path).unlink, True)
            logger.info(f"🗑️ Removed {record.file_name}")
        except OSError as e:
            logger.warning(f"Could not delete {record.file_path}: {e}")
        return record

    async def reload(self) -> List[PhotoRecord]:
        records = await self.reader.list_recovered_photos()
        self._records = {r.id: r for r in records}
        # ids are file stems in one directory, so they are already unique
        self._order = [r.id for r in records]
        return self.list()
