import asyncio
import logging
from pathlib import Path
from typing import Optional

from app.capture import exif_tags
from app.models.photo import PhotoRecord
from app.schemas.enum import UploadState, UploadTarget

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = ".jpg"


class MetadataRecoveryReader:
    """Rebuilds PhotoRecords from the EXIF tags of the files in a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def list_image_paths(self) -> list[Path]:
        """Eligible files, newest first by modification time."""
        if not self.directory.exists():
            logger.debug(f"Pictures directory does not exist yet: {self.directory}")
            return []
        stamped = []
        for p in self.directory.iterdir():
            if p.suffix.lower() != IMAGE_EXTENSION:
                continue
            try:
                if p.is_file():
                    stamped.append((p.stat().st_mtime, p))
            except OSError:
                # removed while scanning
                continue
        stamped.sort(key=lambda item: item[0], reverse=True)
        return [p for _, p in stamped]

    async def list_recovered_photos(self) -> list[PhotoRecord]:
        return await asyncio.to_thread(self._scan_sync)

    def _scan_sync(self) -> list[PhotoRecord]:
        records = []
        skipped = 0
        for path in self.list_image_paths():
            record = self.read_record(path)
            if record is None:
                skipped += 1
                continue
            records.append(record)

        logger.info(f"Recovered {len(records)} photos from {self.directory} ({skipped} skipped)")
        return records

    def read_record(self, path: Path) -> Optional[PhotoRecord]:
        try:
            exif_dict = exif_tags.read_tags(path)
            tags = exif_tags.decode_tags(exif_dict)
            timestamp = tags["timestamp"] or exif_tags.file_mtime(path)
        except Exception as e:
            logger.error(f"Failed to parse EXIF for {path}: {e}")
            return None

        # Upload provenance is not stored in the file; every recovered photo starts over
        return PhotoRecord(
            id=path.stem,
            file_path=str(path.resolve()),
            timestamp=timestamp,
            latitude=tags["latitude"],
            longitude=tags["longitude"],
            altitude_meters=tags["altitude"],
            compass_bearing=tags["bearing"],
            upload_state=UploadState.PENDING,
            upload_target=UploadTarget.MANUAL,
            project_info=tags["project_info"],
        )
