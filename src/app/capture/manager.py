import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from app.capture import exif_tags, overlay
from app.capture.recovery import MetadataRecoveryReader
from app.common.errors import CapturePreparationError
from app.models.photo import AppPreferences, PhotoMetadata, PhotoRecord
from app.schemas.enum import UploadState, UploadTarget
from app.utils.performance import PerformanceMonitor
from core.config import configs

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PhotoCaptureManager:
    """
    Turns raw captures in the pictures directory into finalized, tagged
    photos and reads them back after a restart.
    """

    def __init__(self, pictures_dir: Optional[Path] = None, jpeg_quality: Optional[int] = None):
        self.pictures_dir = Path(pictures_dir) if pictures_dir is not None else configs.pictures_dir
        self.jpeg_quality = jpeg_quality or configs.JPEG_QUALITY
        self.reader = MetadataRecoveryReader(self.pictures_dir)

    async def prepare_output_file(self, timestamp: datetime) -> Path:
        """Returns ``IMG_<epoch millis>.jpg`` inside the pictures directory."""

        def prepare_sync() -> Path:
            try:
                self.pictures_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise CapturePreparationError(f"Unable to create pictures directory {self.pictures_dir}: {e}") from e
            millis = (timestamp - EPOCH) // timedelta(milliseconds=1)
            return (self.pictures_dir / f"IMG_{millis}.jpg").resolve()

        return await asyncio.to_thread(prepare_sync)

    async def finalize(
        self,
        file: Path,
        metadata: PhotoMetadata,
        preferences: AppPreferences,
        upload_target: UploadTarget,
    ) -> PhotoRecord:
        """
        Stamps the overlay, writes the EXIF tags in place and returns the record.

        Overlay failures are logged and skipped; tag failures raise TagWriteError.
        """
        file = Path(file)
        monitor = PerformanceMonitor()
        monitor.start()

        await asyncio.to_thread(overlay.apply_overlay, file, metadata, self.jpeg_quality)
        await asyncio.to_thread(exif_tags.write_tags, file, metadata)

        monitor.stop()
        monitor.report("finalize")

        location = metadata.location
        record = PhotoRecord(
            id=file.stem,
            file_path=str(file.resolve()),
            timestamp=metadata.timestamp,
            latitude=location.latitude if location else None,
            longitude=location.longitude if location else None,
            altitude_meters=location.altitude if location else None,
            compass_bearing=metadata.bearing,
            # Auto upload, when enabled, moves the record on from here
            upload_state=UploadState.PENDING,
            upload_target=upload_target,
            project_info=metadata.project_info,
        )
        logger.info(
            f"📸 Finalized {record.file_name} (target={upload_target.value}, "
            f"auto_upload={preferences.auto_upload_enabled})"
        )
        return record

    async def list_recovered_photos(self) -> list[PhotoRecord]:
        return await self.reader.list_recovered_photos()
