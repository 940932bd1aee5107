import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import Optional

from app.models.photo import PhotoRecord
from app.providers.network import NetworkStatusProvider
from app.schemas.enum import UploadState, UploadTarget
from app.utils.performance import PerformanceMonitor
from core.config import configs
from core.storage.base import StorageService
from core.storage.factory import get_upload_store

logger = logging.getLogger(__name__)


class PhotoUploader:
    """
    Single-attempt transfer of one photo into the store of its upload target.

    No per-record locking happens here: callers must keep at most one attempt
    in flight per record id.
    """

    def __init__(self, network: NetworkStatusProvider, uploads_root: Optional[Path] = None):
        self.network = network
        self.uploads_root = Path(uploads_root) if uploads_root is not None else configs.uploads_root

    def get_store(self, target: UploadTarget) -> StorageService:
        return get_upload_store(target, self.uploads_root)

    async def attempt_transfer(
        self,
        record: PhotoRecord,
        target: UploadTarget,
        wifi_only: bool,
        keep_local_copy: bool,
    ) -> PhotoRecord:
        if wifi_only and not await self.network.is_wifi_connected():
            logger.info(f"⏸️ Deferring upload for {record.file_name}: Wi-Fi required")
            return dataclasses.replace(record, upload_state=UploadState.PENDING)

        source = Path(record.file_path)
        monitor = PerformanceMonitor()
        monitor.start()
        try:
            store = self.get_store(target)
            stored_path = await store.save_file(source, source.name)
        except Exception as e:
            logger.error(f"❌ Failed to copy {source} for upload to {target.value}: {e}")
            return dataclasses.replace(record, upload_state=UploadState.FAILED)
        monitor.stop()
        monitor.report(f"upload:{target.value}")

        if not keep_local_copy and target != UploadTarget.MANUAL:
            await self._delete_source(source)

        logger.info(f"✅ Uploaded {record.file_name} to {target.value}: {store.get_url(stored_path)}")
        return dataclasses.replace(record, upload_state=UploadState.UPLOADED)

    async def _delete_source(self, source: Path) -> None:
        try:
            await asyncio.to_thread(source.unlink, True)
            logger.debug(f"Local copy removed after upload: {source}")
        except OSError as e:
            logger.warning(f"Uploaded but could not remove local copy {source}: {e}")
