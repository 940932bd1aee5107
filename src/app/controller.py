import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional, Set, Tuple

from app.capture.manager import PhotoCaptureManager
from app.common.errors import CapturePreparationError
from app.models.photo import AppPreferences, GeoFix, PhotoMetadata, PhotoRecord, ProjectInfo
from app.providers.location import LocationProvider
from app.providers.preferences import PreferencesRepository
from app.registry import PhotoRegistry
from app.schemas.enum import UploadTarget
from app.upload.state import can_auto_upload, mark_uploading
from app.upload.uploader import PhotoUploader

logger = logging.getLogger(__name__)

PROJECT_NOT_READY_MESSAGE = "Please complete project and appraiser details before capturing."


@dataclass(frozen=True)
class AppState:
    project_info: ProjectInfo = field(default_factory=ProjectInfo)
    photos: Tuple[PhotoRecord, ...] = ()
    is_capturing: bool = False
    capture_error: Optional[str] = None
    preferences: AppPreferences = field(default_factory=AppPreferences)


@dataclass(frozen=True)
class CapturePreparation:
    file: Path
    metadata: PhotoMetadata
    upload_target: UploadTarget

    @property
    def id(self) -> str:
        return self.file.stem


class InspectionController:
    """
    Single owner of the capture workflow.

    The observable state is an immutable AppState snapshot replaced through
    ``_update``. Transfers are limited to one in flight per photo id.
    """

    def __init__(
        self,
        capture_manager: PhotoCaptureManager,
        uploader: PhotoUploader,
        location_provider: LocationProvider,
        preferences_repository: PreferencesRepository,
        registry: Optional[PhotoRegistry] = None,
    ):
        self.capture_manager = capture_manager
        self.uploader = uploader
        self.location_provider = location_provider
        self.preferences_repository = preferences_repository
        self.registry = registry or PhotoRegistry(capture_manager.reader)

        self._state = AppState()
        self._preparations: Dict[str, CapturePreparation] = {}
        self._in_flight: Set[str] = set()

    @property
    def state(self) -> AppState:
        return self._state

    def _update(self, **changes) -> AppState:
        self._state = dataclasses.replace(self._state, **changes)
        return self._state

    def _sync_photos(self) -> AppState:
        return self._update(photos=tuple(self.registry.list()))

    async def start(self) -> AppState:
        """Loads preferences and rebuilds the gallery from disk."""
        self._update(preferences=await self.preferences_repository.load())
        await self.refresh_gallery()
        return self._state

    # -- project ----------------------------------------------------------
    def set_project_info(self, info: ProjectInfo) -> AppState:
        return self._update(project_info=info)

    def update_project_info(self, block: Callable[[ProjectInfo], ProjectInfo]) -> AppState:
        return self._update(project_info=block(self._state.project_info))

    def clear_capture_error(self) -> AppState:
        return self._update(capture_error=None)

    async def refresh_gallery(self) -> AppState:
        await self.registry.reload()
        return self._sync_photos()

    # -- capture ----------------------------------------------------------
    def get_preparation(self, photo_id: str) -> Optional[CapturePreparation]:
        return self._preparations.get(photo_id)

    async def prepare_capture(self, location: Optional[GeoFix] = None) -> Optional[CapturePreparation]:
        info = self._state.project_info
        try:
            if not info.is_ready:
                raise CapturePreparationError(PROJECT_NOT_READY_MESSAGE)
            self._update(is_capturing=True)

            timestamp = datetime.now(timezone.utc)
            file = await self.capture_manager.prepare_output_file(timestamp)
            if location is None:
                location = await self.location_provider.current_location()
            preferences = self._state.preferences
            metadata = PhotoMetadata(
                timestamp=timestamp,
                project_info=info,
                location=location,
                include_compass=preferences.include_compass_direction,
            )
            target = preferences.upload_target if preferences.auto_upload_enabled else UploadTarget.MANUAL
        except CapturePreparationError as e:
            logger.warning(f"Capture refused: {e}")
            self._update(capture_error=str(e), is_capturing=False)
            return None
        except Exception as e:
            logger.error(f"Failed to prepare capture: {e}")
            self._update(capture_error=str(e) or "Unable to prepare camera capture", is_capturing=False)
            return None

        preparation = CapturePreparation(file=file, metadata=metadata, upload_target=target)
        self._preparations[preparation.id] = preparation
        logger.info(f"📥 Capture prepared: {file.name} (target={target.value})")
        return preparation

    def on_capture_failed(self, photo_id: Optional[str] = None, message: Optional[str] = None) -> AppState:
        if photo_id is not None:
            self._preparations.pop(photo_id, None)
        return self._update(is_capturing=False, capture_error=message or "Capture failed")

    async def finalize_capture(self, preparation: CapturePreparation) -> Optional[PhotoRecord]:
        preferences = self._state.preferences
        record = None
        try:
            record = await self.capture_manager.finalize(
                preparation.file,
                preparation.metadata,
                preferences,
                preparation.upload_target,
            )
        except Exception as e:
            logger.error(f"💥 Failed to process captured photo {preparation.file}: {e}")
            self._update(capture_error=str(e) or "Failed to process captured photo")
            await asyncio.to_thread(_safe_delete, preparation.file)
            return None
        finally:
            self._preparations.pop(preparation.id, None)
            self._update(is_capturing=False)

        if preferences.auto_upload_enabled and can_auto_upload(record):
            self.registry.upsert_front(mark_uploading(record))
            self._sync_photos()
            return await self._transfer(record.id, preferences)

        self.registry.upsert_front(record)
        self._sync_photos()
        return record

    # -- upload -----------------------------------------------------------
    async def retry_upload(self, photo_id: str) -> Optional[PhotoRecord]:
        record = self.registry.get(photo_id)
        if record is None:
            return None
        if not can_auto_upload(record):
            logger.debug(f"Retry ignored for {photo_id} ({record.upload_target.value}, {record.upload_state.value})")
            return None
        if photo_id in self._in_flight:
            logger.debug(f"Retry ignored for {photo_id}, a transfer is already running")
            return None

        self.registry.replace(photo_id, mark_uploading)
        self._sync_photos()
        return await self._transfer(photo_id, self._state.preferences)

    async def _transfer(self, photo_id: str, preferences: AppPreferences) -> Optional[PhotoRecord]:
        record = self.registry.get(photo_id)
        if record is None:
            return None

        self._in_flight.add(photo_id)
        try:
            updated = await self.uploader.attempt_transfer(
                record,
                record.upload_target,
                preferences.wifi_only_uploads,
                preferences.keep_local_copy,
            )
        finally:
            self._in_flight.discard(photo_id)

        # Dropped if the photo was removed while the transfer ran
        applied = self.registry.replace(photo_id, lambda _: updated)
        self._sync_photos()
        return applied

    async def remove_photo(self, photo_id: str) -> Optional[PhotoRecord]:
        removed = await self.registry.remove(photo_id)
        self._sync_photos()
        return removed

    # -- preferences ------------------------------------------------------
    async def _update_preferences(self, **changes) -> AppState:
        preferences = await self.preferences_repository.update(**changes)
        return self._update(preferences=preferences)

    async def toggle_auto_upload(self, enabled: bool) -> AppState:
        return await self._update_preferences(auto_upload_enabled=enabled)

    async def set_upload_target(self, target: UploadTarget) -> AppState:
        return await self._update_preferences(upload_target=target)

    async def set_wifi_only_uploads(self, enabled: bool) -> AppState:
        return await self._update_preferences(wifi_only_uploads=enabled)

    async def set_keep_local_copy(self, enabled: bool) -> AppState:
        return await self._update_preferences(keep_local_copy=enabled)

    async def set_include_compass(self, enabled: bool) -> AppState:
        return await self._update_preferences(include_compass_direction=enabled)


def _safe_delete(path: Path) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not delete partial capture {path}: {e}")
