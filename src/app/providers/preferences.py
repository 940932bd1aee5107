import dataclasses
import logging
from pathlib import Path
from typing import Optional

from app.models.photo import AppPreferences
from app.schemas.enum import UploadTarget
from app.utils.fileIO import read_file, write_file
from core.config import configs

logger = logging.getLogger(__name__)

# key on disk -> AppPreferences field
KEYS = {
    "auto_upload": "auto_upload_enabled",
    "upload_target": "upload_target",
    "wifi_only": "wifi_only_uploads",
    "keep_local_copy": "keep_local_copy",
    "include_compass": "include_compass_direction",
}


class PreferencesRepository:
    """JSON-file backed store of AppPreferences."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else configs.preferences_path

    async def load(self) -> AppPreferences:
        try:
            raw = await read_file(str(self.path))
        except FileNotFoundError:
            return AppPreferences()
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable preferences file {self.path}, using defaults: {e}")
            return AppPreferences()
        if not isinstance(raw, dict):
            return AppPreferences()
        return self._to_model(raw)

    async def save(self, preferences: AppPreferences) -> None:
        data = {}
        for key, field_name in KEYS.items():
            value = getattr(preferences, field_name)
            data[key] = value.value if isinstance(value, UploadTarget) else value
        await write_file(str(self.path), data)

    async def update(self, **changes) -> AppPreferences:
        updated = dataclasses.replace(await self.load(), **changes)
        await self.save(updated)
        return updated

    def _to_model(self, raw: dict) -> AppPreferences:
        defaults = AppPreferences()
        values = {}
        for key, field_name in KEYS.items():
            if key not in raw:
                continue
            if field_name == "upload_target":
                try:
                    values[field_name] = UploadTarget(raw[key])
                except ValueError:
                    values[field_name] = UploadTarget.MANUAL
            elif isinstance(raw[key], bool):
                values[field_name] = raw[key]
        return dataclasses.replace(defaults, **values)
