from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from app.schemas.enum import UploadState, UploadTarget


@dataclass(frozen=True)
class ProjectInfo:
    project_name: str = ""
    client_name: str = ""
    valuer_name: str = ""
    company_name: str = ""

    @property
    def is_ready(self) -> bool:
        """A capture may only be prepared once project and appraiser are known."""
        return bool(self.project_name.strip()) and bool(self.valuer_name.strip())


@dataclass(frozen=True)
class AppPreferences:
    auto_upload_enabled: bool = False
    upload_target: UploadTarget = UploadTarget.MANUAL
    wifi_only_uploads: bool = True
    keep_local_copy: bool = True
    include_compass_direction: bool = False


@dataclass(frozen=True)
class GeoFix:
    latitude: float
    longitude: float
    altitude: Optional[float] = None
    bearing: Optional[float] = None  # degrees clockwise from true north


@dataclass(frozen=True)
class PhotoMetadata:
    timestamp: datetime
    project_info: ProjectInfo
    location: Optional[GeoFix] = None
    include_compass: bool = False

    @property
    def bearing(self) -> Optional[float]:
        """Bearing to stamp in [0, 360), or None when compass output is off or unavailable."""
        if not self.include_compass or self.location is None or self.location.bearing is None:
            return None
        return self.location.bearing % 360


@dataclass(frozen=True)
class PhotoRecord:
    id: str
    file_path: str
    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude_meters: Optional[float] = None
    compass_bearing: Optional[float] = None
    upload_state: UploadState = UploadState.PENDING
    upload_target: UploadTarget = UploadTarget.MANUAL
    project_info: ProjectInfo = field(default_factory=ProjectInfo)

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name
