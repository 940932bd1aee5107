from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.photo import AppPreferences, GeoFix, PhotoRecord, ProjectInfo
from app.schemas.enum import UploadState, UploadTarget


class ProjectInfoSchema(BaseModel):
    project_name: str = ""
    client_name: str = ""
    valuer_name: str = ""
    company_name: str = ""

    @classmethod
    def from_model(cls, info: ProjectInfo) -> "ProjectInfoSchema":
        return cls(
            project_name=info.project_name,
            client_name=info.client_name,
            valuer_name=info.valuer_name,
            company_name=info.company_name,
        )

    def to_model(self) -> ProjectInfo:
        return ProjectInfo(**self.model_dump())


class GeoFixSchema(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    altitude: Optional[float] = None
    bearing: Optional[float] = Field(None, allow_inf_nan=False, description="Degrees clockwise from true north")

    def to_model(self) -> GeoFix:
        return GeoFix(**self.model_dump())


class PhotoResponse(BaseModel):
    id: str
    file_path: str
    file_name: str
    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude_meters: Optional[float] = None
    compass_bearing: Optional[float] = None
    upload_state: UploadState
    upload_target: UploadTarget
    project_info: ProjectInfoSchema

    @classmethod
    def from_record(cls, record: PhotoRecord) -> "PhotoResponse":
        return cls(
            id=record.id,
            file_path=record.file_path,
            file_name=record.file_name,
            timestamp=record.timestamp,
            latitude=record.latitude,
            longitude=record.longitude,
            altitude_meters=record.altitude_meters,
            compass_bearing=record.compass_bearing,
            upload_state=record.upload_state,
            upload_target=record.upload_target,
            project_info=ProjectInfoSchema.from_model(record.project_info),
        )


class PreferencesSchema(BaseModel):
    auto_upload_enabled: bool = False
    upload_target: UploadTarget = UploadTarget.MANUAL
    wifi_only_uploads: bool = True
    keep_local_copy: bool = True
    include_compass_direction: bool = False

    @classmethod
    def from_model(cls, preferences: AppPreferences) -> "PreferencesSchema":
        return cls(
            auto_upload_enabled=preferences.auto_upload_enabled,
            upload_target=preferences.upload_target,
            wifi_only_uploads=preferences.wifi_only_uploads,
            keep_local_copy=preferences.keep_local_copy,
            include_compass_direction=preferences.include_compass_direction,
        )


class PreferencesUpdate(BaseModel):
    auto_upload_enabled: Optional[bool] = None
    upload_target: Optional[UploadTarget] = None
    wifi_only_uploads: Optional[bool] = None
    keep_local_copy: Optional[bool] = None
    include_compass_direction: Optional[bool] = None


class AppStateResponse(BaseModel):
    project_info: ProjectInfoSchema
    photos: List[PhotoResponse]
    is_capturing: bool
    capture_error: Optional[str] = None
    preferences: PreferencesSchema


class CapturePrepareRequest(BaseModel):
    location: Optional[GeoFixSchema] = Field(None, description="Fix from the device; falls back to the server provider")


class CapturePreparationResponse(BaseModel):
    id: str
    file_path: str
    timestamp: datetime
    upload_target: UploadTarget
    has_location: bool


class CaptureFailedRequest(BaseModel):
    message: Optional[str] = None


class TaskResponse(BaseModel):
    task_id: str
    photo_id: str
    status: str = "processing"
    message: str
