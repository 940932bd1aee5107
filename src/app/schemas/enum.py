from enum import Enum


class UploadState(str, Enum):
    PENDING = "PENDING"
    UPLOADING = "UPLOADING"
    UPLOADED = "UPLOADED"
    FAILED = "FAILED"


class UploadTarget(str, Enum):
    MANUAL = "MANUAL"
    GOOGLE_DRIVE = "GOOGLE_DRIVE"
    CORPORATE_SERVER = "CORPORATE_SERVER"
