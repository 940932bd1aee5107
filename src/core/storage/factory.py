import logging
from functools import lru_cache
from pathlib import Path

from app.schemas.enum import UploadTarget
from core.config import configs

from .base import StorageService
from .local import LocalStorageService

logger = logging.getLogger(__name__)

# One staging subdirectory per upload target under the uploads root
TARGET_DIRECTORIES = {
    UploadTarget.MANUAL: "manual",
    UploadTarget.GOOGLE_DRIVE: "google-drive",
    UploadTarget.CORPORATE_SERVER: "corporate-server",
}


class StorageFactory:
    @staticmethod
    def get_storage_service(target: UploadTarget, uploads_root: Path, service_type: str = "local") -> StorageService:
        logger.info(f"Creating storage service of type: {service_type} for target {target.value}")
        if service_type == "local":
            return LocalStorageService(media_root=Path(uploads_root) / TARGET_DIRECTORIES[target])
        else:
            raise ValueError(f"Unknown storage type: {service_type}")


@lru_cache()
def get_upload_store(target: UploadTarget, uploads_root: Path = None) -> StorageService:
    root = uploads_root if uploads_root is not None else configs.uploads_root
    storage_type = getattr(configs, "STORAGE_TYPE", "local")
    logger.debug(f"Getting upload store (cached). Target: {target.value}, Root: {root}")
    return StorageFactory.get_storage_service(target, root, storage_type)
