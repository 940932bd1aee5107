from .base import StorageService
from .local import LocalStorageService
from .factory import get_upload_store

__all__ = ["StorageService", "LocalStorageService", "get_upload_store"]
