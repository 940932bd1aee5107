from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Field Inspection Photo Worker"
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"

    # Storage
    STORAGE_TYPE: str = "local"  # only local upload stores are implemented
    MEDIA_ROOT: str = "./media"
    PICTURES_DIR_NAME: str = "pictures"
    UPLOADS_DIR_NAME: str = "uploads"
    PREFERENCES_FILE: str = "inspection_preferences.json"

    # Encoding
    JPEG_QUALITY: int = 92

    # Answer of the static network adapter (no reachability sensing on a server)
    WIFI_CONNECTED: bool = True

    class Config:
        env_file = ".env"

    @property
    def pictures_dir(self) -> Path:
        return Path(self.MEDIA_ROOT) / self.PICTURES_DIR_NAME

    @property
    def uploads_root(self) -> Path:
        return Path(self.MEDIA_ROOT) / self.UPLOADS_DIR_NAME

    @property
    def preferences_path(self) -> Path:
        return Path(self.MEDIA_ROOT) / self.PREFERENCES_FILE


configs = Settings()
