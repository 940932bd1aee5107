from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.api import api_router
from app.capture.manager import PhotoCaptureManager
from app.controller import InspectionController
from app.providers.location import StaticLocationProvider
from app.providers.network import StaticNetworkStatus
from app.providers.preferences import PreferencesRepository
from app.upload.uploader import PhotoUploader
from core.config import configs
from core.logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


def build_controller() -> InspectionController:
    return InspectionController(
        capture_manager=PhotoCaptureManager(configs.pictures_dir, configs.JPEG_QUALITY),
        uploader=PhotoUploader(StaticNetworkStatus(), configs.uploads_root),
        location_provider=StaticLocationProvider(),
        preferences_repository=PreferencesRepository(configs.preferences_path),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🔧 Rebuilding photo registry from storage...")
    controller = getattr(app.state, "controller", None) or build_controller()
    app.state.controller = controller
    state = await controller.start()
    logger.info(f"✅ Registry ready with {len(state.photos)} photos.")
    yield
    # Shutdown
    logger.info("🛑 Shutting down inspection worker...")

app = FastAPI(
    title=configs.PROJECT_NAME,
    description="Field inspection photo capture and upload pipeline",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS (Allow all for development env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")

@app.get("/")
async def root():
    return {"message": "Field Inspection Photo Worker Running"}

@app.get("/health")
async def health_check():
    return {"status": "ok"}
