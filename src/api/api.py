from api.endpoints import captures, photos, preferences, project, state
from fastapi import APIRouter

api_router = APIRouter()
api_router.include_router(state.router, prefix="/state", tags=["Controller State"])
api_router.include_router(project.router, prefix="/project", tags=["Project Details"])
api_router.include_router(preferences.router, prefix="/preferences", tags=["Upload Preferences"])
api_router.include_router(captures.router, prefix="/captures", tags=["Capture & Finalize"])
api_router.include_router(photos.router, prefix="/photos", tags=["Photos & Uploads"])
