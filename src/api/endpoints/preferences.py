from fastapi import APIRouter, Depends

from app.controller import InspectionController
from app.schemas.photo import PreferencesSchema, PreferencesUpdate
from core.dependencies import get_controller

router = APIRouter()


@router.get("", response_model=PreferencesSchema)
async def get_preferences(controller: InspectionController = Depends(get_controller)):
    return PreferencesSchema.from_model(controller.state.preferences)


@router.patch("", response_model=PreferencesSchema)
async def update_preferences(
    req: PreferencesUpdate,
    controller: InspectionController = Depends(get_controller),
):
    if req.auto_upload_enabled is not None:
        await controller.toggle_auto_upload(req.auto_upload_enabled)
    if req.upload_target is not None:
        await controller.set_upload_target(req.upload_target)
    if req.wifi_only_uploads is not None:
        await controller.set_wifi_only_uploads(req.wifi_only_uploads)
    if req.keep_local_copy is not None:
        await controller.set_keep_local_copy(req.keep_local_copy)
    if req.include_compass_direction is not None:
        await controller.set_include_compass(req.include_compass_direction)
    return PreferencesSchema.from_model(controller.state.preferences)
