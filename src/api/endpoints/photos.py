import logging
import uuid
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response

from app.controller import InspectionController
from app.schemas.photo import PhotoResponse, TaskResponse
from app.upload.state import can_auto_upload
from core.dependencies import get_controller

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=List[PhotoResponse])
async def list_photos(controller: InspectionController = Depends(get_controller)):
    return [PhotoResponse.from_record(p) for p in controller.state.photos]


@router.post("/refresh", response_model=List[PhotoResponse])
async def refresh_gallery(controller: InspectionController = Depends(get_controller)):
    """
    Rebuild the gallery from the pictures directory.
    """
    state = await controller.refresh_gallery()
    return [PhotoResponse.from_record(p) for p in state.photos]


@router.get("/{photo_id}", response_model=PhotoResponse)
async def get_photo(photo_id: str, controller: InspectionController = Depends(get_controller)):
    record = controller.registry.get(photo_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Photo {photo_id} not found")
    return PhotoResponse.from_record(record)


@router.delete("/{photo_id}", status_code=204)
async def remove_photo(photo_id: str, controller: InspectionController = Depends(get_controller)):
    removed = await controller.remove_photo(photo_id)
    if removed is None:
        raise HTTPException(status_code=404, detail=f"Photo {photo_id} not found")
    return Response(status_code=204)


@router.post("/{photo_id}/retry", response_model=TaskResponse, status_code=202)
async def retry_upload(
    photo_id: str,
    background_tasks: BackgroundTasks,
    controller: InspectionController = Depends(get_controller),
):
    """
    Submit another upload attempt for a pending or failed photo.
    """
    record = controller.registry.get(photo_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Photo {photo_id} not found")
    if not can_auto_upload(record):
        raise HTTPException(
            status_code=409,
            detail=f"Photo {photo_id} cannot be retried ({record.upload_target.value}, {record.upload_state.value})",
        )

    task_id = str(uuid.uuid4())
    logger.info(
        f"📥 [Task {task_id}] Retry accepted for {photo_id} -> {record.upload_target.value}",
        extra={"task_id": task_id, "photo_id": photo_id, "upload_target": record.upload_target.value},
    )
    background_tasks.add_task(controller.retry_upload, photo_id)

    return TaskResponse(
        task_id=task_id,
        photo_id=photo_id,
        message="Upload retry started in background.",
    )
