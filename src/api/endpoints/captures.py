import logging
import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Request, Response

from api.endpoints.state import to_state_response
from app.controller import CapturePreparation, InspectionController
from app.schemas.photo import (
    AppStateResponse,
    CaptureFailedRequest,
    CapturePreparationResponse,
    CapturePrepareRequest,
    TaskResponse,
)
from app.utils.fileIO import write_bytes
from core.dependencies import get_controller

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_preparation(controller: InspectionController, photo_id: str) -> CapturePreparation:
    preparation = controller.get_preparation(photo_id)
    if preparation is None:
        raise HTTPException(status_code=404, detail=f"No prepared capture with id {photo_id}")
    return preparation


@router.post("", response_model=CapturePreparationResponse, status_code=201)
async def prepare_capture(
    req: Optional[CapturePrepareRequest] = Body(None),
    controller: InspectionController = Depends(get_controller),
):
    """
    Reserve an output file for a new capture.
    """
    location = req.location.to_model() if req and req.location else None
    preparation = await controller.prepare_capture(location)
    if preparation is None:
        raise HTTPException(status_code=409, detail=controller.state.capture_error)

    return CapturePreparationResponse(
        id=preparation.id,
        file_path=str(preparation.file),
        timestamp=preparation.metadata.timestamp,
        upload_target=preparation.upload_target,
        has_location=preparation.metadata.location is not None,
    )


@router.put("/{photo_id}/image", status_code=204)
async def store_raw_image(
    photo_id: str,
    request: Request,
    controller: InspectionController = Depends(get_controller),
):
    """
    Write the raw JPEG produced by the camera to the prepared path.
    """
    preparation = _get_preparation(controller, photo_id)
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty image body")
    await write_bytes(str(preparation.file), data)
    return Response(status_code=204)


@router.post("/{photo_id}/finalize", response_model=TaskResponse, status_code=202)
async def finalize_capture(
    photo_id: str,
    background_tasks: BackgroundTasks,
    controller: InspectionController = Depends(get_controller),
):
    """
    Stamp, tag and register the capture in the background (auto upload included).
    """
    preparation = _get_preparation(controller, photo_id)
    if not preparation.file.is_file():
        raise HTTPException(status_code=409, detail=f"Raw image for {photo_id} has not been written yet")

    task_id = str(uuid.uuid4())
    logger.info(f"📥 [Task {task_id}] Finalize accepted for {photo_id}", extra={"task_id": task_id, "photo_id": photo_id})
    background_tasks.add_task(controller.finalize_capture, preparation)

    return TaskResponse(
        task_id=task_id,
        photo_id=photo_id,
        message="Finalize started in background.",
    )


@router.post("/{photo_id}/fail", response_model=AppStateResponse)
async def capture_failed(
    photo_id: str,
    req: CaptureFailedRequest,
    controller: InspectionController = Depends(get_controller),
):
    return to_state_response(controller.on_capture_failed(photo_id, req.message))
