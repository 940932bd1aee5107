import logging

from fastapi import APIRouter, Depends

from app.controller import InspectionController
from app.schemas.photo import ProjectInfoSchema
from core.dependencies import get_controller

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=ProjectInfoSchema)
async def get_project_info(controller: InspectionController = Depends(get_controller)):
    return ProjectInfoSchema.from_model(controller.state.project_info)


@router.put("", response_model=ProjectInfoSchema)
async def set_project_info(
    req: ProjectInfoSchema,
    controller: InspectionController = Depends(get_controller),
):
    state = controller.set_project_info(req.to_model())
    logger.info(f"Project set: {state.project_info.project_name!r} (ready={state.project_info.is_ready})")
    return ProjectInfoSchema.from_model(state.project_info)
