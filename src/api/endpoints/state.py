from fastapi import APIRouter, Depends

from app.controller import AppState, InspectionController
from app.schemas.photo import AppStateResponse, PhotoResponse, PreferencesSchema, ProjectInfoSchema
from core.dependencies import get_controller

router = APIRouter()


def to_state_response(state: AppState) -> AppStateResponse:
    return AppStateResponse(
        project_info=ProjectInfoSchema.from_model(state.project_info),
        photos=[PhotoResponse.from_record(p) for p in state.photos],
        is_capturing=state.is_capturing,
        capture_error=state.capture_error,
        preferences=PreferencesSchema.from_model(state.preferences),
    )


@router.get("", response_model=AppStateResponse)
async def get_state(controller: InspectionController = Depends(get_controller)):
    return to_state_response(controller.state)


@router.delete("/error", response_model=AppStateResponse)
async def dismiss_capture_error(controller: InspectionController = Depends(get_controller)):
    return to_state_response(controller.clear_capture_error())
