from fastapi import Request

from app.controller import InspectionController


def get_controller(request: Request) -> InspectionController:
    return request.app.state.controller
