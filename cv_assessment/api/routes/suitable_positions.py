"""
Suitable position routes: list, refresh, dismiss and quick-add.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth import verify_token
from ..dependencies import ServiceContainer, get_services
from ..models import PositionActionRequest, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/suitable-positions",
    tags=["suitable-positions"],
    dependencies=[Depends(verify_token)],
)


@router.get("")
async def list_positions(
    email: Optional[str] = Query(default=None),
    services: ServiceContainer = Depends(get_services),
):
    return [p.model_dump(mode="json") for p in services.suitable_positions.list_positions(email)]


@router.post("/refresh")
async def refresh_positions(services: ServiceContainer = Depends(get_services)):
    added = await services.suitable_positions.refresh()
    return {"added": [p.model_dump(mode="json") for p in added]}


@router.post("/dismiss", response_model=SuccessResponse)
async def dismiss_position(
    request: PositionActionRequest,
    services: ServiceContainer = Depends(get_services),
):
    services.suitable_positions.dismiss(request.candidate_email, request.session_id)
    return SuccessResponse(success=True)


@router.post("/quick-add")
async def quick_add(
    request: PositionActionRequest,
    services: ServiceContainer = Depends(get_services),
):
    report = await services.suitable_positions.quick_add(request.candidate_email, request.session_id)
    return report.to_dict()
