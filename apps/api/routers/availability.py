"""Provider availability block endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from apps.api.deps import get_scheduling_service
from domain.models import AvailabilityBlockCreate, AvailabilityBlockRecord
from services.scheduling_service import SchedulingService


router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("/blocks", response_model=AvailabilityBlockRecord, status_code=status.HTTP_201_CREATED)
def create_block(
    request: AvailabilityBlockCreate,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    Add a recurring, one-off or blocked window for a provider.

    Recurring blocks take day_of_week (0 = Sunday); the other kinds take
    specific_date.
    """
    return service.create_block(request)


@router.get("/blocks", response_model=List[AvailabilityBlockRecord])
def list_blocks(
    provider_id: str = Query(..., description="Provider whose blocks to list"),
    include_inactive: bool = Query(False, description="Include deactivated blocks"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.list_provider_blocks(provider_id, include_inactive=include_inactive)


@router.post("/blocks/{block_id}/deactivate", response_model=AvailabilityBlockRecord)
def deactivate_block(
    block_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.deactivate_block(block_id)
