"""AI visibility endpoints: trigger a poll, read the 30-day overview."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_poller
from app.core.exceptions import ValidationError
from app.core.rate_limit import POLL_RATE_LIMIT, limiter
from app.db.postgres import get_db
from app.schemas.visibility import ErrorResponse, RunPollRequest, RunPollResponse, VisibilityOverview
from app.services.visibility_overview import get_visibility_overview
from app.services.visibility_poller import VisibilityPoller

router = APIRouter(tags=["visibility"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.post("/visibility/run", response_model=RunPollResponse, responses=_ERROR_RESPONSES)
@limiter.limit(POLL_RATE_LIMIT)
async def run_visibility_poll(
    request: Request,
    body: RunPollRequest,
    db: AsyncSession = Depends(get_db),
    poller: VisibilityPoller = Depends(get_poller),
):
    """Poll every AI engine for every active prompt of the brand, then refresh today's snapshots.

    Runs synchronously: the response is sent once the poll and aggregation are done.
    """
    if body.brand_id is None:
        raise ValidationError("Missing brandId")

    result = await poller.run_poll(db, body.brand_id)
    return RunPollResponse(new_answers=result.new_answers, failed_fetches=result.failed_fetches)


@router.get(
    "/brands/{brand_id}/visibility/overview",
    response_model=VisibilityOverview,
    responses={404: {"model": ErrorResponse}},
)
async def visibility_overview(brand_id: int, db: AsyncSession = Depends(get_db)):
    """Share of voice over the trailing window: headline, per-engine chart, daily trend, prompts."""
    return await get_visibility_overview(db, brand_id, window_days=settings.overview_window_days)
