"""Breeding REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import get_settlement_service
from src.pm_clearing.application.schemas import (
    BreedingResponse,
    BreedingResultResponse,
    BreedRequest,
)
from src.pm_clearing.application.service import SettlementService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, Pagination, clamp_take, success_response
from src.pm_gateway.auth.dependencies import AuthenticatedUser, get_current_user
from src.pm_gateway.middleware.rate_limit import client_identifier, rate_limit
from src.pm_prompt.application.schemas import EvaluationResponse, PromptResponse

router = APIRouter(prefix="/breeding", tags=["breeding"])


@router.get("", dependencies=[Depends(rate_limit("breeding", 50))])
async def list_breedings(
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    user_id: str | None = Query(None, alias="userId"),
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1),
) -> ApiResponse:
    take = clamp_take(take)
    items, total = await service.list_breedings(db, user_id, skip, take)
    return success_response(
        [BreedingResponse.from_domain(e).to_wire() for e in items],
        Pagination(skip=skip, take=take, total=total),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("breeding"))],
)
async def breed(
    body: BreedRequest,
    request: Request,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    outcome = await service.breed(
        db,
        current_user.user_id,
        str(body.parent1_id),
        str(body.parent2_id),
        body.child_name,
        body.child_symbol,
        origin=client_identifier(request),
    )
    data = BreedingResultResponse(
        breeding=BreedingResponse.from_domain(outcome.event),
        child_prompt=PromptResponse.from_domain(outcome.child),
        evaluation=EvaluationResponse.from_domain(outcome.evaluation),
    )
    return success_response(data.to_wire())
