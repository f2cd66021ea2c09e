"""Trades REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import get_settlement_service
from src.pm_clearing.application.schemas import (
    ExecuteTradeRequest,
    TradeResponse,
    TradeResultResponse,
)
from src.pm_clearing.application.service import SettlementService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, Pagination, clamp_take, success_response
from src.pm_gateway.auth.dependencies import AuthenticatedUser, get_current_user
from src.pm_gateway.middleware.rate_limit import client_identifier, rate_limit

router = APIRouter(prefix="/trades", tags=["trades"])


@router.get("", dependencies=[Depends(rate_limit("trades", 50))])
async def list_trades(
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    prompt_id: str | None = Query(None, alias="promptId"),
    user_id: str | None = Query(None, alias="userId"),
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1),
) -> ApiResponse:
    take = clamp_take(take)
    items, total = await service.list_trades(db, prompt_id, user_id, skip, take)
    return success_response(
        [TradeResponse.from_domain(t).to_wire() for t in items],
        Pagination(skip=skip, take=take, total=total),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("trades"))],
)
async def execute_trade(
    body: ExecuteTradeRequest,
    request: Request,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    outcome = await service.execute_trade(
        db,
        current_user.user_id,
        str(body.prompt_id),
        body.action,
        body.amount,
        body.price,
        origin=client_identifier(request),
    )
    data = TradeResultResponse(
        trade=TradeResponse.from_domain(outcome.trade),
        new_price=outcome.new_price,
    )
    return success_response(data.to_wire())
