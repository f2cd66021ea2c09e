"""Prompts REST API — listing, creation, detail, leaderboard and execution."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.container import get_prompt_service
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, Pagination, clamp_take, success_response
from src.pm_gateway.auth.dependencies import AuthenticatedUser, get_current_user
from src.pm_gateway.middleware.rate_limit import client_identifier, rate_limit
from src.pm_prompt.application.schemas import CreatePromptRequest, ExecutePromptRequest
from src.pm_prompt.application.service import PromptApplicationService

router = APIRouter(prefix="/prompts", tags=["prompts"])

ServiceDep = Annotated[PromptApplicationService, Depends(get_prompt_service)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("", dependencies=[Depends(rate_limit("prompts"))])
async def list_prompts(
    service: ServiceDep,
    db: DbDep,
    category: str | None = Query(None),
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1),
) -> ApiResponse:
    take = clamp_take(take)
    items, total = await service.list_prompts(db, category, skip, take)
    return success_response(
        [p.to_wire() for p in items],
        Pagination(skip=skip, take=take, total=total),
    )


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("prompts", 10))],
)
async def create_prompt(
    body: CreatePromptRequest,
    request: Request,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    data = await service.create_prompt(
        db,
        current_user.user_id,
        body.title,
        body.description,
        body.category,
        origin=client_identifier(request),
    )
    return success_response(data.to_wire())


@router.get("/leaderboard", dependencies=[Depends(rate_limit("prompts"))])
async def leaderboard(service: ServiceDep, db: DbDep) -> ApiResponse:
    entries = await service.leaderboard(db)
    return success_response([e.to_wire() for e in entries])


@router.get("/{prompt_id}", dependencies=[Depends(rate_limit("prompts"))])
async def get_prompt(prompt_id: str, service: ServiceDep, db: DbDep) -> ApiResponse:
    data = await service.get_prompt(db, prompt_id)
    return success_response(data.to_wire())


@router.post("/{prompt_id}/execute", dependencies=[Depends(rate_limit("prompts"))])
async def execute_prompt(
    prompt_id: str,
    body: ExecutePromptRequest,
    request: Request,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    data = await service.execute_prompt(
        db,
        current_user.user_id,
        prompt_id,
        body.user_input,
        origin=client_identifier(request),
    )
    return success_response(data.to_wire())
