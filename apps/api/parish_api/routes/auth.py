"""Ancillary API authentication routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from parish_api.routes.dependencies import (
    enforce_login_rate_limit,
    get_auth_service,
    get_authenticated_principal,
)
from parish_api.schemas.auth import AuthPrincipal, LoginRequest, LoginResponse, MeResponse, PublicUser
from parish_api.schemas.error import ErrorResponse
from parish_api.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(enforce_login_rate_limit)],
    responses={
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def login(
    payload: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> LoginResponse:
    return service.login(email=payload.email, password=payload.password)


@router.get(
    "/me",
    response_model=MeResponse,
    responses={401: {"model": ErrorResponse}},
)
async def me(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
) -> MeResponse:
    return MeResponse(user=PublicUser(email=principal.email, role=principal.role))
