"""Ancillary user and role management routes (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from parish_api.routes.dependencies import get_user_service, require_admin
from parish_api.schemas.error import ErrorResponse
from parish_api.schemas.user import CreateUserRequest, UpdateUserRoleRequest, User
from parish_api.services.users import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)


@router.get("", response_model=list[User])
async def list_users(
    service: Annotated[UserService, Depends(get_user_service)],
) -> list[User]:
    return service.list_users()


@router.post(
    "",
    response_model=User,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_user(
    payload: CreateUserRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return service.create_user(email=payload.email, password=payload.password, role=payload.role)


@router.patch(
    "/{userId}/role",
    response_model=User,
    responses={404: {"model": ErrorResponse}},
)
async def update_user_role(
    user_id: Annotated[str, Path(alias="userId")],
    payload: UpdateUserRoleRequest,
    service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    return service.update_role(user_id=user_id, role=payload.role)


@router.delete(
    "/{userId}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_user(
    user_id: Annotated[str, Path(alias="userId")],
    service: Annotated[UserService, Depends(get_user_service)],
) -> Response:
    service.delete_user(user_id=user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
