"""Homily management routes (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from parish_api.routes.dependencies import get_homily_service, require_admin
from parish_api.schemas.error import ErrorResponse
from parish_api.schemas.homily import CreateHomilyRequest, Homily, UpdateHomilyRequest
from parish_api.services.homilies import HomilyService

router = APIRouter(
    prefix="/homilies",
    tags=["Homilies"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)


@router.get("", response_model=list[Homily])
async def list_homilies(
    service: Annotated[HomilyService, Depends(get_homily_service)],
) -> list[Homily]:
    return service.list_homilies()


@router.post(
    "",
    response_model=Homily,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_homily(
    payload: CreateHomilyRequest,
    service: Annotated[HomilyService, Depends(get_homily_service)],
) -> Homily:
    return service.create_homily(
        slug=payload.slug,
        title=payload.title,
        cloudinary_public_id=payload.cloudinary_public_id,
    )


@router.put(
    "/{homilyId}",
    response_model=Homily,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_homily(
    homily_id: Annotated[str, Path(alias="homilyId")],
    payload: UpdateHomilyRequest,
    service: Annotated[HomilyService, Depends(get_homily_service)],
) -> Homily:
    return service.update_homily(
        homily_id=homily_id,
        slug=payload.slug,
        title=payload.title,
        cloudinary_public_id=payload.cloudinary_public_id,
    )


@router.delete(
    "/{homilyId}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_homily(
    homily_id: Annotated[str, Path(alias="homilyId")],
    service: Annotated[HomilyService, Depends(get_homily_service)],
) -> Response:
    service.delete_homily(homily_id=homily_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
