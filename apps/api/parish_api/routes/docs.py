"""Team documents access-code routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from parish_api.routes.dependencies import (
    enforce_docs_verify_rate_limit,
    get_docs_access_service,
    require_admin,
)
from parish_api.schemas.docs import (
    DocsAccessCodeVerdict,
    UpdateDocsAccessCodeRequest,
    VerifyDocsAccessCodeRequest,
)
from parish_api.schemas.error import ErrorResponse
from parish_api.services.docs import DocsAccessService

router = APIRouter(prefix="/docs", tags=["Docs"])


@router.put(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)
async def update_docs_access_code(
    payload: UpdateDocsAccessCodeRequest,
    service: Annotated[DocsAccessService, Depends(get_docs_access_service)],
) -> Response:
    service.update_code(payload.code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/verify",
    response_model=DocsAccessCodeVerdict,
    dependencies=[Depends(enforce_docs_verify_rate_limit)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": DocsAccessCodeVerdict},
        429: {"model": ErrorResponse},
    },
)
async def verify_docs_access_code(
    payload: VerifyDocsAccessCodeRequest,
    service: Annotated[DocsAccessService, Depends(get_docs_access_service)],
) -> DocsAccessCodeVerdict | JSONResponse:
    if service.verify_code(payload.code):
        return DocsAccessCodeVerdict(valid=True)
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"valid": False})
