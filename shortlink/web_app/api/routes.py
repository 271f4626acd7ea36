"""API routes implementation."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ...common.headers import build_base_url, get_forwarded_path_prefix
from ...common.url_builder import build_short_url
from ...errors import ConflictError, ExhaustedError, StoreError, ValidationError
from .schemas import ErrorResponse, HealthResponse, ShortenRequest, ShortenResponse

router = APIRouter()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def short_url_for(request: Request, code: str) -> str:
    """Public short URL, honouring proxy headers and the configured prefix."""
    config = request.app.state.config
    headers = dict(request.headers)

    base_url = build_base_url(
        headers=headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    path_prefix = get_forwarded_path_prefix(headers) or config.path_prefix

    return build_short_url(code=code, base_url=base_url, path_prefix=path_prefix)


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Alias or code already bound to another URL"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create short URL",
    description="Create a shortened URL. Optionally provide a custom alias and an expiry.",
)
async def shorten_url(request: Request, body: ShortenRequest):
    """Create a shortened URL."""
    service = request.app.state.service

    try:
        result = await service.create(
            long_url=body.long_url,
            custom_alias=body.custom_alias,
            expiry=body.expiry,
        )
    except ValidationError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except ConflictError as e:
        return error_response(status.HTTP_409_CONFLICT, str(e))
    except ExhaustedError as e:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    except StoreError:
        request.app.state.logger.exception("Store failure while creating short URL")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save short URL")

    return ShortenResponse(
        short_url=short_url_for(request, result.code),
        code=result.code,
        long_url=result.long_url,
        expires_at=result.expires_at,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    body = HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
    code = status.HTTP_200_OK if health["overall"] else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body.model_dump(mode="json"))
