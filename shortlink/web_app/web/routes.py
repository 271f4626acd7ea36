"""Redirect route."""

from fastapi import APIRouter, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from ...errors import Expired, NotApplicable, NotFound, StoreError

router = APIRouter()


@router.get("/{code}", include_in_schema=False)
async def redirect_to_url(request: Request, code: str):
    """Redirect to the original URL."""
    service = request.app.state.service

    try:
        resolution = await service.resolve(code)
    except NotApplicable:
        # Nothing else is mounted for asset-looking paths
        return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)
    except NotFound:
        return PlainTextResponse("Short URL not found", status_code=status.HTTP_404_NOT_FOUND)
    except Expired:
        return PlainTextResponse("Short URL has expired", status_code=status.HTTP_410_GONE)
    except StoreError:
        request.app.state.logger.exception(f"Store failure while resolving {code}")
        return PlainTextResponse("Internal server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    # 302 so clients re-resolve; mappings can be repointed or expire
    return RedirectResponse(url=resolution.long_url, status_code=status.HTTP_302_FOUND)
