from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from ..core.errors import InvalidQueryError
from ..core.logging import sanitize_for_log
from ..schemas.search import (
    ContactsRequest,
    ErrorResponse,
    PersonResponse,
    SearchRequest,
    SearchResponse,
)
from ..services.export import to_csv
from ..services.pipeline import SearchPipeline

router = APIRouter(tags=["search"])

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}
EXPORT_FILENAME = "nexsearch-results.csv"


def get_search_pipeline(request: Request) -> SearchPipeline:
    """The pipeline built once in the app lifespan."""
    return request.app.state.pipeline


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details or None)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post(
    "/search",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def search(
    payload: SearchRequest,
    pipeline: SearchPipeline = Depends(get_search_pipeline),
):
    # Correlation ID for every log line of this request
    request_id = str(uuid4())
    try:
        return await pipeline.search(
            payload.query,
            page=payload.page,
            per_page=payload.per_page,
            request_id=request_id,
        )
    except InvalidQueryError as e:
        return error_response(400, "Invalid query", str(e))
    except Exception as e:
        logger.exception(
            "Search failed for query %s",
            sanitize_for_log(payload.query),
            extra={"request_id": request_id},
        )
        return error_response(500, "Search failed", str(e))


@router.post(
    "/search/contacts",
    response_model=PersonResponse,
    responses=ERROR_RESPONSES,
)
async def search_contacts(
    payload: ContactsRequest,
    pipeline: SearchPipeline = Depends(get_search_pipeline),
):
    request_id = str(uuid4())
    logger.info(
        "Contact search for %s (%s)",
        sanitize_for_log(payload.company_name),
        sanitize_for_log(payload.domain),
        extra={"request_id": request_id, "company": payload.company_name},
    )
    try:
        return await pipeline.find_contacts(
            payload.company_name, payload.domain, request_id=request_id
        )
    except Exception as e:
        logger.exception("Contact search failed", extra={"request_id": request_id})
        return error_response(500, "Contact search failed", str(e))


@router.post(
    "/search/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}, **ERROR_RESPONSES},
)
async def export_search(
    payload: SearchRequest,
    pipeline: SearchPipeline = Depends(get_search_pipeline),
):
    request_id = str(uuid4())
    try:
        # Export always covers every processed record
        result = await pipeline.search(payload.query, request_id=request_id)
    except InvalidQueryError as e:
        return error_response(400, "Invalid query", str(e))
    except Exception as e:
        logger.exception("Export failed", extra={"request_id": request_id})
        return error_response(500, "Export failed", str(e))

    return Response(
        content=to_csv(result),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.get("/search/status")
async def search_status(pipeline: SearchPipeline = Depends(get_search_pipeline)):
    return pipeline.status()
