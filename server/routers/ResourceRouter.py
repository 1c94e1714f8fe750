from typing import Callable

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse

from server.dependencies.auth import verify_api_key
from shared.errors.exceptions import DocumentSourceNotFoundError, DocumentSourceUnreadableError, SectionNotFoundError

router = APIRouter(prefix="/resources", tags=["resources"])

MARKDOWN_MEDIA_TYPE = "text/markdown"


def _serve_section(get_section: Callable[[], str]) -> PlainTextResponse:
    try:
        content = get_section()
    except (DocumentSourceNotFoundError, SectionNotFoundError) as e:
        raise HTTPException(status_code=404, detail=e.message)
    except DocumentSourceUnreadableError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return PlainTextResponse(content, media_type=MARKDOWN_MEDIA_TYPE)


@router.get("/event-kinds", response_class=PlainTextResponse)
async def get_event_kinds(request: Request, _: None = Depends(verify_api_key)) -> PlainTextResponse:
    """Return the event kinds table of the NIPs README.

    Raises:
        HTTPException(404): README or section missing
        HTTPException(503): README unreadable
    """
    return _serve_section(request.app.state.resource_service.get_event_kinds)


@router.get("/standard-tags", response_class=PlainTextResponse)
async def get_standard_tags(request: Request, _: None = Depends(verify_api_key)) -> PlainTextResponse:
    """Return the standardized tags table of the NIPs README.

    Raises:
        HTTPException(404): README or section missing
        HTTPException(503): README unreadable
    """
    return _serve_section(request.app.state.resource_service.get_standard_tags)
