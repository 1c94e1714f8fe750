from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import SnippetSearchRequest
from server.models.responses import SnippetSearchResponse
from services.snippets.SnippetFormatter import SnippetFormatter
from shared.errors.exceptions import InvalidRequestError

router = APIRouter(prefix="/snippets", tags=["snippets"])


@router.post("/search")
async def search_snippets(
    request: Request,
    body: SnippetSearchRequest,
    _: None = Depends(verify_api_key),
) -> SnippetSearchResponse:
    """Search code snippets in the cache and on live relays.

    Raises:
        HTTPException(400): No filter given
    """
    search_service = request.app.state.snippet_search_service
    try:
        result = await search_service.search(
            language=body.language,
            author=body.author,
            query=body.query,
            limit=body.limit,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=e.message)

    return SnippetSearchResponse(
        total=result.total,
        source=result.source,
        report=SnippetFormatter.format_report(result),
    )
