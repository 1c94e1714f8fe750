from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import QueryRequest
from server.models.responses import QueryResponse, QueryResultItem
from shared.errors.exceptions import InvalidRequestError, RetrievalError

router = APIRouter(prefix="/query", tags=["query"])

NO_RESULTS_MESSAGE = "No similar documents found"


@router.post("")
async def query_documents(
    request: Request,
    body: QueryRequest,
    _: None = Depends(verify_api_key),
) -> QueryResponse:
    """Execute a similarity query against the documentation index.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (QueryRequest): JSON body with query, similarity and num_results.
        _ (None): Auth dependency result (unused).

    Returns:
        QueryResponse: Ranked chunks and the assembled context.

    Raises:
        HTTPException(400): Invalid query
        HTTPException(502): Embedding or vector index unavailable
    """
    query_service = request.app.state.query_service
    try:
        result = await query_service.query(body.query, similarity=body.similarity, num_results=body.num_results)
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except RetrievalError as e:
        raise HTTPException(status_code=502, detail=e.message)

    return QueryResponse(
        query=result.query,
        total=result.total,
        context=result.context,
        message=None if result.total else NO_RESULTS_MESSAGE,
        results=[QueryResultItem(**hit.model_dump()) for hit in result.results],
    )
