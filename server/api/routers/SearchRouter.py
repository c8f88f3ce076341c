"""Search router: semantic item search scoped to the caller's groups."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from shared.dependencies.auth import verify_bearer_token
from shared.models.search import SearchRequest

search_router = APIRouter()


@search_router.post("/vector-search", tags=["Search"])
async def handle_vector_search(
    request: Request,
    body: SearchRequest,
    user_id: str = Depends(verify_bearer_token),
) -> JSONResponse:
    """Handle a natural language item search.

    The user id comes from the bearer token; the search service limits the
    results to the groups of that user.

    Returns:
        JSONResponse: {"items": [...]}, possibly empty.
    """
    request.app.state.logging.info(
        "Vector search received: user_id=%s query=%r", user_id, (body.query or "")[:80]
    )
    result = await request.app.state.search_service.do_query(user_id, body)
    return JSONResponse(content=result.model_dump(mode="json"))
