"""Embedding router: single item embedding trigger and full catalog regeneration.

The app calls POST /generate-item-embedding whenever an item is created or its
title, details, category or location change. POST /regenerate-embeddings-batch
is an administrative re-run over the whole catalog.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from shared.dependencies.auth import verify_bearer_token
from shared.models.item import EmbedItemRequest

embedding_router = APIRouter()


@embedding_router.post("/generate-item-embedding", tags=["Embeddings"])
async def handle_generate_item_embedding(request: Request, body: EmbedItemRequest) -> JSONResponse:
    """Embed one item and store the vector on its record.

    Returns:
        JSONResponse: {"success": true}
    """
    request.app.state.logging.info("Embedding requested for item_id=%r", body.item_id)
    await request.app.state.item_embedding_service.embed_item(body.to_item())
    return JSONResponse(content={"success": True})


@embedding_router.post("/regenerate-embeddings-batch", tags=["Embeddings"])
async def handle_regenerate_embeddings(
    request: Request,
    user_id: str = Depends(verify_bearer_token),
) -> JSONResponse:
    """Re-embed every eligible item in paced batches.

    Blocks until the run finishes. Per-item failures are listed in the report;
    only a failed catalog fetch turns into an error response.

    Returns:
        JSONResponse: {message, totalItems, processed, failed, success, errors}
    """
    request.app.state.logging.info("Embedding regeneration triggered by user_id=%s", user_id)
    result = await request.app.state.regenerator.do_regenerate_all()
    return JSONResponse(content=result.model_dump(by_alias=True))
