"""FastAPI application entry point for the item search API."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
from server.api.routers.EmbeddingRouter import embedding_router
from server.api.routers.SearchRouter import search_router
from services.embedding_regen.BatchEmbeddingRegenerator import BatchEmbeddingRegenerator
from services.item_embedding.ItemEmbeddingService import ItemEmbeddingService
from services.item_embedding.ItemEmbeddingWriter import ItemEmbeddingWriter
from services.search.GroupScopeResolver import GroupScopeResolver
from services.search.VectorSearchService import VectorSearchService
from shared.clients.db.DBClientManager import DBClientManager
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.exceptions import BridgeError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = logging
    app.state.config = HelperConfig(logger=app.state.logging)

    # Initialise clients
    embed_client = EmbedClientManager(helper_config=app.state.config).get_client()
    db_client = DBClientManager(helper_config=app.state.config).get_client()
    await embed_client.boot()
    await db_client.boot()

    # Health checks
    await db_client.do_healthcheck()

    # Wire up services
    writer = ItemEmbeddingWriter(helper_config=app.state.config, db_client=db_client)
    app.state.db_client = db_client
    app.state.item_embedding_service = ItemEmbeddingService(
        helper_config=app.state.config,
        embed_client=embed_client,
        writer=writer,
    )
    app.state.regenerator = BatchEmbeddingRegenerator(
        helper_config=app.state.config,
        db_client=db_client,
        item_embedding_service=app.state.item_embedding_service,
    )
    app.state.search_service = VectorSearchService(
        helper_config=app.state.config,
        embed_client=embed_client,
        db_client=db_client,
        group_scope_resolver=GroupScopeResolver(helper_config=app.state.config, db_client=db_client),
    )

    app.state.logging.info("Item search API ready (embedding model %s).", embed_client.embed_model)
    yield

    # Shutdown
    await embed_client.close()
    await db_client.close()
    app.state.logging.info("Item search API shut down.")


app = FastAPI(
    title="Item Search Bridge",
    description="Semantic item search and embedding maintenance for shared lists.",
    version=app_version,
    lifespan=lifespan,
)
app.state.logging = logging

app.add_middleware(
    CORSMiddleware,
    allow_origins=HelperConfig(logger=logging).get_list_val("APP_CORS_ORIGINS", default=["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BridgeError)
async def handle_bridge_error(request: Request, exc: BridgeError) -> JSONResponse:
    """Render any BridgeError as {error, details?} with its own status code."""
    if exc.status_code >= 500:
        logging.error("%s on %s: %s (%s)", exc.title, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors (400), like every other bad input."""
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body", "details": str(exc.errors())},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Anything that is not a BridgeError still leaves as {error} with status 500."""
    logging.exception("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health", tags=["Health"])
async def health() -> dict:
    return {"status": "healthy", "version": app_version}


app.include_router(search_router)
app.include_router(embedding_router)


# Server Start
if __name__ == "__main__":
    import uvicorn
    logging.info(f"Starting item search API v{app_version} on port 8000...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
