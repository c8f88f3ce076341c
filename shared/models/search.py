"""Pydantic models for search requests and responses."""

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    """Incoming natural language search query from the app.

    query is optional at the model level so that a missing query is rejected by
    the search service as a ValidationError (400) instead of a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    query: str | None = None
    top_k: int | None = Field(default=None, alias="topK")
    category: str | None = None
    similarity_threshold: float | None = Field(default=None, alias="similarityThreshold")
    detect_category: bool = Field(default=False, alias="detectCategory")


class ScoredItem(BaseModel):
    """A single candidate row returned by the store's match RPC.

    Any further item columns the RPC returns are kept and passed through to the caller.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    similarity: float
    title: str | None = None
    details: str | None = None
    category: str | None = None
    location: str | None = None


class SearchResponse(BaseModel):
    """Response payload returned to the app after a search."""

    items: list[ScoredItem]
