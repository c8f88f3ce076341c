"""Vector search service: semantic item search within the user's groups.

resolve group scope → embed query verbatim → match RPC (over-fetch) →
category filter → similarity threshold → top K.
"""

from itertools import groupby

from services.search.CategoryDetector import detect_category
from services.search.GroupScopeResolver import GroupScopeResolver
from shared.clients.db.DBClientInterface import DBClientInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.exceptions import DatabaseError, ProviderError, SearchError, ValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.search import ScoredItem, SearchRequest, SearchResponse

DEFAULT_TOP_K = 10
DEFAULT_SIMILARITY_THRESHOLD = 0.3
DEFAULT_OVERFETCH_FACTOR = 2


def _break_ties(candidates: list[ScoredItem]) -> list[ScoredItem]:
    """Order runs of equal similarity by item id, leaving everything else in store order."""
    ordered: list[ScoredItem] = []
    for _, run in groupby(candidates, key=lambda c: c.similarity):
        ordered.extend(sorted(run, key=lambda c: c.id))
    return ordered


class VectorSearchService:
    """Orchestrates group scoping, query embedding, vector matching and post-filtering."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        db_client: DBClientInterface,
        group_scope_resolver: GroupScopeResolver,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed = embed_client
        self._db = db_client
        self._groups = group_scope_resolver

        self.default_top_k = helper_config.get_positive_int_val("SEARCH_DEFAULT_TOP_K", default=DEFAULT_TOP_K)
        self.default_similarity_threshold = float(
            helper_config.get_number_val("SEARCH_DEFAULT_SIMILARITY_THRESHOLD", default=DEFAULT_SIMILARITY_THRESHOLD)
        )
        self.overfetch_factor = helper_config.get_positive_int_val("SEARCH_OVERFETCH_FACTOR", default=DEFAULT_OVERFETCH_FACTOR)

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_query(self, user_id: str, request: SearchRequest) -> SearchResponse:
        """Run a search request as received from the API.

        Fills in defaults and, when asked to, a keyword-detected category.
        """
        category = request.category
        if category is None and request.detect_category:
            category = detect_category(request.query)
            self.logging.info("Detected category %r for query", category)

        items = await self.search(
            user_id=user_id,
            query_text=request.query,
            top_k=request.top_k,
            category=category,
            similarity_threshold=request.similarity_threshold,
        )
        return SearchResponse(items=items)

    async def search(
        self,
        user_id: str,
        query_text: str | None,
        top_k: int | None = None,
        category: str | None = None,
        similarity_threshold: float | None = None,
    ) -> list[ScoredItem]:
        """Return the user's best matching items for a free-text query.

        Args:
            user_id (str): The authenticated user; results are limited to their groups.
            query_text (str | None): The raw query, embedded exactly as given.
            top_k (int | None): Maximum number of results (default SEARCH_DEFAULT_TOP_K).
            category (str | None): Keep only items whose category equals this (case-sensitive).
                None or "" means no category filter.
            similarity_threshold (float | None): Keep only items scoring at or above this.
                Not clamped to [0, 1].

        Returns:
            list[ScoredItem]: At most top_k items, descending by similarity.

        Raises:
            ValidationError: If the query is empty or top_k is not a positive integer.
            SearchError: If the group lookup, the embedding call or the match RPC fails.
        """
        if top_k is None:
            top_k = self.default_top_k
        if similarity_threshold is None:
            similarity_threshold = self.default_similarity_threshold
        self._validate(query_text, top_k)

        self.logging.info(
            "Executing search: user_id=%s query=%r top_k=%d category=%r threshold=%s",
            user_id, query_text[:80], top_k, category, similarity_threshold,
        )

        try:
            group_ids = await self._groups.resolve_group_ids(user_id)
            if not group_ids:
                self.logging.info("User %s is not in any group, returning no results.", user_id)
                return []

            query_embedding = await self._embed.do_embed(query_text)
            candidates = await self._db.do_match_items(
                query_embedding=query_embedding,
                match_count=top_k * self.overfetch_factor,
                group_ids=sorted(group_ids),
            )
        except (ProviderError, DatabaseError) as exc:
            self.logging.error("Search failed for user %s: %s", user_id, exc)
            raise SearchError(exc.message, details=exc.details) from exc

        self.logging.debug("Store returned %d candidates", len(candidates))

        # an empty category string is "no filter", not "items without a category"
        if category:
            candidates = [c for c in candidates if c.category == category]
            self.logging.debug("After category filter (%s): %d items", category, len(candidates))

        candidates = [c for c in candidates if c.similarity >= similarity_threshold]
        self.logging.debug("After similarity filter (>=%s): %d items", similarity_threshold, len(candidates))

        results = _break_ties(candidates)[:top_k]
        self.logging.info("Search complete: user_id=%s results=%d", user_id, len(results))
        return results

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _validate(self, query_text: str | None, top_k: int) -> None:
        if not isinstance(query_text, str) or not query_text.strip():
            raise ValidationError("Missing query")
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
            raise ValidationError("topK must be a positive integer", details=f"Got {top_k!r}")
