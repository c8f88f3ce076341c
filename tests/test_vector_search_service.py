import asyncio

import pytest

from services.search.GroupScopeResolver import GroupScopeResolver
from services.search.VectorSearchService import VectorSearchService
from shared.exceptions import DatabaseError, ProviderError, SearchError, ValidationError
from shared.models.search import SearchRequest


def _row(item_id: str, similarity: float, category: str | None = "sports") -> dict:
    return {"id": item_id, "title": f"Item {item_id}", "category": category, "similarity": similarity}


@pytest.fixture
def service(helper_config, embed_client, db_client) -> VectorSearchService:
    db_client.memberships["user-1"] = ["g1"]
    return VectorSearchService(
        helper_config=helper_config,
        embed_client=embed_client,
        db_client=db_client,
        group_scope_resolver=GroupScopeResolver(helper_config=helper_config, db_client=db_client),
    )


def test_blue_bicycle_scenario(service, embed_client, db_client):
    db_client.match_rows = [_row("a", 0.9), _row("b", 0.5), _row("c", 0.4), _row("d", 0.2)]

    results = asyncio.run(
        service.search("user-1", "blue bicycle", top_k=2, similarity_threshold=0.3)
    )

    assert [r.similarity for r in results] == [0.9, 0.5]
    assert db_client.match_calls[0]["match_count"] == 4
    assert db_client.match_calls[0]["group_ids"] == ["g1"]
    assert embed_client.calls == ["blue bicycle"]


def test_user_without_groups_gets_nothing_and_no_embedding_call(service, embed_client, db_client):
    db_client.match_rows = [_row("a", 0.9)]

    results = asyncio.run(service.search("lonely-user", "blue bicycle"))

    assert results == []
    assert len(embed_client.calls) == 0
    assert db_client.match_calls == []


def test_query_is_embedded_byte_for_byte(service, embed_client):
    query = "  Blue   Bicycle, 26\" wheels! "

    asyncio.run(service.search("user-1", query))

    assert embed_client.calls == [query]
    assert "Title:" not in embed_client.calls[0]


def test_category_filter_is_case_sensitive(service, db_client):
    db_client.match_rows = [_row("a", 0.9, "Electronics"), _row("b", 0.8, "electronics")]

    results = asyncio.run(service.search("user-1", "phone", category="electronics"))

    assert [r.id for r in results] == ["b"]


def test_threshold_is_inclusive(service, db_client):
    db_client.match_rows = [_row("a", 0.5), _row("b", 0.3), _row("c", 0.29)]

    results = asyncio.run(service.search("user-1", "bike", similarity_threshold=0.3))

    assert [r.id for r in results] == ["a", "b"]


def test_threshold_is_not_clamped(service, db_client):
    db_client.match_rows = [_row("a", 0.5), _row("b", -0.2)]

    results = asyncio.run(service.search("user-1", "bike", similarity_threshold=-1.0))

    assert [r.id for r in results] == ["a", "b"]


def test_defaults_apply_when_not_given(service, db_client):
    db_client.match_rows = [_row(str(i), 0.9 - i * 0.01) for i in range(30)] + [_row("low", 0.1)]

    results = asyncio.run(service.search("user-1", "bike"))

    assert len(results) == 10
    assert db_client.match_calls[0]["match_count"] == 20


def test_equal_similarity_is_ordered_by_id(service, db_client):
    db_client.match_rows = [_row("z", 0.9), _row("m", 0.7), _row("c", 0.7), _row("a", 0.5)]

    results = asyncio.run(service.search("user-1", "bike"))

    assert [r.id for r in results] == ["z", "c", "m", "a"]


def test_store_order_is_kept_without_ties(service, db_client):
    db_client.match_rows = [_row("b", 0.9), _row("a", 0.8)]

    results = asyncio.run(service.search("user-1", "bike"))

    assert [r.id for r in results] == ["b", "a"]


@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query_is_rejected_before_any_call(service, embed_client, db_client, query):
    with pytest.raises(ValidationError):
        asyncio.run(service.search("user-1", query))

    assert embed_client.calls == []
    assert db_client.group_calls == []


@pytest.mark.parametrize("top_k", [0, -3, True])
def test_non_positive_top_k_is_rejected(service, embed_client, top_k):
    with pytest.raises(ValidationError):
        asyncio.run(service.search("user-1", "bike", top_k=top_k))

    assert embed_client.calls == []


def test_provider_failure_becomes_search_error(service, embed_client):
    cause = ProviderError("Embedding provider returned status 500", details="boom")
    embed_client.error = cause

    with pytest.raises(SearchError) as exc_info:
        asyncio.run(service.search("user-1", "bike"))

    assert exc_info.value.__cause__ is cause
    assert exc_info.value.details == "boom"


def test_store_failure_becomes_search_error(service, db_client):
    cause = DatabaseError("db request failed with status 500", details="function does not exist")
    db_client.match_error = cause

    with pytest.raises(SearchError) as exc_info:
        asyncio.run(service.search("user-1", "bike"))

    assert exc_info.value.__cause__ is cause


def test_group_lookup_failure_becomes_search_error(service, embed_client, db_client):
    db_client.group_error = DatabaseError("db request failed with status 500")

    with pytest.raises(SearchError):
        asyncio.run(service.search("user-1", "bike"))

    assert embed_client.calls == []


def test_do_query_detects_category_when_asked(service, db_client):
    db_client.match_rows = [_row("a", 0.9, "drinks"), _row("b", 0.8, "food")]
    request = SearchRequest.model_validate({"query": "coffee", "detectCategory": True})

    response = asyncio.run(service.do_query("user-1", request))

    assert [item.id for item in response.items] == ["a"]


def test_do_query_prefers_explicit_category(service, db_client):
    db_client.match_rows = [_row("a", 0.9, "drinks"), _row("b", 0.8, "food")]
    request = SearchRequest.model_validate({"query": "coffee", "category": "food", "detectCategory": True})

    response = asyncio.run(service.do_query("user-1", request))

    assert [item.id for item in response.items] == ["b"]


def test_search_defaults_come_from_configuration(monkeypatch, helper_config, embed_client, db_client):
    monkeypatch.setenv("SEARCH_DEFAULT_TOP_K", "3")
    monkeypatch.setenv("SEARCH_OVERFETCH_FACTOR", "4")
    db_client.memberships["user-1"] = ["g1"]
    service = VectorSearchService(
        helper_config=helper_config,
        embed_client=embed_client,
        db_client=db_client,
        group_scope_resolver=GroupScopeResolver(helper_config=helper_config, db_client=db_client),
    )

    asyncio.run(service.search("user-1", "bike"))

    assert db_client.match_calls[0]["match_count"] == 12


def test_empty_category_means_no_filter(service, db_client):
    db_client.match_rows = [_row("a", 0.9, "drinks"), _row("b", 0.8, None)]

    results = asyncio.run(service.search("user-1", "bike", category=""))

    assert [r.id for r in results] == ["a", "b"]


def test_malformed_group_rows_become_search_error(service, embed_client, db_client):
    db_client.group_error = DatabaseError("Store returned an unexpected payload", details="[1]")

    with pytest.raises(SearchError) as exc_info:
        asyncio.run(service.search("user-1", "bike"))

    assert isinstance(exc_info.value.__cause__, DatabaseError)
    assert embed_client.calls == []
