import logging
import os
import sys
from pathlib import Path

import pytest

# add project root to sys.path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# keep test runs off the filesystem, must happen before server.api.api_app is imported
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from shared.exceptions import AuthError, DatabaseError  # noqa: E402
from shared.helper.HelperConfig import HelperConfig  # noqa: E402
from shared.logging.logging_setup import ColorLogger  # noqa: E402
from shared.models.item import Item  # noqa: E402
from shared.models.search import ScoredItem  # noqa: E402


class FakeEmbedClient:
    """In-memory embedding client. Records every text it is asked to embed."""

    def __init__(self, embed_model: str = "text-embedding-3-small") -> None:
        self.embed_model = embed_model
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.error: Exception | None = None
        self.log: list[str] | None = None

    def vector_for(self, text: str) -> list[float]:
        return [float(len(text)), 0.5, 0.25]

    async def do_embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.log is not None:
            self.log.append(f"embed:{text}")
        if self.error is not None:
            raise self.error
        for marker, exc in self.failures.items():
            if marker in text:
                raise exc
        return self.vector_for(text)


class FakeDBClient:
    """In-memory item store: users, memberships, catalog, embeddings and canned match rows."""

    def __init__(self) -> None:
        self.tokens: dict[str, str] = {}
        self.memberships: dict[str, list[str]] = {}
        self.items: list[Item] = []
        self.embeddings: dict[str, list[float]] = {}
        self.match_rows: list[dict] = []
        self.match_calls: list[dict] = []
        self.write_failures: dict[str, Exception] = {}
        self.fetch_error: Exception | None = None
        self.match_error: Exception | None = None
        self.group_error: Exception | None = None
        self.group_calls: list[str] = []

    async def do_fetch_user_id(self, access_token: str) -> str:
        if access_token not in self.tokens:
            raise AuthError("Invalid or missing user")
        return self.tokens[access_token]

    async def do_fetch_group_ids(self, user_id: str) -> list[str]:
        self.group_calls.append(user_id)
        if self.group_error is not None:
            raise self.group_error
        return list(self.memberships.get(user_id, []))

    async def do_fetch_embeddable_items(self) -> list[Item]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return [item for item in self.items if item.is_embeddable()]

    async def do_update_item_embedding(self, item_id: str, embedding: list[float]) -> None:
        if item_id in self.write_failures:
            raise self.write_failures[item_id]
        if item_id not in {item.id for item in self.items}:
            raise DatabaseError(f"Item {item_id} not found")
        self.embeddings[item_id] = embedding

    async def do_match_items(self, query_embedding: list[float], match_count: int, group_ids: list[str]) -> list[ScoredItem]:
        self.match_calls.append(
            {"query_embedding": query_embedding, "match_count": match_count, "group_ids": group_ids}
        )
        if self.match_error is not None:
            raise self.match_error
        return [ScoredItem.model_validate(row) for row in self.match_rows[:match_count]]


@pytest.fixture
def logger() -> ColorLogger:
    return ColorLogger(logging.getLogger("itemsearch.tests"))


@pytest.fixture
def helper_config(logger) -> HelperConfig:
    return HelperConfig(logger=logger)


@pytest.fixture
def embed_client() -> FakeEmbedClient:
    return FakeEmbedClient()


@pytest.fixture
def db_client() -> FakeDBClient:
    return FakeDBClient()
