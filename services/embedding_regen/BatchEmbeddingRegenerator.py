"""Batch embedding regeneration.

Reads the whole eligible item catalog, splits it into fixed-size batches and
re-embeds each batch concurrently. Batches are separated by a fixed pause so the
embedding provider's rate limit is respected.

There is no retry inside a run. Writes are idempotent upserts and every run is a
full re-scan, so operators re-run the whole job to pick up failed items.
"""

import asyncio
from typing import Awaitable, Callable

from services.item_embedding.ItemEmbeddingService import ItemEmbeddingService
from shared.clients.db.DBClientInterface import DBClientInterface
from shared.exceptions import BridgeError
from shared.helper.HelperConfig import HelperConfig
from shared.models.batch import BatchJobResult
from shared.models.item import Item

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_SECONDS = 1.0


def _partition(items: list[Item], batch_size: int) -> list[list[Item]]:
    """Split items into consecutive batches of at most batch_size."""
    return [items[start: start + batch_size] for start in range(0, len(items), batch_size)]


def _describe_error(exc: BaseException) -> str:
    """Human-readable failure reason, including upstream details when present."""
    if isinstance(exc, BridgeError) and exc.details:
        return f"{exc.message}: {exc.details}"
    return str(exc) or type(exc).__name__


class BatchEmbeddingRegenerator:
    """Re-embeds the entire eligible catalog with bounded concurrency and pacing."""

    def __init__(
        self,
        helper_config: HelperConfig,
        db_client: DBClientInterface,
        item_embedding_service: ItemEmbeddingService,
        batch_size: int | None = None,
        batch_delay_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._db = db_client
        self._item_embedding = item_embedding_service
        self._sleep = sleep

        self.batch_size = (
            batch_size
            if batch_size is not None
            else helper_config.get_positive_int_val("REGEN_BATCH_SIZE", default=DEFAULT_BATCH_SIZE)
        )
        self.batch_delay_seconds = (
            batch_delay_seconds
            if batch_delay_seconds is not None
            else helper_config.get_number_val("REGEN_BATCH_DELAY_SECONDS", default=DEFAULT_BATCH_DELAY_SECONDS)
        )
        if self.batch_size < 1:
            raise ValueError(f"Batch size must be at least 1, got {self.batch_size}.")
        if self.batch_delay_seconds < 0:
            raise ValueError(f"Batch delay must not be negative, got {self.batch_delay_seconds}.")

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_regenerate_all(self) -> BatchJobResult:
        """Re-embed every item with a non-empty title.

        Returns:
            BatchJobResult: Per-item partition into succeeded and failed items.
                An empty catalog is a no-op success with processed = 0.

        Raises:
            DatabaseError: If the catalog cannot be fetched. Per-item failures never raise.
        """
        self.logging.info("Starting embedding regeneration...")
        items = await self._db.do_fetch_embeddable_items()

        if not items:
            self.logging.warning("No items found to regenerate embeddings.")
            return BatchJobResult(message="No items found to regenerate embeddings")

        batches = _partition(items, self.batch_size)
        self.logging.info(
            "Found %d items to process in %d batches of up to %d.",
            len(items), len(batches), self.batch_size,
        )

        result = BatchJobResult(message="Embedding regeneration completed", total_items=len(items))
        for batch_index, batch in enumerate(batches, start=1):
            await self._run_batch(batch, result)
            self.logging.info(
                "Batch %d of %d done: %d succeeded, %d failed so far.",
                batch_index, len(batches), result.processed, result.failed,
            )
            # pause between batches only, not after the last one
            if batch_index < len(batches) and self.batch_delay_seconds > 0:
                await self._sleep(self.batch_delay_seconds)

        self.logging.info(
            "Embedding regeneration complete: %d of %d items succeeded, %d failed.",
            result.processed, result.total_items, result.failed,
            color="green" if not result.failed else "yellow",
        )
        return result

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _run_batch(self, batch: list[Item], result: BatchJobResult) -> None:
        """Embed and write all items of one batch concurrently and wait for all of them.

        One item's failure never affects its siblings; every item ends up in exactly
        one of result.success or result.errors.
        """
        outcomes = await asyncio.gather(
            *[self._item_embedding.embed_item(item) for item in batch],
            return_exceptions=True,
        )
        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, Exception):
                reason = _describe_error(outcome)
                self.logging.error("Error processing item %s: %s", item.id, reason)
                result.record_failure(item.id, reason)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                self.logging.debug("Successfully processed item %s: %s", item.id, item.title)
                result.record_success(item.id)
