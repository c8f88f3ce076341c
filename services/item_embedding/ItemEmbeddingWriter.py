"""Persists a computed vector onto its item record."""

from shared.clients.db.DBClientInterface import DBClientInterface
from shared.helper.HelperConfig import HelperConfig


class ItemEmbeddingWriter:
    """Single-item, last-write-wins embedding upsert. No retries at this layer."""

    def __init__(self, helper_config: HelperConfig, db_client: DBClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._db = db_client

    async def write_embedding(self, item_id: str, vector: list[float]) -> None:
        """Overwrite the stored embedding of one item.

        Args:
            item_id (str): The item to update.
            vector (list[float]): The new embedding.

        Raises:
            DatabaseError: If the item does not exist or the store rejects the write.
        """
        await self._db.do_update_item_embedding(item_id, vector)
        self.logging.debug("Wrote %d-dim embedding for item %s", len(vector), item_id)
