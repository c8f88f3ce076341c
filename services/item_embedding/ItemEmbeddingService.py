"""Item embedding service: template, embed and write for a single item.

Shared by the single-item HTTP trigger and the batch regenerator so both use
the same template and the same model.
"""

from services.item_embedding.ItemEmbeddingWriter import ItemEmbeddingWriter
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.exceptions import ValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.item import Item


class ItemEmbeddingService:
    """Computes and stores the embedding of one item."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        writer: ItemEmbeddingWriter,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed = embed_client
        self._writer = writer

    async def embed_item(self, item: Item) -> list[float]:
        """Embed an item with the fixed template and persist the vector.

        Args:
            item (Item): The item; id and title are required.

        Returns:
            list[float]: The vector that was written.

        Raises:
            ValidationError: If id or title is missing.
            ProviderError: If the embedding call fails.
            DatabaseError: If the write fails.
        """
        if not item.id or not item.is_embeddable():
            raise ValidationError("Missing item_id or title")

        text = item.to_embedding_text()
        vector = await self._embed.do_embed(text)
        await self._writer.write_embedding(item.id, vector)

        self.logging.info("Embedding generated for item %s ('%s')", item.id, item.title)
        return vector
