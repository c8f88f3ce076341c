"""Embedding regeneration runner entry point.

Re-embeds the whole item catalog once, outside the API server. Use it after a
model change or to pick up items that failed in an earlier run.

Usage:
    python -m services.embedding_regen.embedding_regen
"""

import asyncio
import sys

from services.embedding_regen.BatchEmbeddingRegenerator import BatchEmbeddingRegenerator
from services.item_embedding.ItemEmbeddingService import ItemEmbeddingService
from services.item_embedding.ItemEmbeddingWriter import ItemEmbeddingWriter
from shared.clients.db.DBClientManager import DBClientManager
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.exceptions import BridgeError
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging


async def main() -> int:
    """Run one full regeneration pass. Returns the process exit code."""
    logger = setup_logging()
    config = HelperConfig(logger=logger)
    embed_client = EmbedClientManager(helper_config=config).get_client()
    db_client = DBClientManager(helper_config=config).get_client()

    try:
        # both clients are required, there is nothing to do if either is down
        try:
            await embed_client.boot()
            await db_client.boot()
            await db_client.do_healthcheck()
        except BridgeError as e:
            logger.error("Error booting clients: %s. Aborting.", e)
            return 1

        writer = ItemEmbeddingWriter(helper_config=config, db_client=db_client)
        item_embedding_service = ItemEmbeddingService(
            helper_config=config,
            embed_client=embed_client,
            writer=writer,
        )
        regenerator = BatchEmbeddingRegenerator(
            helper_config=config,
            db_client=db_client,
            item_embedding_service=item_embedding_service,
        )

        try:
            result = await regenerator.do_regenerate_all()
        except BridgeError as e:
            logger.error("Embedding regeneration aborted: %s", e)
            return 1

        for error in result.errors:
            logger.warning(error)
        return 0 if not result.failed else 2
    finally:
        await embed_client.close()
        await db_client.close()


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
