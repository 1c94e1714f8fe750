"""Ingestion runner entry point.

Embeds the Markdown documentation below DOCS_DATA_DIR into the vector index
for semantic search. Re-running it overwrites the points of unchanged files
and removes the points of chunks a document no longer has.

Usage:
    python -m services.doc_ingest.doc_ingest
"""

import asyncio
import sys

from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from services.doc_ingest.IngestService import IngestService, IngestSummary
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.settings import DocsSettings


async def boot_and_check(client: ClientInterface, logger) -> None:
    """Boot an HTTP client and require a 2xx healthcheck.

    Raises:
        Exception: If the backend is not healthy.
    """
    logger.debug("Config of %s client %s: %s", client.get_client_type(), client.get_engine_name(), client.describe_config())
    await client.boot()
    result = await client.do_healthcheck()
    if not result.is_success:
        raise Exception(f"healthcheck answered with status {result.status_code}")


async def run_ingest(config: HelperConfig) -> IngestSummary | None:
    """Boot the backends, make sure the index exists and ingest the corpus.

    Returns:
        IngestSummary | None: The summary, None if ingestion could not start.
    """
    logger = config.get_logger()
    embed_client = EmbedClientManager(helper_config=config).get_client()
    rag_clients = RAGClientManager(helper_config=config).get_clients()

    try:
        # nothing can be stored without vectors
        try:
            await boot_and_check(embed_client, logger)
            vector_size, distance = await embed_client.do_fetch_embedding_vector_size()
        except Exception as e:
            logger.error(f"Error booting Embed client {embed_client.get_engine_name()}: {e}. Aborting.")
            return None

        ready: list[RAGClientInterface] = []
        for rag_client in rag_clients:
            try:
                await boot_and_check(rag_client, logger)
                await rag_client.do_ensure_collection(vector_size=vector_size, distance=distance)
                ready.append(rag_client)
            except Exception as e:
                logger.error(f"Error booting RAG client {rag_client.get_engine_name()}: {e}. Skipping this client.")
        if not ready:
            logger.error("No RAG clients booted successfully. Aborting.")
            return None

        ingest_service = IngestService(
            helper_config=config,
            embed_client=embed_client,
            rag_clients=ready,
            docs_settings=DocsSettings.from_config(config),
        )
        return await ingest_service.do_full_ingest()
    finally:
        for client in [embed_client, *rag_clients]:
            await client.close()


def main() -> None:
    logger = setup_logging()
    summary = asyncio.run(run_ingest(HelperConfig(logger=logger)))
    if summary is None or summary.files_failed or summary.chunks_failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
