"""FastAPI application entry point for nips_rag_bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.node.NodeClientInterface import NodeClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.node.NodeClientManager import NodeClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.models.settings import DocsSettings, SnippetSettings
from services.snippets.NodeFetcher import NodeFetcher
from services.snippets.SnippetCache import SnippetCache
from services.snippets.SnippetCacheRefresher import SnippetCacheRefresher
from services.snippets.SnippetSearchService import SnippetSearchService
from server.core.QueryService import QueryService
from server.core.ResourceService import ResourceService
from server.routers.QueryRouter import router as query_router
from server.routers.SnippetRouter import router as snippet_router
from server.routers.ResourceRouter import router as resource_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    helper_config = HelperConfig(logger=logging)
    app.state.logging = logging
    app.state.helper_config = helper_config

    embed_client = EmbedClientManager(helper_config=helper_config).get_client()
    rag_clients = RAGClientManager(helper_config=helper_config).get_clients()
    node_client = NodeClientManager(helper_config=helper_config).get_client()
    clients: list[ClientInterface] = [embed_client, *rag_clients, node_client]

    logging.info("Booting %d clients...", len(clients))
    for client in clients:
        logging.debug("Config of %s client %s: %s", client.get_client_type(), client.get_engine_name(), client.describe_config())
        await client.boot()

    try:
        await check_connections(embed_client, rag_clients, node_client)
        await prepare_index(embed_client, rag_clients)
        wire_services(app, helper_config, embed_client, rag_clients, node_client)
    except Exception:
        for client in clients:
            await client.close()
        raise

    app.state.snippet_refresher.start()
    logging.info("nips_rag_bridge v%s ready.", app_version, color="green")

    yield

    logging.info("Shutting down, stopping the snippet refresher and closing all clients...")
    await app.state.snippet_refresher.stop()
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


async def check_connections(
    embed_client: EmbedClientInterface,
    rag_clients: list[RAGClientInterface],
    node_client: NodeClientInterface,
) -> None:
    """Fail startup when the embedding server or a vector index is down.

    An unreachable healthcheck relay only degrades snippet search and is logged.

    Raises:
        Exception: If the embedding or a RAG backend does not answer with 2xx.
    """
    for client in [embed_client, *rag_clients]:
        result = await client.do_healthcheck()
        if not result.is_success:
            raise Exception(
                f"{client.get_client_type()} client '{client.get_engine_name()}' is not reachable "
                f"(status {result.status_code}). Documentation queries cannot be served."
            )

    if not await node_client.do_healthcheck():
        logging.warning("Node client '%s' could not reach its healthcheck relay. Snippet search may be degraded.", node_client.get_engine_name())


async def prepare_index(embed_client: EmbedClientInterface, rag_clients: list[RAGClientInterface]) -> None:
    """Create the chunk collection in every vector index that does not have it yet."""
    vector_size, distance = await embed_client.do_fetch_embedding_vector_size()
    for rag_client in rag_clients:
        if await rag_client.do_ensure_collection(vector_size=vector_size, distance=distance):
            logging.warning("RAG collection on '%s' was missing and has been created. Run the ingestion first.", rag_client.get_engine_name())


def wire_services(
    app: FastAPI,
    helper_config: HelperConfig,
    embed_client: EmbedClientInterface,
    rag_clients: list[RAGClientInterface],
    node_client: NodeClientInterface,
) -> None:
    """Build the services on app.state. The cache is shared by search and refresher."""
    snippet_settings = SnippetSettings.from_config(helper_config)
    snippet_cache = SnippetCache()
    node_fetcher = NodeFetcher(helper_config=helper_config, node_client=node_client)

    app.state.embed_client = embed_client
    app.state.rag_clients = rag_clients
    app.state.node_client = node_client
    app.state.snippet_cache = snippet_cache
    app.state.query_service = QueryService(helper_config=helper_config, rag_clients=rag_clients, embed_client=embed_client)
    app.state.resource_service = ResourceService(helper_config=helper_config, docs_settings=DocsSettings.from_config(helper_config))
    app.state.snippet_search_service = SnippetSearchService(
        helper_config=helper_config,
        cache=snippet_cache,
        fetcher=node_fetcher,
        settings=snippet_settings,
    )
    app.state.snippet_refresher = SnippetCacheRefresher(
        helper_config=helper_config,
        cache=snippet_cache,
        fetcher=node_fetcher,
        settings=snippet_settings,
    )


app = FastAPI(
    title="nips_rag_bridge",
    description=(
        "Semantic search over the Nostr protocol specifications (NIPs) and discovery of "
        "community code snippets published on Nostr relays. "
        "Documentation is queried via POST /query, snippets via POST /snippets/search, "
        "reference tables via GET /resources/*."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(query_router)
app.include_router(snippet_router)
app.include_router(resource_router)


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting nips_rag_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
