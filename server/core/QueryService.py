from pydantic import BaseModel, Field

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.RetrievalResult import RetrievalResult
from shared.errors.exceptions import InvalidRequestError, RetrievalError
from shared.helper.HelperConfig import HelperConfig

DEFAULT_SIMILARITY = 0.6
DEFAULT_NUM_RESULTS = 3


class QueryResult(BaseModel):
    query: str
    results: list[RetrievalResult] = Field(default_factory=list)
    context: str = ""

    @property
    def total(self) -> int:
        return len(self.results)


def build_context(results: list[RetrievalResult]) -> str:
    """Wrap the stored text of each result in <doc> tags inside one <context> block, in ranked order."""
    parts = ["<context>\n"]
    for result in results:
        parts.append(f"<doc>{result.metadata_text}</doc>\n")
    parts.append("</context>")
    return "".join(parts)


class QueryService:
    """Handles documentation queries: embed -> top-N search -> context."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_clients: list[RAGClientInterface],
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_clients = rag_clients
        self._embed_client = embed_client

    ##########################################
    ############### CORE #####################
    ##########################################

    async def query(
        self,
        query: str,
        similarity: float = DEFAULT_SIMILARITY,
        num_results: int = DEFAULT_NUM_RESULTS,
    ) -> QueryResult:
        """Embed a query and return the closest indexed chunks.

        Args:
            query (str): The question to look up.
            similarity (float): Minimum score between 0 and 1 a chunk must reach.
            num_results (int): Maximum number of chunks.

        Returns:
            QueryResult: Results ordered by descending score, at most num_results,
                none below similarity. Empty results are not an error.

        Raises:
            InvalidRequestError: If the query is blank or a parameter is out of range.
            RetrievalError: If the embedding or the vector search fails.
        """
        if not query or not query.strip():
            raise InvalidRequestError("query must be non-empty", field="query")
        if not 0.0 <= similarity <= 1.0:
            raise InvalidRequestError("similarity must be between 0 and 1", field="similarity")
        if num_results < 1:
            raise InvalidRequestError("num_results must be at least 1", field="num_results")

        self.logging.info("QueryService.query: query='%s', similarity=%.2f, num_results=%d", query, similarity, num_results)

        try:
            query_vector = await self._embed_client.do_embed_query(query)
        except Exception as e:
            self.logging.error("Embedding the query failed: %s", e)
            raise RetrievalError("embedding", str(e)) from e
        self.logging.debug("Query vector dimension: %d", len(query_vector))

        # the first RAG client serves queries
        rag_client = self._rag_clients[0]
        try:
            hits = await rag_client.do_search_top_n(query_vector, similarity, num_results)
        except Exception as e:
            self.logging.error("Similarity search on '%s' failed: %s", rag_client.get_engine_name(), e)
            raise RetrievalError("similarity search", str(e)) from e

        hits = [hit for hit in hits if hit.score >= similarity]
        hits.sort(key=lambda hit: hit.score, reverse=True)
        hits = hits[:num_results]

        self.logging.info("QueryService.query: returning %d result(s).", len(hits))
        if not hits:
            return QueryResult(query=query)
        return QueryResult(query=query, results=hits, context=build_context(hits))
