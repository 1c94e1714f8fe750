from abc import abstractmethod
from typing import Tuple

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.helper.HelperConfig import HelperConfig

# text embedded once to measure the vector size when the backend does not report it
VECTOR_SIZE_SAMPLE = "nostr"


class EmbedClientInterface(HttpClientInterface):
    """Embedding backend client.

    Documents and queries are embedded with different task markers
    (EMBED_DOCUMENT_PREFIX, EMBED_QUERY_PREFIX). Chunks carry the document
    marker in their stored text, queries get the query marker here.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.embed_distance = helper_config.get_string_val("EMBED_DISTANCE", default="Cosine")
        self.embed_model = helper_config.get_string_val("EMBED_MODEL", default="nomic-embed-text")
        self.document_prefix = helper_config.get_string_val("EMBED_DOCUMENT_PREFIX", default="search_document:") + " "
        self.query_prefix = helper_config.get_string_val("EMBED_QUERY_PREFIX", default="search_query:") + " "

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_embed(self) -> str:
        """
        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    @abstractmethod
    def _get_endpoint_model_details(self) -> str:
        """
        Returns:
            str: The endpoint path for model details requests (e.g. "/api/show")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for embedding texts."""
        pass

    @abstractmethod
    def get_model_details_payload(self) -> dict:
        """Build the request body asking for details of the configured model."""
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_vector_size_from_model_info(self, model_info: dict) -> int | None:
        """
        Reads the embedding dimension from a model details response.

        Returns:
            int | None: The dimension, None if the response does not state it.
        """
        pass

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding response.

        Returns:
            list[list[float]]: Vectors in input order.

        Raises:
            ValueError: If the response carries no usable embeddings.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_embedding_vector_size(self) -> Tuple[int, str]:
        """
        Determine the vector dimension and distance metric the index must be created with.

        The model details are asked first. If they do not state a dimension a
        sample text is embedded and its vector measured.

        Returns:
            Tuple[int, str]: Vector size and distance metric (e.g. (768, "Cosine")).
        """
        response = await self.do_request(
            method="POST",
            json=self.get_model_details_payload(),
            endpoint=self._get_endpoint_model_details(),
            raise_on_error=True,
        )
        vector_size = self.extract_vector_size_from_model_info(response.json())
        if vector_size is None:
            self.logging.info("Model '%s' does not report its dimension, embedding a sample text.", self.embed_model)
            vector_size = len(await self.do_embed_query(VECTOR_SIZE_SAMPLE))
        return vector_size, self.embed_distance

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Embed one or more texts as they are, without adding a task marker.

        Raises:
            Exception: If the backend answers with a non-200 status.
            ValueError: If the number of vectors does not match the number of texts.
        """
        texts = [texts] if isinstance(texts, str) else texts
        response = await self.do_request(method="POST", endpoint=self._get_endpoint_embed(), json=self.get_embed_payload(texts))
        if response.status_code != 200:
            self.logging.error(
                "Embedding request failed: status %d, body: %s",
                response.status_code,
                response.text[:200],
            )
            raise Exception("Embedding request failed with status %d." % response.status_code)
        vectors = self.extract_embeddings_from_response(response.json())
        if len(vectors) != len(texts):
            raise ValueError(f"Embedding backend returned {len(vectors)} vector(s) for {len(texts)} text(s).")
        return vectors

    async def do_embed_query(self, query: str) -> list[float]:
        """Embed a search query with the query task marker."""
        vectors = await self.do_embed(f"{self.query_prefix}{query}")
        return vectors[0]
