from abc import abstractmethod
import uuid

from shared.clients.HttpClientInterface import HttpClientInterface
from shared.clients.rag.models.IndexedUnit import IndexedUnit
from shared.clients.rag.models.RetrievalResult import RetrievalResult
from shared.helper.HelperConfig import HelperConfig

# changing the namespace orphans every point already in the index
_POINT_ID_NAMESPACE = uuid.UUID("3c0b6f0e-9d2a-4d1e-8f55-1a7e2b9c4d60")


def make_point_id(unit_id: str) -> str:
    """Derive the stable UUID point id of an IndexedUnit id ("<doc-id>-chunk-<n>")."""
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, unit_id))


class RAGClientInterface(HttpClientInterface):
    """Vector index holding the embedded documentation chunks.

    Subclasses supply the endpoints and the wire format, this class runs the
    collection setup, the upserts and the top-N search.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "rag"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_collection(self) -> str:
        """Path of the collection itself, used to create it."""
        pass

    @abstractmethod
    def _get_endpoint_collection_exists(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_upsert(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_delete(self) -> str:
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_collection_payload(self, vector_size: int, distance: str) -> dict:
        pass

    @abstractmethod
    def get_point_payload(self, unit: IndexedUnit) -> dict:
        """Build one stored point from an embedded unit."""
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[dict]) -> dict:
        pass

    @abstractmethod
    def get_search_payload(self, vector: list[float], score_threshold: float, limit: int) -> dict:
        pass

    @abstractmethod
    def get_delete_stale_payload(self, doc_id: str, keep_ids: list[str]) -> dict:
        """Select the points of a document whose unit id is not in keep_ids."""
        pass

    ################ RESPONSE PARSER ##################
    @abstractmethod
    def extract_collection_exists(self, raw_response: dict) -> bool:
        pass

    @abstractmethod
    def extract_search_results(self, raw_response: dict) -> list[RetrievalResult]:
        """
        Returns:
            list[RetrievalResult]: Hits in the order the backend returned them.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_existence_check(self) -> bool:
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_collection_exists(), raise_on_error=True)
        return self.extract_collection_exists(resp.json())

    async def do_ensure_collection(self, vector_size: int, distance: str = "Cosine") -> bool:
        """Create the collection unless it already exists.

        Args:
            vector_size (int): Dimension of the embedding model.
            distance (str): Distance metric, e.g. "Cosine".

        Returns:
            bool: True if the collection had to be created, i.e. the index is empty.
        """
        if await self.do_existence_check():
            return False
        self.logging.info("Creating %s collection (size=%d, distance=%s)", self.get_engine_name(), vector_size, distance)
        await self.do_request(
            method="PUT",
            endpoint=self._get_endpoint_collection(),
            json=self.get_collection_payload(vector_size, distance),
            raise_on_error=True,
        )
        return True

    async def do_save(self, unit: IndexedUnit) -> str:
        """Insert or overwrite the point of one embedded unit.

        Returns:
            str: The unit id.

        Raises:
            ValueError: If the unit has not been embedded.
            BackendRequestError: If the index rejects the point.
        """
        if not unit.vector:
            raise ValueError(f"IndexedUnit '{unit.id}' has no vector.")
        await self.do_request(
            method="PUT",
            endpoint=self._get_endpoint_upsert(),
            json=self.get_upsert_payload([self.get_point_payload(unit)]),
            raise_on_error=True,
        )
        return unit.id

    async def do_search_top_n(self, vector: list[float], score_threshold: float, limit: int) -> list[RetrievalResult]:
        """Return at most `limit` stored units scoring at least `score_threshold` against the vector."""
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_search(),
            json=self.get_search_payload(vector, score_threshold, limit),
            raise_on_error=True,
        )
        return self.extract_search_results(resp.json())

    async def do_delete_stale_units(self, doc_id: str, keep_ids: list[str]) -> None:
        """Remove the points of a document left over from an earlier ingestion.

        Args:
            doc_id (str): The re-ingested document.
            keep_ids (list[str]): Unit ids the document produced this time.
        """
        await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_delete(),
            json=self.get_delete_stale_payload(doc_id, keep_ids),
            raise_on_error=True,
        )
