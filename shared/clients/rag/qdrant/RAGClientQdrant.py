from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface, make_point_id
from shared.clients.rag.models.IndexedUnit import IndexedUnit
from shared.clients.rag.models.RetrievalResult import RetrievalResult
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    """Qdrant over its REST API. Each unit is one point with the chunk text in the payload."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default="nips_docs", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default="nips_docs"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"api-key": self._api_key} if self._api_key else {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_collection_exists(self) -> str:
        return f"{self._get_endpoint_collection()}/exists"

    def _get_endpoint_upsert(self) -> str:
        # wait so a point is searchable once the call returns
        return f"{self._get_endpoint_collection()}/points?wait=true"

    def _get_endpoint_search(self) -> str:
        return f"{self._get_endpoint_collection()}/points/search"

    def _get_endpoint_delete(self) -> str:
        return f"{self._get_endpoint_collection()}/points/delete?wait=true"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_collection_payload(self, vector_size: int, distance: str) -> dict:
        return {"vectors": {"size": vector_size, "distance": distance}}

    def get_point_payload(self, unit: IndexedUnit) -> dict:
        return {
            "id": make_point_id(unit.id),
            "vector": unit.vector,
            "payload": {
                "unit_id": unit.id,
                "doc_id": unit.doc_id,
                "header": unit.header,
                "prompt_text": unit.prompt_text,
            },
        }

    def get_upsert_payload(self, points: list[dict]) -> dict:
        return {"points": points}

    def get_search_payload(self, vector: list[float], score_threshold: float, limit: int) -> dict:
        return {
            "vector": vector,
            "limit": limit,
            "score_threshold": score_threshold,
            "with_payload": True,
            "with_vector": False,
        }

    def get_delete_stale_payload(self, doc_id: str, keep_ids: list[str]) -> dict:
        stale = {"must": [{"key": "doc_id", "match": {"value": doc_id}}]}
        if keep_ids:
            stale["must_not"] = [{"key": "unit_id", "match": {"any": keep_ids}}]
        return {"filter": stale}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_collection_exists(self, raw_response: dict) -> bool:
        return bool((raw_response.get("result") or {}).get("exists"))

    def extract_search_results(self, raw_response: dict) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for point in raw_response.get("result") or []:
            payload = point.get("payload") or {}
            results.append(
                RetrievalResult(
                    id=str(payload.get("unit_id") or point.get("id", "")),
                    score=float(point.get("score", 0.0)),
                    metadata_text=payload.get("prompt_text") or "",
                )
            )
        return results
