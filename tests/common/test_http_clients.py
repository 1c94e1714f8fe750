import json

import httpx
import pytest

from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.node.NodeClientManager import NodeClientManager
from shared.clients.node.nostr.NodeClientNostr import NodeClientNostr
from shared.clients.rag.RAGClientInterface import make_point_id
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.models.IndexedUnit import IndexedUnit
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.errors.exceptions import BackendRequestError


def _mock(client, handler, requests):
    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    client._client = httpx.AsyncClient(transport=httpx.MockTransport(record))


@pytest.fixture
def qdrant_env(monkeypatch):
    monkeypatch.setenv("RAG_QDRANT_BASE_URL", "http://qdrant:6333")
    monkeypatch.setenv("RAG_QDRANT_COLLECTION", "nips_test")
    monkeypatch.delenv("RAG_QDRANT_API_KEY", raising=False)


class TestQdrant:
    def test_missing_base_url_fails_validation(self, helper_config, monkeypatch):
        monkeypatch.delenv("RAG_QDRANT_BASE_URL", raising=False)

        with pytest.raises(ValueError):
            RAGClientQdrant(helper_config=helper_config)

    def test_point_payload_uses_deterministic_id(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)
        unit = IndexedUnit(id="01-chunk-1", doc_id="01", header="Events", prompt_text="text", vector=[0.1])

        point = client.get_point_payload(unit)

        assert point["id"] == make_point_id("01-chunk-1")
        assert point["id"] != make_point_id("01-chunk-2")
        assert point["payload"] == {"unit_id": "01-chunk-1", "doc_id": "01", "header": "Events", "prompt_text": "text"}

    @pytest.mark.asyncio
    async def test_save_upserts_one_point(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)
        requests = []
        _mock(client, lambda request: httpx.Response(200, json={"status": "ok"}), requests)

        saved_id = await client.do_save(IndexedUnit(id="01-chunk-1", doc_id="01", prompt_text="t", vector=[0.1, 0.2]))

        assert saved_id == "01-chunk-1"
        assert requests[0].method == "PUT"
        assert requests[0].url.path == "/collections/nips_test/points"
        assert requests[0].url.params["wait"] == "true"
        assert len(json.loads(requests[0].content)["points"]) == 1

    @pytest.mark.asyncio
    async def test_save_without_vector_is_rejected(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)

        with pytest.raises(ValueError):
            await client.do_save(IndexedUnit(id="x", doc_id="x", prompt_text="t"))

    @pytest.mark.asyncio
    async def test_search_top_n(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)
        requests = []
        body = {"result": [
            {"id": "uuid-1", "score": 0.91, "payload": {"unit_id": "01-chunk-3", "prompt_text": "first"}},
            {"id": "uuid-2", "score": 0.72, "payload": {"unit_id": "07-chunk-9", "prompt_text": "second"}},
        ]}
        _mock(client, lambda request: httpx.Response(200, json=body), requests)

        results = await client.do_search_top_n([0.1, 0.2], 0.6, 3)

        assert [(r.id, r.score, r.metadata_text) for r in results] == [
            ("01-chunk-3", 0.91, "first"),
            ("07-chunk-9", 0.72, "second"),
        ]
        sent = json.loads(requests[0].content)
        assert requests[0].url.path == "/collections/nips_test/points/search"
        assert sent["limit"] == 3
        assert sent["score_threshold"] == 0.6
        assert sent["with_payload"] is True

    @pytest.mark.asyncio
    async def test_search_error_status_raises(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)
        _mock(client, lambda request: httpx.Response(500, text="boom"), [])

        with pytest.raises(BackendRequestError) as excinfo:
            await client.do_search_top_n([0.1], 0.6, 3)
        assert excinfo.value.status_code == 500

    @pytest.mark.asyncio
    async def test_delete_stale_units_keeps_current_chunks(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)
        requests = []
        _mock(client, lambda request: httpx.Response(200, json={"status": "ok"}), requests)

        await client.do_delete_stale_units("01", ["01-chunk-1", "01-chunk-2"])

        assert requests[0].method == "POST"
        assert requests[0].url.path == "/collections/nips_test/points/delete"
        assert json.loads(requests[0].content) == {"filter": {
            "must": [{"key": "doc_id", "match": {"value": "01"}}],
            "must_not": [{"key": "unit_id", "match": {"any": ["01-chunk-1", "01-chunk-2"]}}],
        }}

    def test_delete_payload_without_chunks_selects_whole_document(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)

        assert client.get_delete_stale_payload("01", []) == {
            "filter": {"must": [{"key": "doc_id", "match": {"value": "01"}}]}
        }

    @pytest.mark.asyncio
    async def test_ensure_collection_creates_only_when_missing(self, helper_config, qdrant_env):
        client = RAGClientQdrant(helper_config=helper_config)
        requests = []

        def handler(request):
            if request.url.path.endswith("/exists"):
                return httpx.Response(200, json={"result": {"exists": False}})
            return httpx.Response(200, json={"result": True})

        _mock(client, handler, requests)

        created = await client.do_ensure_collection(vector_size=768, distance="Cosine")

        assert created is True
        assert requests[1].method == "PUT"
        assert json.loads(requests[1].content) == {"vectors": {"size": 768, "distance": "Cosine"}}


class TestOllama:
    @pytest.mark.asyncio
    async def test_embed_query_adds_query_prefix(self, helper_config, monkeypatch):
        monkeypatch.delenv("EMBED_QUERY_PREFIX", raising=False)
        monkeypatch.delenv("EMBED_MODEL", raising=False)
        client = EmbedClientOllama(helper_config=helper_config)
        requests = []
        _mock(client, lambda request: httpx.Response(200, json={"embeddings": [[0.3, 0.4]]}), requests)

        vector = await client.do_embed_query("what is a relay?")

        assert vector == [0.3, 0.4]
        assert json.loads(requests[0].content) == {"model": "nomic-embed-text", "input": ["search_query: what is a relay?"]}

    @pytest.mark.asyncio
    async def test_vector_size_from_model_info(self, helper_config):
        client = EmbedClientOllama(helper_config=helper_config)
        info = {"model_info": {"nomic-bert.embedding_length": 768}}
        _mock(client, lambda request: httpx.Response(200, json=info), [])

        assert await client.do_fetch_embedding_vector_size() == (768, "Cosine")

    @pytest.mark.asyncio
    async def test_empty_embeddings_raise(self, helper_config):
        client = EmbedClientOllama(helper_config=helper_config)
        _mock(client, lambda request: httpx.Response(200, json={"embeddings": []}), [])

        with pytest.raises(ValueError):
            await client.do_embed(["text"])


class TestManagers:
    def test_default_engines(self, helper_config, qdrant_env, monkeypatch):
        for key in ("EMBED_ENGINE", "RAG_ENGINES", "NODE_ENGINE"):
            monkeypatch.delenv(key, raising=False)

        assert isinstance(EmbedClientManager(helper_config).get_client(), EmbedClientOllama)
        assert [type(c) for c in RAGClientManager(helper_config).get_clients()] == [RAGClientQdrant]
        assert isinstance(NodeClientManager(helper_config).get_client(), NodeClientNostr)

    def test_unknown_engine_is_rejected(self, helper_config, monkeypatch):
        monkeypatch.setenv("NODE_ENGINE", "carrierpigeon")

        with pytest.raises(ValueError):
            NodeClientManager(helper_config)


class TestOllamaVectorSize:
    @pytest.mark.asyncio
    async def test_sample_embedding_when_model_info_lacks_dimension(self, helper_config):
        client = EmbedClientOllama(helper_config=helper_config)
        requests = []

        def handler(request):
            if request.url.path == "/api/show":
                return httpx.Response(200, json={"model_info": {"general.architecture": "bert"}})
            return httpx.Response(200, json={"embeddings": [[0.0] * 384]})

        _mock(client, handler, requests)

        assert await client.do_fetch_embedding_vector_size() == (384, "Cosine")
        assert [r.url.path for r in requests] == ["/api/show", "/api/embed"]

    @pytest.mark.asyncio
    async def test_vector_count_mismatch_raises(self, helper_config):
        client = EmbedClientOllama(helper_config=helper_config)
        _mock(client, lambda request: httpx.Response(200, json={"embeddings": [[0.1]]}), [])

        with pytest.raises(ValueError):
            await client.do_embed(["one", "two"])


class TestClientConfig:
    def test_describe_config_masks_secrets(self, helper_config, qdrant_env, monkeypatch):
        monkeypatch.setenv("RAG_QDRANT_API_KEY", "s3cret")

        described = RAGClientQdrant(helper_config=helper_config).describe_config()

        assert described["RAG_QDRANT_BASE_URL"] == "http://qdrant:6333"
        assert described["RAG_QDRANT_COLLECTION"] == "nips_test"
        assert described["RAG_QDRANT_API_KEY"] == "***"

    @pytest.mark.asyncio
    async def test_client_boots_and_closes_as_context_manager(self, helper_config, qdrant_env):
        async with RAGClientQdrant(helper_config=helper_config) as client:
            assert client._client is not None

        assert client._client is None

    @pytest.mark.asyncio
    async def test_api_key_header_is_set_on_boot(self, helper_config, qdrant_env, monkeypatch):
        monkeypatch.setenv("RAG_QDRANT_API_KEY", "s3cret")
        client = RAGClientQdrant(helper_config=helper_config)

        await client.boot()
        try:
            assert client._client.headers["api-key"] == "s3cret"
        finally:
            await client.close()
