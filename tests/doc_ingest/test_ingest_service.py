import pytest

from fakes import FakeEmbedClient, FakeRAGClient
from services.doc_ingest.IngestService import IngestService, iter_markdown_files
from shared.models.settings import DocsSettings


@pytest.fixture
def corpus(tmp_path):
    data = tmp_path / "data"
    repo = data / "nips-repo"
    (repo / ".git").mkdir(parents=True)
    (repo / ".git" / "ignored.md").write_text("# Ignored\n\nnope\n", encoding="utf-8")
    (repo / "02.md").write_text("# NIP-02\n\nFollow lists.\n", encoding="utf-8")
    (repo / "01.md").write_text("# NIP-01\n\nBasic protocol.\n\n## Events\n\nSigned.\n", encoding="utf-8")
    (data / "README.MD").write_text("# Readme\n\nIndex.\n", encoding="utf-8")
    (data / "notes.txt").write_text("not markdown", encoding="utf-8")
    return data


def _service(helper_config, data_dir, embed_client=None, rag_clients=None):
    return IngestService(
        helper_config=helper_config,
        embed_client=embed_client or FakeEmbedClient(),
        rag_clients=rag_clients if rag_clients is not None else [FakeRAGClient()],
        docs_settings=DocsSettings(data_dir=str(data_dir)),
    )


def test_iter_markdown_files_is_sorted_and_skips_git(corpus):
    paths = iter_markdown_files(str(corpus))

    assert paths == [
        str(corpus / "README.MD"),
        str(corpus / "nips-repo" / "01.md"),
        str(corpus / "nips-repo" / "02.md"),
    ]


@pytest.mark.asyncio
async def test_full_ingest_embeds_and_saves_every_chunk(helper_config, corpus):
    rag_client = FakeRAGClient()
    embed_client = FakeEmbedClient(vector=[1.0, 0.0])
    service = _service(helper_config, corpus, embed_client, [rag_client])

    summary = await service.do_full_ingest()

    assert summary.files == 3
    assert summary.chunks_saved == 4
    assert summary.chunks_failed == 0
    assert [unit.id for unit in rag_client.saved] == [
        "README-chunk-1",
        "01-chunk-2",
        "01-chunk-3",
        "02-chunk-4",
    ]
    assert all(unit.vector == [1.0, 0.0] for unit in rag_client.saved)
    assert all(text.startswith("search_document: ") for text in embed_client.texts)


@pytest.mark.asyncio
async def test_failed_chunk_is_skipped_and_batch_continues(helper_config, corpus):
    rag_client = FakeRAGClient()
    service = _service(helper_config, corpus, FakeEmbedClient(fail_on={"Follow lists"}), [rag_client])

    summary = await service.do_full_ingest()

    assert summary.chunks_failed == 1
    assert summary.chunks_saved == 3
    assert "02-chunk-4" not in [unit.id for unit in rag_client.saved]


@pytest.mark.asyncio
async def test_reingest_removes_chunks_that_no_longer_exist(helper_config, tmp_path):
    doc = tmp_path / "01.md"
    doc.write_text("# NIP-01\n\nIntro.\n\n## Events\n\nSigned.\n\n## Filters\n\nREQ.\n", encoding="utf-8")
    rag_client = FakeRAGClient()
    await _service(helper_config, tmp_path, rag_clients=[rag_client]).do_full_ingest()
    assert len(rag_client.saved) == 3

    doc.write_text("# NIP-01\n\nIntro.\n", encoding="utf-8")
    await _service(helper_config, tmp_path, rag_clients=[rag_client]).do_full_ingest()

    assert rag_client.stale_deletes[-1] == ("01", ["01-chunk-1"])
    assert [unit.id for unit in rag_client.saved] == ["01-chunk-1"]


@pytest.mark.asyncio
async def test_save_failure_counts_as_failed_chunk(helper_config, corpus):
    service = _service(helper_config, corpus, rag_clients=[FakeRAGClient(error=Exception("index down"))])

    summary = await service.do_full_ingest()

    assert summary.chunks_saved == 0
    assert summary.chunks_failed == 4


@pytest.mark.asyncio
async def test_unreadable_file_is_skipped(helper_config, corpus):
    (corpus / "broken.md").write_bytes(b"\xff\xfe\x00invalid")
    service = _service(helper_config, corpus)

    summary = await service.do_full_ingest()

    assert summary.files == 4
    assert summary.files_failed == 1
    assert summary.chunks_saved == 4


@pytest.mark.asyncio
async def test_missing_data_dir_ingests_nothing(helper_config, tmp_path):
    service = _service(helper_config, tmp_path / "missing")

    summary = await service.do_full_ingest()

    assert summary.files == 0
    assert summary.chunks_saved == 0
