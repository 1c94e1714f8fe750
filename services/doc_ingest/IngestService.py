"""Ingestion service.

Walks the documentation directory, splits every Markdown file into heading
based chunks, embeds each chunk via the EmbedClient and stores it in every
RAG backend.
"""

import os

from pydantic import BaseModel

from services.doc_ingest.ChunkBuilder import ChunkBuilder, ChunkIdSequence, doc_id_from_filename
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.IndexedUnit import IndexedUnit
from shared.helper.HelperConfig import HelperConfig
from shared.models.settings import DocsSettings

SKIPPED_DIRS = {".git"}


class IngestSummary(BaseModel):
    files: int = 0
    files_failed: int = 0
    chunks_saved: int = 0
    chunks_failed: int = 0


def iter_markdown_files(data_dir: str) -> list[str]:
    """List all Markdown files below data_dir in a stable order.

    Directories are walked in sorted order and ".git" is skipped. The ".md"
    suffix is matched case-insensitively.

    Args:
        data_dir (str): Root directory of the corpus.

    Returns:
        list[str]: File paths in walk order.
    """
    paths: list[str] = []
    for root, dirs, files in os.walk(data_dir):
        dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRS)
        for name in sorted(files):
            if name.lower().endswith(".md"):
                paths.append(os.path.join(root, name))
    return paths


class IngestService:
    """Orchestrates the ingestion pipeline from Markdown files to RAG backends."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        rag_clients: list[RAGClientInterface],
        docs_settings: DocsSettings,
        chunk_builder: ChunkBuilder | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed_client = embed_client
        self._rag_clients = rag_clients
        self._docs_settings = docs_settings
        self._chunk_builder = chunk_builder or ChunkBuilder(
            id_sequence=ChunkIdSequence(),
            document_prefix=embed_client.document_prefix,
        )

    ##########################################
    ############### CORE INGEST ##############
    ##########################################

    async def do_full_ingest(self) -> IngestSummary:
        """Ingest every Markdown file below the configured data directory.

        Failures of single files or chunks are logged and skipped.

        Returns:
            IngestSummary: Counts of processed files and stored chunks.
        """
        summary = IngestSummary()
        data_dir = self._docs_settings.data_dir
        if not os.path.isdir(data_dir):
            self.logging.error("Documentation directory '%s' does not exist. Nothing to ingest.", data_dir)
            return summary

        paths = iter_markdown_files(data_dir)
        self.logging.info("Starting ingestion of %d Markdown file(s) from '%s'...", len(paths), data_dir)

        for position, path in enumerate(paths, start=1):
            self.logging.info("Processing file %d/%d: %s", position, len(paths), path)
            summary.files += 1
            try:
                with open(path, "r", encoding="utf-8") as f:
                    markdown_text = f.read()
            except (OSError, UnicodeDecodeError) as e:
                self.logging.warning("Skipping file '%s': %s", path, e)
                summary.files_failed += 1
                continue

            saved, failed = await self.do_ingest_document(doc_id_from_filename(path), markdown_text)
            summary.chunks_saved += saved
            summary.chunks_failed += failed

        self.logging.info(
            "Ingestion complete: %d file(s), %d failed, %d chunk(s) saved, %d chunk(s) failed.",
            summary.files, summary.files_failed, summary.chunks_saved, summary.chunks_failed,
            color="green",
        )
        return summary

    async def do_ingest_document(self, doc_id: str, markdown_text: str) -> tuple[int, int]:
        """Chunk, embed and store one document.

        Args:
            doc_id (str): Identifier of the document.
            markdown_text (str): The raw document.

        Returns:
            tuple[int, int]: Number of saved and failed chunks.
        """
        units = self._chunk_builder.build_units(doc_id, markdown_text)
        self.logging.debug("Document '%s' produced %d chunk(s).", doc_id, len(units))
        saved = failed = 0
        for unit in units:
            if await self._ingest_unit(unit):
                saved += 1
            else:
                failed += 1
        await self._drop_stale_units(doc_id, [unit.id for unit in units])
        return saved, failed

    async def _drop_stale_units(self, doc_id: str, keep_ids: list[str]) -> None:
        # chunks removed by an edit leave their points behind otherwise
        for rag_client in self._rag_clients:
            try:
                await rag_client.do_delete_stale_units(doc_id, keep_ids)
            except Exception as e:
                self.logging.warning(
                    "Error removing stale chunks of %s from RAG '%s': %s", doc_id, rag_client.get_engine_name(), e
                )

    ##########################################
    ############## UNIT INGEST ###############
    ##########################################

    async def _ingest_unit(self, unit: IndexedUnit) -> bool:
        try:
            vectors = await self._embed_client.do_embed(unit.prompt_text)
        except Exception as e:
            self.logging.warning("Error creating embedding for %s: %s", unit.id, e)
            return False

        embedded = unit.model_copy(update={"vector": vectors[0]})
        stored = True
        for rag_client in self._rag_clients:
            try:
                await rag_client.do_save(embedded)
            except Exception as e:
                self.logging.warning(
                    "Error saving %s to RAG '%s': %s", unit.id, rag_client.get_engine_name(), e
                )
                stored = False
        return stored
