"""IndexedUnit model: one embeddable chunk of a source document."""

from pydantic import BaseModel


class IndexedUnit(BaseModel):
    """A chunk prepared for the vector index.

    Attributes:
        id:          "<doc-id>-chunk-<n>", unique within one ingestion run.
        doc_id:      Identifier of the source document (file name without ".md").
        header:      Heading of the section this unit was built from.
        prompt_text: Full text sent to the embedding model and returned as
                     retrieval context (includes the document task marker).
        vector:      Embedding, filled in by the ingestion service.
    """

    id: str
    doc_id: str
    header: str = ""
    prompt_text: str
    vector: list[float] | None = None
