from pydantic import BaseModel


class RetrievalResult(BaseModel):
    """A single ranked hit returned by a similarity search.

    Attributes:
        id:            The IndexedUnit id stored with the point.
        score:         Similarity score, higher is closer.
        metadata_text: The prompt text stored at ingestion time.
    """

    id: str
    score: float
    metadata_text: str = ""
