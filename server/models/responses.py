from pydantic import BaseModel


class QueryResultItem(BaseModel):
    id: str
    score: float
    metadata_text: str


class QueryResponse(BaseModel):
    query: str
    total: int
    context: str
    message: str | None = None
    results: list[QueryResultItem]


class SnippetSearchResponse(BaseModel):
    total: int
    source: str
    report: str
