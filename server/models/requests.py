from pydantic import BaseModel


class QueryRequest(BaseModel):
    query: str
    similarity: float = 0.6
    num_results: int = 3


class SnippetSearchRequest(BaseModel):
    language: str | None = None
    author: str | None = None
    query: str | None = None
    limit: int = 10
