from typing import Any

from pydantic import BaseModel, Field

from shared.clients.node.models.SnippetEvent import SNIPPET_KIND


class NodeFilter(BaseModel):
    """Subscription filter sent with a REQ message."""

    kinds: list[int] = Field(default_factory=lambda: [SNIPPET_KIND])
    limit: int = 500
    languages: list[str] = Field(default_factory=list)
    authors: list[str] = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"kinds": self.kinds, "limit": self.limit}
        if self.languages:
            wire["#l"] = self.languages
        if self.authors:
            wire["authors"] = self.authors
        return wire
