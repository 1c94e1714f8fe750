from typing import Any

from pydantic import BaseModel, Field

SNIPPET_KIND = 1337


class SnippetEvent(BaseModel):
    """A code snippet event as delivered by a relay.

    Attributes:
        id:         Hex event id, unique across relays.
        pubkey:     Hex public key of the author.
        created_at: Unix timestamp set by the author.
        kind:       Event kind, 1337 for code snippets.
        content:    The snippet source code.
        tags:       Wire tags, a list of [name, value, ...] lists.
    """

    id: str
    pubkey: str
    created_at: int = 0
    kind: int = SNIPPET_KIND
    content: str = ""
    tags: list[list[str]] = Field(default_factory=list)

    @classmethod
    def from_wire(cls, raw: dict[str, Any]) -> "SnippetEvent":
        """Build an event from the JSON object of an EVENT message.

        Tag entries that are not lists are dropped and all tag elements are coerced to str.
        """
        tags = [[str(v) for v in tag] for tag in raw.get("tags") or [] if isinstance(tag, list) and tag]
        return cls(
            id=str(raw["id"]),
            pubkey=str(raw["pubkey"]),
            created_at=int(raw.get("created_at") or 0),
            kind=int(raw.get("kind") or SNIPPET_KIND),
            content=str(raw.get("content") or ""),
            tags=tags,
        )

    @property
    def tag_map(self) -> dict[str, list[str]]:
        """Tag name mapped to the values of every tag with that name, in wire order."""
        mapped: dict[str, list[str]] = {}
        for tag in self.tags:
            if len(tag) < 2:
                continue
            mapped.setdefault(tag[0], []).append(tag[1])
        return mapped

    def get_tag_value(self, name: str, default: str = "") -> str:
        """Return the first value of the named tag, or default."""
        for tag in self.tags:
            if len(tag) >= 2 and tag[0] == name:
                return tag[1]
        return default

    def tag_values(self) -> list[str]:
        """The first value of every tag that has one."""
        return [tag[1] for tag in self.tags if len(tag) >= 2]
