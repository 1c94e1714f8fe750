"""Lenient free-text matching of snippet events."""

from shared.clients.node.models.SnippetEvent import SnippetEvent

EXACT_MIN_LEN = 2
EXACT_MAX_LEN = 10
MIN_WORD_LEN = 2


def _contains(event: SnippetEvent, needle: str) -> bool:
    if needle in event.content.lower():
        return True
    return any(needle in value.lower() for value in event.tag_values())


def matches_query(event: SnippetEvent, query: str | None) -> bool:
    """Check whether an event matches a free-text query.

    Short queries are first tried as a whole against the content and the tag
    values. Otherwise the event matches if any word of two or more characters
    occurs in the content or in a tag value. Matching is case-insensitive.

    Args:
        event (SnippetEvent): The event to test.
        query (str | None): The raw query. Empty or blank matches everything.

    Returns:
        bool: True if the event matches.
    """
    if not query:
        return True
    query = query.strip().lower()

    if EXACT_MIN_LEN <= len(query) <= EXACT_MAX_LEN and _contains(event, query):
        return True

    words = query.split()
    if not words:
        return True
    return any(_contains(event, word) for word in words if len(word) >= MIN_WORD_LEN)


def matches_criteria(event: SnippetEvent, language: str | None, author: str | None, query: str | None) -> bool:
    """Check the language, author and query filters that are set.

    The language matches any "l" tag case-insensitively; the author must equal the hex pubkey.
    """
    if language:
        wanted = language.lower()
        if not any(value.lower() == wanted for value in event.tag_map.get("l", [])):
            return False
    if author and event.pubkey != author:
        return False
    return matches_query(event, query)
