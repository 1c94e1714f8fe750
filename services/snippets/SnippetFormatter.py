"""Markdown report for snippet search results."""

from services.snippets.SnippetSearchService import SnippetSearchResult
from shared.clients.node.models.SnippetEvent import SnippetEvent
from shared.helper.PublicKeyCodec import PublicKeyCodec

NO_RESULTS_MESSAGE = "No code snippets found matching the criteria."


class SnippetFormatter:
    """Renders a SnippetSearchResult as a Markdown report."""

    @staticmethod
    def format_header(result: SnippetSearchResult) -> str:
        count = result.total
        if result.language and result.author:
            return f"Found {count} code snippets for language '{result.language}' by author '{result.author}':\n\n"
        if result.language:
            return f"Found {count} code snippets for language '{result.language}':\n\n"
        if result.author:
            return f"Found {count} code snippets by author '{result.author}':\n\n"
        return f"Found {count} code snippets matching query '{result.query or ''}':\n\n"

    @staticmethod
    def format_author(pubkey: str) -> str:
        try:
            return PublicKeyCodec.encode_npub(pubkey)
        except ValueError:
            return pubkey

    @classmethod
    def format_snippet(cls, position: int, event: SnippetEvent, language: str | None = None) -> str:
        """Render one event as a numbered section with metadata and a fenced code block.

        Args:
            position (int): 1-based position in the report.
            event (SnippetEvent): The event to render.
            language (str | None): The requested language, used as code fence label.

        Returns:
            str: The Markdown section, ending with a blank line.
        """
        name = event.get_tag_value("name") or event.get_tag_value("f", "Unnamed Snippet")
        lines = [
            f"## Snippet {position}: {name}",
            f"**Description:** {event.get_tag_value('description', 'No description provided')}",
        ]
        for label, tag in (("Extension", "extension"), ("Runtime", "runtime"), ("License", "license")):
            value = event.get_tag_value(tag)
            if value:
                lines.append(f"**{label}:** {value}")
        lines.append(f"**Author:** {cls.format_author(event.pubkey)}")

        fence_label = language or event.get_tag_value("l", "text")
        lines.append(f"```{fence_label}")
        lines.append(event.content)
        lines.append("```")
        return "\n".join(lines) + "\n\n"

    @classmethod
    def format_report(cls, result: SnippetSearchResult) -> str:
        """Render the whole search result, or the no-results message when it is empty."""
        if not result.events:
            return NO_RESULTS_MESSAGE
        parts = [cls.format_header(result)]
        for position, event in enumerate(result.events, start=1):
            parts.append(cls.format_snippet(position, event, result.language))
        return "".join(parts)
