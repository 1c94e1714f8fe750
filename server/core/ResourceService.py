"""Reference sections served from the NIPs repository README."""

import os

from shared.errors.exceptions import DocumentSourceNotFoundError, DocumentSourceUnreadableError, SectionNotFoundError
from shared.helper.HelperConfig import HelperConfig
from shared.models.settings import DocsSettings

SECTION_END_MARKER = "##"


def extract_section(content: str, start_marker: str, end_marker: str) -> str:
    """Cut the text from start_marker up to the next end_marker.

    Args:
        content (str): The whole document.
        start_marker (str): Text opening the section, included in the result.
        end_marker (str): Text closing the section, searched after start_marker.

    Returns:
        str: The trimmed section, the trimmed rest of the document if end_marker
            never follows, or "" if start_marker is missing.
    """
    start = content.find(start_marker)
    if start == -1:
        return ""
    end = content.find(end_marker, start + len(start_marker))
    if end == -1:
        return content[start:].strip()
    return content[start:end].strip()


class ResourceService:
    """Serves the event kinds and standardized tags tables as Markdown."""

    def __init__(self, helper_config: HelperConfig, docs_settings: DocsSettings) -> None:
        self.logging = helper_config.get_logger()
        self._readme_path = docs_settings.nips_readme

    def _read_readme(self) -> str:
        if not os.path.isfile(self._readme_path):
            raise DocumentSourceNotFoundError(self._readme_path)
        try:
            with open(self._readme_path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            self.logging.error("Cannot read NIPs README %s: %s", self._readme_path, e)
            raise DocumentSourceUnreadableError(self._readme_path, str(e)) from e

    def _get_section(self, start_marker: str, section_name: str, title: str) -> str:
        section = extract_section(self._read_readme(), start_marker, SECTION_END_MARKER)
        if not section:
            raise SectionNotFoundError(section_name)
        return f"# {title}\n\n{section}"

    def get_event_kinds(self) -> str:
        """
        Raises:
            DocumentSourceNotFoundError: If the README is missing.
            DocumentSourceUnreadableError: If the README cannot be read as UTF-8.
            SectionNotFoundError: If the README has no "## Event Kinds" section.
        """
        return self._get_section("## Event Kinds", "event kinds", "Nostr Event Kinds")

    def get_standard_tags(self) -> str:
        """
        Raises:
            DocumentSourceNotFoundError: If the README is missing.
            DocumentSourceUnreadableError: If the README cannot be read as UTF-8.
            SectionNotFoundError: If the README has no "## Standardized Tags" section.
        """
        return self._get_section("## Standardized Tags", "standardized tags", "Nostr Standardized Tags")
