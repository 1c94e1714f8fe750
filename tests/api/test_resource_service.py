import pytest

from server.core.ResourceService import ResourceService, extract_section
from shared.errors.exceptions import DocumentSourceNotFoundError, DocumentSourceUnreadableError, SectionNotFoundError
from shared.models.settings import DocsSettings

README = """# NIPs

## List

- NIP-01

## Event Kinds

| kind | description |
| ---- | ----------- |
| 0    | Metadata    |

## Standardized Tags

| name | value |
| ---- | ----- |
| e    | event id |
"""


def test_extract_section_stops_at_next_marker():
    section = extract_section(README, "## Event Kinds", "##")

    assert section.startswith("## Event Kinds\n\n| kind | description |")
    assert section.endswith("| 0    | Metadata    |")


def test_extract_section_runs_to_end_without_end_marker():
    section = extract_section(README, "## Standardized Tags", "##")

    assert section.endswith("| e    | event id |")


def test_extract_section_missing_start_marker():
    assert extract_section(README, "## Missing", "##") == ""


@pytest.fixture
def readme_path(tmp_path):
    path = tmp_path / "README.md"
    path.write_text(README, encoding="utf-8")
    return path


def test_event_kinds_resource(helper_config, readme_path):
    service = ResourceService(helper_config, DocsSettings(nips_readme=str(readme_path)))

    content = service.get_event_kinds()

    assert content.startswith("# Nostr Event Kinds\n\n## Event Kinds\n")
    assert "Standardized Tags" not in content


def test_standard_tags_resource(helper_config, readme_path):
    service = ResourceService(helper_config, DocsSettings(nips_readme=str(readme_path)))

    assert service.get_standard_tags().startswith("# Nostr Standardized Tags\n\n## Standardized Tags\n")


def test_missing_readme(helper_config, tmp_path):
    missing = str(tmp_path / "nope" / "README.md")
    service = ResourceService(helper_config, DocsSettings(nips_readme=missing))

    with pytest.raises(DocumentSourceNotFoundError) as excinfo:
        service.get_event_kinds()

    assert excinfo.value.message == f"NIPs repository README not found at {missing}"


def test_missing_section(helper_config, tmp_path):
    path = tmp_path / "README.md"
    path.write_text("# NIPs\n\nnothing here\n", encoding="utf-8")
    service = ResourceService(helper_config, DocsSettings(nips_readme=str(path)))

    with pytest.raises(SectionNotFoundError) as excinfo:
        service.get_event_kinds()

    assert excinfo.value.message == "event kinds section not found in README"


def test_undecodable_readme(helper_config, tmp_path):
    path = tmp_path / "README.md"
    path.write_bytes(b"## Event Kinds\n\n\xff\xfe broken\n")
    service = ResourceService(helper_config, DocsSettings(nips_readme=str(path)))

    with pytest.raises(DocumentSourceUnreadableError) as excinfo:
        service.get_event_kinds()

    assert excinfo.value.path == str(path)
