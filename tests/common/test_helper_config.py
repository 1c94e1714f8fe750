import pytest

from shared.models.settings import DEFAULT_SEARCH_RELAYS, DocsSettings, SnippetSettings


def test_string_value_and_default(helper_config, monkeypatch):
    monkeypatch.setenv("SOME_KEY", "  value ")

    assert helper_config.get_string_val("some_key") == "value"
    assert helper_config.get_string_val("OTHER_KEY", default="fallback") == "fallback"


def test_missing_required_value_raises(helper_config, monkeypatch):
    monkeypatch.delenv("REQUIRED_KEY", raising=False)

    with pytest.raises(ValueError):
        helper_config.get_string_val("REQUIRED_KEY")


def test_number_and_bool_values(helper_config, monkeypatch):
    monkeypatch.setenv("INT_KEY", "42")
    monkeypatch.setenv("FLOAT_KEY", "2.5")
    monkeypatch.setenv("BOOL_KEY", "yes")
    monkeypatch.setenv("BAD_NUMBER", "abc")

    assert helper_config.get_number_val("INT_KEY") == 42
    assert helper_config.get_number_val("FLOAT_KEY") == 2.5
    assert helper_config.get_bool_val("BOOL_KEY") is True
    with pytest.raises(ValueError):
        helper_config.get_number_val("BAD_NUMBER")


def test_list_value_syntax(helper_config, monkeypatch):
    monkeypatch.setenv("LIST_KEY", "[wss://a, wss://b ,]")
    monkeypatch.setenv("BROKEN_LIST", "wss://a,wss://b")

    assert helper_config.get_list_val("LIST_KEY") == ["wss://a", "wss://b"]
    assert helper_config.get_list_val("UNSET_LIST", default=["x"]) == ["x"]
    with pytest.raises(ValueError):
        helper_config.get_list_val("BROKEN_LIST")


def test_snippet_settings_defaults(helper_config, monkeypatch):
    for key in ("SNIPPETS_REFRESH_INTERVAL", "SNIPPETS_SEARCH_RELAYS", "SNIPPETS_QUERY_LIMIT"):
        monkeypatch.delenv(key, raising=False)

    settings = SnippetSettings.from_config(helper_config)

    assert settings.refresh_interval == 1800
    assert settings.refresh_limit == 500
    assert settings.search_relays == DEFAULT_SEARCH_RELAYS
    assert settings.node_timeout == 10
    assert settings.query_limit == 50
    assert settings.query_node_timeout == 5


def test_snippet_settings_from_env(helper_config, monkeypatch):
    monkeypatch.setenv("SNIPPETS_REFRESH_RELAYS", "[wss://only]")
    monkeypatch.setenv("SNIPPETS_REFRESH_INTERVAL", "60")

    settings = SnippetSettings.from_config(helper_config)

    assert settings.refresh_relays == ["wss://only"]
    assert settings.refresh_interval == 60


def test_docs_settings_derive_readme_from_data_dir(helper_config, monkeypatch):
    monkeypatch.setenv("DOCS_DATA_DIR", "/srv/docs")
    monkeypatch.delenv("DOCS_NIPS_README", raising=False)

    settings = DocsSettings.from_config(helper_config)

    assert settings.data_dir == "/srv/docs"
    assert settings.nips_readme == "/srv/docs/nips-repo/README.md"


def test_relay_list_normalises_and_dedupes(helper_config, monkeypatch):
    monkeypatch.setenv("RELAYS", "[wss://a.example/, wss://b.example, wss://a.example]")

    assert helper_config.get_relay_list_val("RELAYS") == ["wss://a.example", "wss://b.example"]


def test_relay_list_rejects_non_websocket_urls(helper_config, monkeypatch):
    monkeypatch.setenv("RELAYS", "[https://a.example]")

    with pytest.raises(ValueError):
        helper_config.get_relay_list_val("RELAYS")


def test_typed_reader_dispatch(helper_config, monkeypatch):
    monkeypatch.setenv("TYPED_NUMBER", "7")

    assert helper_config.get_val("TYPED_NUMBER", val_type="number") == 7
    assert helper_config.get_val("TYPED_UNSET", val_type="bool", default=False) is False
    with pytest.raises(ValueError):
        helper_config.get_val("TYPED_NUMBER", val_type="dict")
