import os

from pydantic import BaseModel, Field

from shared.helper.HelperConfig import HelperConfig

DEFAULT_REFRESH_RELAYS = [
    "wss://relay.damus.io",
    "wss://relay.nostr.band",
    "wss://nos.lol",
    "wss://relay.snort.social",
]
DEFAULT_SEARCH_RELAYS = [
    "wss://relay.damus.io",
    "wss://purplepag.es",
    "wss://relay.current.fyi",
    "wss://relay.nostr.band",
    "wss://nos.lol",
    "wss://relay.snort.social",
]
DEFAULT_QUERY_RELAYS = [
    "wss://relay.damus.io",
    "wss://purplepag.es",
]


class SnippetSettings(BaseModel):
    """Relay lists, limits and timeouts (seconds) of the snippet cache and search."""

    refresh_interval: float = 1800.0
    refresh_limit: int = 500
    refresh_timeout: float = 30.0
    refresh_relays: list[str] = Field(default_factory=lambda: list(DEFAULT_REFRESH_RELAYS))

    search_relays: list[str] = Field(default_factory=lambda: list(DEFAULT_SEARCH_RELAYS))
    node_timeout: float = 10.0
    request_timeout: float = 30.0

    query_relays: list[str] = Field(default_factory=lambda: list(DEFAULT_QUERY_RELAYS))
    query_limit: int = 50
    query_node_timeout: float = 5.0

    @classmethod
    def from_config(cls, helper_config: HelperConfig) -> "SnippetSettings":
        return cls(
            refresh_interval=helper_config.get_number_val("SNIPPETS_REFRESH_INTERVAL", default=1800),
            refresh_limit=int(helper_config.get_number_val("SNIPPETS_REFRESH_LIMIT", default=500)),
            refresh_timeout=helper_config.get_number_val("SNIPPETS_REFRESH_TIMEOUT", default=30),
            refresh_relays=helper_config.get_relay_list_val("SNIPPETS_REFRESH_RELAYS", default=DEFAULT_REFRESH_RELAYS),
            search_relays=helper_config.get_relay_list_val("SNIPPETS_SEARCH_RELAYS", default=DEFAULT_SEARCH_RELAYS),
            node_timeout=helper_config.get_number_val("SNIPPETS_NODE_TIMEOUT", default=10),
            request_timeout=helper_config.get_number_val("SNIPPETS_REQUEST_TIMEOUT", default=30),
            query_relays=helper_config.get_relay_list_val("SNIPPETS_QUERY_RELAYS", default=DEFAULT_QUERY_RELAYS),
            query_limit=int(helper_config.get_number_val("SNIPPETS_QUERY_LIMIT", default=50)),
            query_node_timeout=helper_config.get_number_val("SNIPPETS_QUERY_NODE_TIMEOUT", default=5),
        )


class DocsSettings(BaseModel):
    """Location of the Markdown corpus and of the NIPs README."""

    data_dir: str = "./data"
    nips_readme: str = "./data/nips-repo/README.md"

    @classmethod
    def from_config(cls, helper_config: HelperConfig) -> "DocsSettings":
        data_dir = helper_config.get_string_val("DOCS_DATA_DIR", default="./data")
        nips_readme = helper_config.get_string_val(
            "DOCS_NIPS_README",
            default=os.path.join(data_dir, "nips-repo", "README.md"),
        )
        return cls(data_dir=data_dir, nips_readme=nips_readme)
