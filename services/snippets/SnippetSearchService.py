"""Snippet search across the local cache and live relays."""

from enum import Enum

from pydantic import BaseModel, Field

from services.snippets.NodeFetcher import NodeFetcher
from services.snippets.QueryMatcher import matches_query
from services.snippets.SnippetCache import SnippetCache
from shared.clients.node.models.NodeFilter import NodeFilter
from shared.clients.node.models.SnippetEvent import SnippetEvent
from shared.errors.exceptions import InvalidRequestError, PublicKeyDecodeError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.PublicKeyCodec import PublicKeyCodec
from shared.models.settings import SnippetSettings


class SearchPlan(str, Enum):
    CACHE_ONLY = "cache_only"
    LIVE = "live"
    MERGE = "merge"


def plan_search(cache_hits: int, limit: int) -> SearchPlan:
    """Decide how to answer a search from the number of cache hits.

    Args:
        cache_hits (int): Matching events found in the cache.
        limit (int): Requested number of results.

    Returns:
        SearchPlan: CACHE_ONLY when the cache suffices, LIVE when it has nothing,
            MERGE when it has some but not enough.
    """
    if cache_hits >= limit:
        return SearchPlan.CACHE_ONLY
    if cache_hits == 0:
        return SearchPlan.LIVE
    return SearchPlan.MERGE


class SnippetSearchResult(BaseModel):
    """Events answering one search and where they came from.

    The filters are the normalised ones used for the search (author as hex).
    """

    events: list[SnippetEvent] = Field(default_factory=list)
    source: str = "cache"
    language: str | None = None
    author: str | None = None
    query: str | None = None
    limit: int = 10

    @property
    def total(self) -> int:
        return len(self.events)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class SnippetSearchService:
    """Answers snippet searches from the cache first, topping up from live relays."""

    def __init__(
        self,
        helper_config: HelperConfig,
        cache: SnippetCache,
        fetcher: NodeFetcher,
        settings: SnippetSettings,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._cache = cache
        self._fetcher = fetcher
        self._settings = settings

    ##########################################
    ############### CORE #####################
    ##########################################

    async def search(
        self,
        language: str | None = None,
        author: str | None = None,
        query: str | None = None,
        limit: int = 10,
    ) -> SnippetSearchResult:
        """Find up to limit snippets matching all given filters.

        Args:
            language (str | None): Value of the "l" tag, case-insensitive.
            author (str | None): Hex public key or npub of the author.
            query (str | None): Free text matched against content and tags.
            limit (int): Maximum number of results.

        Returns:
            SnippetSearchResult: The events and their source. An empty result is not an error.

        Raises:
            InvalidRequestError: If no filter is given or limit is below 1.
        """
        language, author, query = _clean(language), _clean(author), _clean(query)
        if not language and not author and not query:
            raise InvalidRequestError("at least one of 'language', 'author', or 'query' must be provided")
        if limit < 1:
            raise InvalidRequestError("limit must be at least 1", field="limit")
        author = self._normalise_author(author)

        def result(events: list[SnippetEvent], source: str) -> SnippetSearchResult:
            return SnippetSearchResult(
                events=events[:limit], source=source, language=language, author=author, query=query, limit=limit
            )

        cached = self._cache.search(language, author, query, limit)
        plan = plan_search(len(cached), limit)
        self.logging.info(
            "Snippet search language=%s author=%s query=%s limit=%d: %d cache hit(s), plan %s",
            language, author, query, limit, len(cached), plan.value,
        )

        if plan is SearchPlan.CACHE_ONLY:
            return result(cached, "cache")

        if plan is SearchPlan.LIVE:
            if query and not language and not author:
                return await self._search_query_only(query, limit, result)
            return result(await self._search_targeted(language, author, query, limit), "live")

        live = await self._search_targeted(
            language, author, query, limit - len(cached), seen_ids=[event.id for event in cached]
        )
        return result(cached + live, "merged")

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _normalise_author(self, author: str | None) -> str | None:
        if not author or not PublicKeyCodec.is_npub(author):
            return author
        try:
            return PublicKeyCodec.decode_npub(author)
        except PublicKeyDecodeError as e:
            self.logging.warning("Failed to decode npub, searching with it as given: %s", e)
            return author

    async def _search_targeted(
        self,
        language: str | None,
        author: str | None,
        query: str | None,
        limit: int,
        seen_ids: list[str] | None = None,
    ) -> list[SnippetEvent]:
        node_filter = NodeFilter(
            limit=limit,
            languages=[language.lower()] if language else [],
            authors=[author] if author else [],
        )
        return await self._fetcher.fetch(
            self._settings.search_relays,
            node_filter,
            deadline_seconds=self._settings.request_timeout,
            node_ceiling=self._settings.node_timeout,
            accept=lambda event: matches_query(event, query),
            stop_at=limit,
            seen_ids=seen_ids or (),
        )

    async def _search_query_only(self, query: str, limit: int, result) -> SnippetSearchResult:
        # the refresher may have filled the cache in the meantime
        cached = self._cache.search(None, None, query, limit)
        if cached:
            return result(cached, "cache")

        node_filter = NodeFilter(limit=self._settings.query_limit)
        events = await self._fetcher.fetch(
            self._settings.query_relays,
            node_filter,
            deadline_seconds=self._settings.request_timeout,
            node_ceiling=self._settings.query_node_timeout,
            accept=lambda event: matches_query(event, query),
            stop_at=limit,
        )
        return result(events, "live")
