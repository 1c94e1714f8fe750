"""Background task keeping the snippet cache filled."""

import asyncio
import contextlib

from services.snippets.NodeFetcher import NodeFetcher
from services.snippets.SnippetCache import SnippetCache
from shared.clients.node.models.NodeFilter import NodeFilter
from shared.helper.HelperConfig import HelperConfig
from shared.models.settings import SnippetSettings


class SnippetCacheRefresher:
    """Refreshes the SnippetCache right away and then every refresh interval until stopped."""

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
        self._task: asyncio.Task | None = None

    ##########################################
    ################ LIFECYCLE ###############
    ##########################################

    def start(self) -> None:
        """Schedule the refresh loop on the running event loop. Calling it twice is a no-op."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.create_task(self._run(), name="snippet-cache-refresher")
        self.logging.info(
            "Snippet cache refresher started (interval %ss, %d relays)",
            self._settings.refresh_interval, len(self._settings.refresh_relays),
        )

    async def stop(self) -> None:
        """Cancel the refresh loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        self.logging.info("Snippet cache refresher stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    ##########################################
    ################ REFRESH #################
    ##########################################

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logging.error("Snippet cache refresh failed: %s", e)
            await asyncio.sleep(self._settings.refresh_interval)

    async def refresh_once(self) -> int:
        """Run one refresh cycle.

        Returns:
            int: Number of events now cached, or 0 if the cycle collected nothing
                and the previous snapshot was kept.
        """
        node_filter = NodeFilter(limit=self._settings.refresh_limit)
        events = await self._fetcher.fetch(
            self._settings.refresh_relays,
            node_filter,
            deadline_seconds=self._settings.refresh_timeout,
        )
        if not events:
            self.logging.warning(
                "No code snippets collected, keeping %d cached event(s)", len(self._cache)
            )
            return 0

        snapshot = await self._cache.replace(events)
        self.logging.info(
            "Snippet cache refreshed with %d event(s) at %s",
            len(snapshot.events), snapshot.last_refresh.isoformat(), color="green",
        )
        return len(snapshot.events)
