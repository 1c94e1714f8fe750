"""Sequential collection of events from a list of relays under a deadline."""

from contextlib import aclosing
from typing import Callable, Iterable
import asyncio

from shared.clients.node.NodeClientInterface import NodeClientInterface
from shared.clients.node.models.NodeConnection import NodeConnection
from shared.clients.node.models.NodeFilter import NodeFilter
from shared.clients.node.models.SnippetEvent import SnippetEvent
from shared.errors.exceptions import NodeConnectionError
from shared.helper.HelperConfig import HelperConfig

# seconds; relays are not asked once less time than this is left
MIN_NODE_BUDGET = 0.01


class NodeFetcher:
    """Asks relays one after another and gathers their stored events.

    Each relay gets the smaller of the per-relay ceiling and the time left
    until the overall deadline. A relay that fails or runs out of time is
    skipped; events it delivered before that are kept.
    """

    def __init__(self, helper_config: HelperConfig, node_client: NodeClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._node_client = node_client
        self._closing: set[asyncio.Task] = set()

    async def fetch(
        self,
        relays: Iterable[str],
        node_filter: NodeFilter,
        deadline_seconds: float,
        node_ceiling: float | None = None,
        accept: Callable[[SnippetEvent], bool] | None = None,
        stop_at: int | None = None,
        seen_ids: Iterable[str] = (),
    ) -> list[SnippetEvent]:
        """Collect events from relays in order.

        Args:
            relays (Iterable[str]): Relay URLs, asked in the given order.
            node_filter (NodeFilter): Subscription filter sent to every relay.
            deadline_seconds (float): Time budget for the whole fetch.
            node_ceiling (float | None): Upper bound for a single relay.
            accept (Callable | None): Local predicate an event must satisfy.
            stop_at (int | None): Stop once this many events were collected.
            seen_ids (Iterable[str]): Event ids that must not be returned.

        Returns:
            list[SnippetEvent]: Accepted events, without duplicate ids, in arrival order.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + deadline_seconds
        sink: list[SnippetEvent] = []
        seen = set(seen_ids)

        for url in relays:
            remaining = deadline - loop.time()
            if remaining < MIN_NODE_BUDGET:
                self.logging.info("Deadline reached, not asking relay %s", url)
                break
            budget = remaining if node_ceiling is None else min(node_ceiling, remaining)
            collected_before = len(sink)
            try:
                await asyncio.wait_for(
                    self._fetch_from_node(url, node_filter, sink, seen, accept, stop_at),
                    timeout=budget,
                )
            except NodeConnectionError as e:
                self.logging.warning("Skipping relay %s: %s", url, e.message)
            except asyncio.TimeoutError:
                self.logging.info(
                    "Relay %s timed out after %.1fs, keeping %d event(s)", url, budget, len(sink) - collected_before
                )
            else:
                self.logging.debug("Relay %s delivered %d event(s)", url, len(sink) - collected_before)

            if stop_at is not None and len(sink) >= stop_at:
                break
        return sink

    async def _fetch_from_node(
        self,
        url: str,
        node_filter: NodeFilter,
        sink: list[SnippetEvent],
        seen: set[str],
        accept: Callable[[SnippetEvent], bool] | None,
        stop_at: int | None,
    ) -> None:
        handle = await self._node_client.connect(url)
        detached = False
        try:
            async with aclosing(self._node_client.subscribe(handle, node_filter)) as events:
                async for event in events:
                    if event.id in seen:
                        continue
                    if accept is not None and not accept(event):
                        continue
                    seen.add(event.id)
                    sink.append(event)
                    if stop_at is not None and len(sink) >= stop_at:
                        break
        except asyncio.CancelledError:
            # deadline passed, close without waiting for the handshake
            detached = True
            self._disconnect_in_background(handle)
            raise
        finally:
            if not detached:
                await self._node_client.disconnect(handle)

    def _disconnect_in_background(self, handle: NodeConnection) -> None:
        task = asyncio.create_task(self._node_client.disconnect(handle), name=f"node-disconnect-{handle.url}")
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)
