from typing import Any, AsyncIterator
import asyncio
import json
import uuid

import aiohttp
from pydantic import ValidationError

from shared.clients.node.NodeClientInterface import NodeClientInterface
from shared.clients.node.models.NodeConnection import NodeConnection
from shared.clients.node.models.NodeFilter import NodeFilter
from shared.clients.node.models.SnippetEvent import SnippetEvent
from shared.errors.exceptions import NodeConnectionError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class NodeClientNostr(NodeClientInterface):
    """Nostr relay client over websockets (NIP-01 REQ / EVENT / EOSE / CLOSE)."""

    def __init__(self, helper_config: HelperConfig):
        self._session: aiohttp.ClientSession | None = None
        super().__init__(helper_config=helper_config)
        self._healthcheck_url = self.get_config_val("HEALTHCHECK_URL", default="wss://relay.damus.io", val_type="string")
        self._max_msg_size = int(self.get_config_val("MAX_MESSAGE_SIZE", default=4 * 1024 * 1024, val_type="number"))
        self._close_timeout = self.get_config_val("CLOSE_TIMEOUT", default=2.0, val_type="number")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Nostr"

    def _get_healthcheck_url(self) -> str:
        return self._healthcheck_url

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="HEALTHCHECK_URL", val_type="string", default="wss://relay.damus.io"),
            EnvConfig(env_key="MAX_MESSAGE_SIZE", val_type="number", default=4 * 1024 * 1024),
            EnvConfig(env_key="CLOSE_TIMEOUT", val_type="number", default=2.0),
        ]

    ##########################################
    ############ WIRE PROTOCOL ###############
    ##########################################

    @staticmethod
    def build_request(sub_id: str, node_filter: NodeFilter) -> str:
        return json.dumps(["REQ", sub_id, node_filter.to_wire()])

    @staticmethod
    def build_close(sub_id: str) -> str:
        return json.dumps(["CLOSE", sub_id])

    @staticmethod
    def parse_message(raw: str) -> list[Any] | None:
        """Decode a relay message into its JSON array.

        Returns:
            list[Any] | None: The message, or None if it is not a non-empty JSON array
                starting with a string label.
        """
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(message, list) or not message or not isinstance(message[0], str):
            return None
        return message

    def _to_event(self, raw: Any, url: str) -> SnippetEvent | None:
        if not isinstance(raw, dict):
            return None
        try:
            return SnippetEvent.from_wire(raw)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            self.logging.debug("Dropping malformed event from %s: %s", url, e)
            return None

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self) -> None:
        """Initialise the websocket session."""
        self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=None, sock_connect=self.timeout))

    async def close(self) -> None:
        """Close the websocket session and every connection opened through it."""
        if self._session:
            await self._session.close()
            self._session = None

    async def connect(self, url: str) -> NodeConnection:
        if self._session is None:
            raise Exception("Websocket session not initialised. Call boot() before connecting.")
        try:
            ws = await self._session.ws_connect(url, max_msg_size=self._max_msg_size, autoping=True)
        except (aiohttp.ClientError, OSError) as e:
            raise NodeConnectionError(url, str(e) or e.__class__.__name__) from e
        self.logging.debug("Connected to relay %s", url)
        return NodeConnection(url=url, transport=ws)

    async def subscribe(self, handle: NodeConnection, node_filter: NodeFilter) -> AsyncIterator[SnippetEvent]:
        ws: aiohttp.ClientWebSocketResponse = handle.transport
        sub_id = uuid.uuid4().hex[:16]
        try:
            await ws.send_str(self.build_request(sub_id, node_filter))
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise NodeConnectionError(handle.url, str(e) or e.__class__.__name__) from e

        try:
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.ERROR:
                    self.logging.debug("Websocket error from %s: %s", handle.url, ws.exception())
                    break
                if msg.type != aiohttp.WSMsgType.TEXT:
                    continue

                message = self.parse_message(msg.data)
                if message is None:
                    continue
                label = message[0]

                if label == "EVENT" and len(message) >= 3 and message[1] == sub_id:
                    event = self._to_event(message[2], handle.url)
                    if event is not None:
                        yield event
                elif label == "EOSE" and message[1:2] == [sub_id]:
                    break
                elif label == "CLOSED" and message[1:2] == [sub_id]:
                    reason = message[2] if len(message) > 2 else ""
                    self.logging.info("Relay %s closed subscription: %s", handle.url, reason)
                    break
                elif label == "NOTICE":
                    self.logging.debug("Notice from %s: %s", handle.url, message[1:])
        except (aiohttp.ClientError, ConnectionResetError) as e:
            raise NodeConnectionError(handle.url, str(e) or e.__class__.__name__) from e
        finally:
            if handle.is_open:
                try:
                    await ws.send_str(self.build_close(sub_id))
                except (aiohttp.ClientError, ConnectionResetError) as e:
                    self.logging.debug("Could not close subscription on %s: %s", handle.url, e)

    async def disconnect(self, handle: NodeConnection) -> None:
        if not handle.is_open:
            return
        try:
            await asyncio.wait_for(handle.transport.close(), timeout=self._close_timeout)
        except (aiohttp.ClientError, ConnectionResetError, asyncio.TimeoutError) as e:
            self.logging.debug("Error while closing relay %s: %s", handle.url, e)
