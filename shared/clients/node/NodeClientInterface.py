from abc import abstractmethod
from typing import AsyncIterator
import asyncio

from shared.clients.ClientInterface import ClientInterface
from shared.clients.node.models.NodeConnection import NodeConnection
from shared.clients.node.models.NodeFilter import NodeFilter
from shared.clients.node.models.SnippetEvent import SnippetEvent
from shared.errors.exceptions import NodeConnectionError
from shared.helper.HelperConfig import HelperConfig


class NodeClientInterface(ClientInterface):
    """Base for clients that talk to relay nodes over a streaming subscription protocol."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "node"
        """
        return "node"

    @abstractmethod
    def _get_healthcheck_url(self) -> str:
        """
        Returns the relay URL used for the startup healthcheck.

        Returns:
            str: A relay URL (e.g. "wss://relay.damus.io")
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> bool:
        """Open and close a connection to the healthcheck relay.

        Returns:
            bool: True if the relay accepted the connection.
        """
        url = self._get_healthcheck_url()
        try:
            handle = await asyncio.wait_for(self.connect(url), timeout=self.timeout)
        except (NodeConnectionError, asyncio.TimeoutError) as e:
            self.logging.warning("Relay healthcheck against %s failed: %s", url, e)
            return False
        await self.disconnect(handle)
        return True

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    @abstractmethod
    async def connect(self, url: str) -> NodeConnection:
        """Open a connection to a relay.

        Args:
            url (str): The relay URL.

        Returns:
            NodeConnection: Handle for subscribe() and disconnect().

        Raises:
            NodeConnectionError: If the relay cannot be reached.
        """
        pass

    @abstractmethod
    def subscribe(self, handle: NodeConnection, node_filter: NodeFilter) -> AsyncIterator[SnippetEvent]:
        """Open a subscription and stream its stored events.

        The stream ends when the relay signals end of stored events, closes the
        subscription or drops the connection. Closing the stream early closes the
        subscription on the relay.

        Args:
            handle (NodeConnection): An open connection.
            node_filter (NodeFilter): The subscription filter.

        Yields:
            SnippetEvent: Events in relay delivery order.

        Raises:
            NodeConnectionError: If the subscription request cannot be sent.
        """
        pass

    @abstractmethod
    async def disconnect(self, handle: NodeConnection) -> None:
        """Close a relay connection. Safe to call on an already closed handle."""
        pass
