from abc import abstractmethod
from typing import Any

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.errors.exceptions import BackendRequestError
from shared.helper.HelperConfig import HelperConfig


class HttpClientInterface(ClientInterface):
    """Base for the JSON over HTTP backends: the embedding server and the vector index."""

    def __init__(self, helper_config: HelperConfig):
        self._client: httpx.AsyncClient | None = None
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers authenticating against the backend, empty when no key is configured."""
        pass

    @abstractmethod
    def _get_base_url(self) -> str:
        """E.g. "http://localhost:6333"."""
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    def _build_url(self, endpoint: str) -> str:
        endpoint = endpoint.strip().lstrip("/")
        base_url = self._get_base_url().rstrip("/")
        return f"{base_url}/{endpoint}" if endpoint else base_url

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self) -> None:
        self._client = httpx.AsyncClient(timeout=self.timeout, headers=self._get_auth_header())

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> httpx.Response:
        """GET the healthcheck endpoint. Never raises on an error status."""
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: Any = None,
        params: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send a request to the backend, JSON encoding the body if one is given.

        Args:
            method: HTTP method.
            endpoint: Path below the base URL, leading slash optional.
            json: Body, sent as application/json.
            params: URL query parameters.
            raise_on_error: Raise on any status >= 300.

        Raises:
            BackendRequestError: On status >= 300 when raise_on_error is set.
            httpx.HTTPError: If the transport fails.
        """
        if self._client is None:
            raise Exception("HTTP client not initialised. Call boot() before making requests.")

        url = self._build_url(endpoint)
        response = await self._client.request(method, url, json=json, params=params)

        if raise_on_error and response.status_code >= 300:
            self.logging.error("Request to %s failed with status %d: %s", url, response.status_code, response.text[:200])
            raise BackendRequestError(url, response.status_code, response.text)
        return response
