from abc import ABC, abstractmethod
from typing import Any

from shared.models.config import EnvConfig
from shared.helper.HelperConfig import HelperConfig

# config keys whose values never show up in logs
SECRET_KEY_MARKERS = ("KEY", "TOKEN", "SECRET", "PASSWORD")


class ClientInterface(ABC):
    """Base of every backend client (embedding, vector index, relay).

    A client is configured from "<TYPE>_<ENGINE>_<KEY>" environment variables,
    validated on construction, and must be booted before use and closed after.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self.validate_full_configuration()

    async def __aenter__(self) -> "ClientInterface":
        await self.boot()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every declared config key once so a missing or malformed value fails at startup.

        Raises:
            ValueError: If any required configuration value is missing or invalid.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        """
        Returns the type of the client in lowercase. E.g. "node"
        """
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    def get_engine_name(self) -> str:
        """
        Returns the engine of the client in lowercase. E.g. "nostr"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns all configuration keys the client reads.

        Returns:
            list[EnvConfig]: Key, type and default of each setting. A default of None marks it required.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The full environment variable name. E.g. "RAG_QDRANT_API_KEY"
        """
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads one of the client's own settings.

        Args:
            raw_key (str): The key without the "<TYPE>_<ENGINE>_" prefix
            default (Any): Fallback if unset. None makes the key required
            val_type (str): "string", "number", "bool" or "list"
        """
        return self._helper_config.get_val(self._get_config_key_name(raw_key), val_type=val_type, default=default)

    def describe_config(self) -> dict[str, Any]:
        """
        Returns the resolved settings of the client keyed by full variable name, secrets masked.
        """
        described: dict[str, Any] = {}
        for config in self._get_required_config():
            key = self._get_config_key_name(config.env_key)
            value = self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)
            if value and any(marker in config.env_key.upper() for marker in SECRET_KEY_MARKERS):
                value = "***"
            described[key] = value
        return described

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    @abstractmethod
    async def boot(self) -> None:
        """Open the underlying transport."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying transport. Safe to call twice."""
        pass
