"""Environment backed configuration for the NIPs RAG bridge.

Every setting is an upper-case environment variable. Client settings follow
the "<TYPE>_<ENGINE>_<KEY>" scheme (e.g. RAG_QDRANT_BASE_URL), service
settings use a plain prefix (e.g. SNIPPETS_REFRESH_INTERVAL).
"""

import logging
import os
from typing import Any
from urllib.parse import urlparse

RELAY_SCHEMES = ("ws", "wss")


class HelperConfig:
    """Typed access to environment variables plus the shared application logger."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    ##########################################
    ################ READERS #################
    ##########################################

    def _read_raw(self, key: str, default: Any) -> tuple[str, str | None]:
        """Return the normalised key and its stripped raw value, None if unset or blank.

        Raises:
            ValueError: If the variable is unset and there is no default.
        """
        key = key.upper()
        raw = (os.getenv(key) or "").strip() or None
        if raw is None and default is None:
            raise ValueError(f"Environment variable '{key}' is not set.")
        return key, raw

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable.

        Args:
            key (str): Environment variable name (case-insensitive).
            default (str | None): Fallback if the variable is unset or blank. None makes it required.

        Returns:
            str: The stripped value or the default.
        """
        _, raw = self._read_raw(key, default)
        return raw if raw is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int or float environment variable.

        Raises:
            ValueError: If the variable is required but unset, or not a number.
        """
        key, raw = self._read_raw(key, default)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean environment variable. "true", "1" and "yes" are truthy."""
        _, raw = self._read_raw(key, default)
        if raw is None:
            return default
        return raw.lower() in ("true", "1", "yes")

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list environment variable written as "[elem1,elem2,...]".

        Args:
            key (str): Environment variable name (case-insensitive).
            default (list | None): Fallback if the variable is unset. None makes it required.
            separator (str): Delimiter between elements.
            element_type (type): Type every element is cast to.

        Returns:
            list: The elements, blank ones dropped. A copy of the default if unset.

        Raises:
            ValueError: If the value is not wrapped in brackets or an element cannot be cast.
        """
        key, raw = self._read_raw(key, default)
        if raw is None:
            return list(default)
        if not raw.startswith("[") or not raw.endswith("]"):
            raise ValueError(f"Environment variable '{key}' must be in the format '[elem1{separator}elem2{separator}...]'. Got: '{raw}'")

        elements = [v.strip() for v in raw[1:-1].split(separator) if v.strip()]
        try:
            return [element_type(elem) for elem in elements]
        except ValueError as e:
            raise ValueError(f"Environment variable '{key}' contains invalid elements: {e}. Type set to {element_type.__name__}. Got: '{raw}'")

    def get_relay_list_val(self, key: str, default: list[str] | None = None) -> list[str]:
        """Read a list of relay websocket URLs.

        Trailing slashes are dropped and duplicates removed, keeping the first
        occurrence so the configured order is the query order.

        Raises:
            ValueError: If an entry is not a ws:// or wss:// URL with a host.
        """
        relays: list[str] = []
        for url in self.get_list_val(key, default=default):
            parsed = urlparse(url)
            if parsed.scheme.lower() not in RELAY_SCHEMES or not parsed.netloc:
                raise ValueError(f"Environment variable '{key.upper()}' contains an invalid relay URL: '{url}'.")
            url = url.rstrip("/")
            if url not in relays:
                relays.append(url)
        return relays

    def get_val(self, key: str, val_type: str = "string", default: Any = None) -> Any:
        """Read a variable by the type name used in EnvConfig.

        Raises:
            ValueError: If val_type is not one of "string", "number", "bool", "list".
        """
        readers = {
            "string": self.get_string_val,
            "number": self.get_number_val,
            "bool": self.get_bool_val,
            "list": self.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported config value type '{val_type}' for env key '{key.upper()}'.")
        return readers[val_type](key, default=default)

    ##########################################
    ################ LOGGING #################
    ##########################################

    def get_logger(self) -> logging.Logger:
        return self._logger
