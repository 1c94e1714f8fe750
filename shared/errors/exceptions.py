"""Exception hierarchy for the NIPs RAG bridge.

Validation errors are raised before any collaborator is contacted. Collaborator
errors wrap the transport exception that caused them. Not-found errors are only
raised for the documentation resources; empty search results are never errors.
"""

from typing import Any


class BridgeError(Exception):
    """Base exception for all bridge errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidRequestError(BridgeError):
    """Raised when request input fails validation."""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class RetrievalError(BridgeError):
    """Raised when the embedding or vector index call of a foreground query fails."""

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(f"Error during {stage}: {reason}", {"stage": stage})
        self.stage = stage


class NodeConnectionError(BridgeError):
    """Raised when a relay cannot be reached or drops the connection."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Relay {url} unavailable: {reason}", {"url": url})
        self.url = url


class PublicKeyDecodeError(BridgeError):
    """Raised when an encoded public key is not valid NIP-19 bech32."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"Cannot decode public key {value!r}: {reason}", {"value": value})


class DocumentSourceNotFoundError(BridgeError):
    """Raised when the documentation source file is missing."""

    def __init__(self, path: str) -> None:
        super().__init__(f"NIPs repository README not found at {path}", {"path": path})
        self.path = path


class DocumentSourceUnreadableError(BridgeError):
    """Raised when the documentation source exists but cannot be read or decoded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"NIPs repository README at {path} cannot be read: {reason}", {"path": path})
        self.path = path


class SectionNotFoundError(BridgeError):
    """Raised when a named section is missing from the documentation source."""

    def __init__(self, section: str) -> None:
        super().__init__(f"{section} section not found in README", {"section": section})
        self.section = section


class BackendRequestError(BridgeError):
    """Raised when an HTTP backend (embedding, vector index) answers with an error status."""

    def __init__(self, url: str, status_code: int, body: str = "") -> None:
        super().__init__(f"Request to {url} failed with status {status_code}", {"status_code": status_code, "body": body[:200]})
        self.url = url
        self.status_code = status_code
