"""Exception hierarchy for the Hastic analytic client.

Connectivity and data-contract failures propagate to the caller. Protocol
and configuration problems found while probing the datasource are reported
through notifications instead, and the probe returns ``False``.
"""

from __future__ import annotations


class HasticClientError(Exception):
    """Base class for all errors raised by the client."""

    pass


class ConfigurationError(HasticClientError):
    """Raised when the Hastic datasource URL is missing.

    Example:
        >>> raise ConfigurationError("hastic_datasource_url is not set")
    """

    pass


class TransportError(HasticClientError):
    """Raised by a transport when a request did not produce a 2xx response.

    Attributes:
        status: HTTP status code, or -1 when no response was received.
        status_text: Reason phrase or transport error description.
        completion: How the request ended: "complete" when a response was
            received, otherwise "error", "timeout" or "abort".
    """

    def __init__(self, status: int, status_text: str = "", completion: str = "complete") -> None:
        self.status = status
        self.status_text = status_text
        self.completion = completion
        super().__init__(f"HTTP {status} {status_text}".rstrip())

    @property
    def completed(self) -> bool:
        """Whether the server sent back a response."""
        return self.completion == "complete"


class ConnectivityError(HasticClientError):
    """Raised when the Hastic server could not be reached.

    Covers aborted or timed-out requests and responses with status above 500.
    """

    def __init__(self, status: int, status_text: str) -> None:
        self.status = status
        self.status_text = status_text
        super().__init__(f"Fetching error: {status_text}")


class ServerError(HasticClientError):
    """Raised for a completed response with status 500 or below.

    The dispatcher only raises this when the caller asks for it with
    ``raise_server_errors=True``. Otherwise such calls resolve to ``None``.
    """

    def __init__(self, status: int, status_text: str = "") -> None:
        self.status = status
        self.status_text = status_text
        super().__init__(f"Server responded with {status} {status_text}".rstrip())


class DataContractError(HasticClientError):
    """Raised when a response is missing a field the caller requires."""

    pass
