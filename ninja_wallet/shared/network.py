"""HTTP transport to the replica gateway: timeouts and error classification.

Every request is attempted once; failures surface as ``NetworkError`` and
the caller decides what the user sees.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

import requests
from requests.exceptions import ConnectionError, HTTPError, Timeout

logger = logging.getLogger(__name__)


class NetworkErrorType(Enum):
    TIMEOUT = "timeout"
    CONNECTION_ERROR = "connection_error"
    HTTP_ERROR = "http_error"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


@dataclass
class NetworkError(Exception):
    error_type: NetworkErrorType
    message: str
    original_error: Exception | None = None
    status_code: int | None = None
    response_text: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class TimeoutConfig:
    connect_timeout: float = 5.0
    read_timeout: float = 30.0

    @property
    def request_timeout(self) -> tuple[float, float]:
        return (self.connect_timeout, self.read_timeout)


DEFAULT_TIMEOUT_CONFIG = TimeoutConfig()

# Checked in order: ConnectTimeout is both a Timeout and a ConnectionError.
_ERROR_CLASSES: tuple[tuple[type[Exception], NetworkErrorType], ...] = (
    (Timeout, NetworkErrorType.TIMEOUT),
    (ConnectionError, NetworkErrorType.CONNECTION_ERROR),
    (HTTPError, NetworkErrorType.HTTP_ERROR),
    (ValueError, NetworkErrorType.INVALID_RESPONSE),
)


def classify_error(error: Exception) -> NetworkErrorType:
    for error_class, error_type in _ERROR_CLASSES:
        if isinstance(error, error_class):
            return error_type
    return NetworkErrorType.UNKNOWN


def create_network_error(
    error: Exception, base_url: str, context: str = ""
) -> NetworkError:
    """Wrap a ``requests`` failure with a message naming the replica."""
    error_type = classify_error(error)
    status_code = None
    response_text = None

    if error_type is NetworkErrorType.TIMEOUT:
        detail = f"Connection timeout waiting for the replica at {base_url}"
    elif error_type is NetworkErrorType.CONNECTION_ERROR:
        detail = f"Cannot connect to {base_url}. Is the replica running?"
    elif error_type is NetworkErrorType.HTTP_ERROR:
        response = getattr(error, "response", None)
        status_code = getattr(response, "status_code", None)
        response_text = getattr(response, "text", None)
        detail = f"HTTP error {status_code}: {response_text or 'no response body'}"
    elif error_type is NetworkErrorType.INVALID_RESPONSE:
        detail = f"Replica at {base_url} returned a body that is not JSON"
    else:
        detail = f"Network error: {error}"

    return NetworkError(
        error_type=error_type,
        message=f"{context}: {detail}" if context else detail,
        original_error=error,
        status_code=status_code,
        response_text=response_text,
    )


class NetworkClient:
    """JSON-over-HTTP client bound to one gateway URL."""

    def __init__(
        self,
        base_url: str,
        timeout_config: TimeoutConfig | None = None,
        default_headers: dict[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_config = timeout_config or DEFAULT_TIMEOUT_CONFIG
        self.default_headers = dict(default_headers or {})

    def _send(
        self, call: Callable[..., Any], endpoint: str, context: str, **kwargs: Any
    ) -> dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        headers = {**self.default_headers, **(kwargs.pop("headers", None) or {})}
        try:
            response = call(
                url,
                headers=headers,
                timeout=self.timeout_config.request_timeout,
                **kwargs,
            )
            response.raise_for_status()
            return response.json()
        except Exception as e:
            logger.warning("Request to %s failed: %s", url, e)
            raise create_network_error(e, self.base_url, context) from e

    def get(
        self,
        endpoint: str,
        context: str = "",
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return self._send(requests.get, endpoint, context, headers=headers)

    def post(
        self,
        endpoint: str,
        payload: dict[str, Any],
        context: str = "",
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        return self._send(
            requests.post, endpoint, context, json=payload, headers=headers
        )
