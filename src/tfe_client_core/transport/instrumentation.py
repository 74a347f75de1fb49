"""Request/response logging transport."""

import logging
import os

import httpx

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "TF_LOG"

# Header values never written to logs.
REDACTED_HEADERS = frozenset(["authorization", "proxy-authorization"])


def is_debug_or_higher() -> bool:
    """Whether TF_LOG asks for DEBUG or TRACE output, or the logger is at DEBUG."""
    level = os.environ.get(LOG_LEVEL_ENV, "").upper()
    return level in ("DEBUG", "TRACE") or logger.isEnabledFor(logging.DEBUG)


def format_headers(headers: httpx.Headers) -> str:
    lines = []
    for name, value in headers.items():
        if name.lower() in REDACTED_HEADERS:
            value = "***"
        lines.append(f"{name}: {value}")
    return "\n".join(lines)


class LoggingTransport(httpx.BaseTransport):
    """Logs every request and response passing through the wrapped transport.

    Args:
        name: Label prepended to each log line.
        wrapped_transport: The underlying transport to wrap.
    """

    def __init__(self, name: str, *, wrapped_transport: httpx.BaseTransport) -> None:
        self.name = name
        self._wrapped_transport = wrapped_transport

    def close(self) -> None:
        self._wrapped_transport.close()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        enabled = is_debug_or_higher()

        if enabled:
            logger.debug(
                f"{self.name} API Request Details:\n---[ REQUEST ]---\n"
                f"{request.method} {request.url}\n{format_headers(request.headers)}"
            )

        response = self._wrapped_transport.handle_request(request)

        if enabled:
            logger.debug(
                f"{self.name} API Response Details:\n---[ RESPONSE ]---\n"
                f"{response.status_code} {request.method} {request.url}\n{format_headers(response.headers)}"
            )

        return response
