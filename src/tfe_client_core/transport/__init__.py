"""Transport layer components for the TFE client.

Transport layers wrap httpx's HTTPTransport to add TLS policy,
request/response logging and retry logic.

Modules:
    instrumentation: Request/response logging with header redaction
    retry: Retry on rate limiting and (optionally) server errors

Example:
    ```python
    import httpx

    from tfe_client_core.transport import create_transport_stack

    ssl_context, transport = create_transport_stack(insecure=False)
    with httpx.Client(transport=transport) as client:
        client.get("https://app.terraform.io/.well-known/terraform.json")
    ```
"""

import logging
import ssl

import certifi
import httpx

from tfe_client_core.transport.instrumentation import LoggingTransport
from tfe_client_core.transport.retry import ServerErrorRetry

logger = logging.getLogger(__name__)

__all__ = [
    "LoggingTransport",
    "ServerErrorRetry",
    "create_ssl_context",
    "create_transport_stack",
]


def create_ssl_context(insecure: bool = False) -> ssl.SSLContext:
    """Create the TLS context used for all requests.

    TLS 1.2 is the minimum protocol version. Certificate and hostname
    verification are disabled only when `insecure` is True.
    """
    context = ssl.create_default_context(cafile=certifi.where())
    context.minimum_version = ssl.TLSVersion.TLSv1_2

    if insecure:
        logger.debug("Warning: Client configured to skip certificate verifications")
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    return context


def create_transport_stack(
    *,
    insecure: bool = False,
    base_transport: httpx.BaseTransport | None = None,
    name: str = "TFE",
) -> tuple[ssl.SSLContext, httpx.BaseTransport]:
    """Build the instrumented transport shared by discovery and the client.

    Args:
        insecure: Skip certificate verification.
        base_transport: Transport to wrap instead of an HTTPTransport built
            from the TLS context (tests pass an httpx.MockTransport).
        name: Label used by the logging transport.

    Returns:
        Tuple of (TLS context, instrumented transport).
    """
    ssl_context = create_ssl_context(insecure)
    if base_transport is None:
        base_transport = httpx.HTTPTransport(verify=ssl_context)
    return ssl_context, LoggingTransport(name, wrapped_transport=base_transport)
