"""Error handling utilities for discovery HTTP responses."""

import httpx

from tfe_client_core.errors.exceptions import DiscoveryError


def raise_for_status(response: httpx.Response, hostname: str | None = None) -> None:
    """Raise DiscoveryError for non-success HTTP responses.

    Args:
        response: HTTP response object
        hostname: Host the request was made against, for the error message

    Raises:
        DiscoveryError carrying the status code and response
    """
    if response.is_success:
        return

    status_code = response.status_code

    if status_code in (401, 403):
        reason = "access denied"
    elif 400 <= status_code < 500:
        reason = "client error"
    elif 500 <= status_code < 600:
        reason = "server error"
    else:
        reason = "unexpected response"

    response_text = response.text[:200]
    target = f"host {hostname}" if hostname else "host"
    message = f"Discovery request to {target} failed ({reason}): HTTP {status_code}"
    if response_text:
        message += f": {response_text}"

    raise DiscoveryError(
        message,
        hostname=hostname,
        status_code=status_code,
        response=response,
    )
