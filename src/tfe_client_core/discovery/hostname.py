"""Hostname normalization for comparison and credential lookups."""

import idna

from tfe_client_core.errors import InvalidHostnameError

DEFAULT_HTTPS_PORT = 443


def normalize_hostname(given: str) -> str:
    """Normalize a user-supplied hostname into its comparison form.

    The hostname is lowercased and IDNA-encoded (UTS #46 mapping), so that
    "Café.example" and "xn--caf-dma.example" compare equal. An optional
    port is kept unless it is the default HTTPS port.

    Args:
        given: Hostname as provided by configuration, optionally with ":port".

    Returns:
        The normalized hostname.

    Raises:
        InvalidHostnameError: If the hostname or port is not valid.
    """
    host, sep, port = given.strip().partition(":")

    if not host:
        raise InvalidHostnameError(f"empty string is not a valid hostname: {given!r}", hostname=given)

    port_portion = ""
    if sep:
        if not port.isdigit():
            raise InvalidHostnameError(f"invalid port number in hostname {given!r}", hostname=given)
        port_number = int(port)
        if not 0 < port_number < 65536:
            raise InvalidHostnameError(f"port number out of range in hostname {given!r}", hostname=given)
        if port_number != DEFAULT_HTTPS_PORT:
            port_portion = f":{port_number}"

    try:
        normalized = idna.encode(host, uts46=True).decode("ascii")
    except idna.IDNAError as e:
        raise InvalidHostnameError(f"invalid hostname {given!r}: {e}", hostname=given) from e

    return normalized + port_portion


def hostname_from_env_suffix(suffix: str) -> str:
    """Convert the host portion of a TF_TOKEN_* variable name into a hostname.

    Double underscores stand for hyphens and single underscores for dots,
    since neither character is valid in most shells' variable names.
    """
    return normalize_hostname(suffix.replace("__", "-").replace("_", "."))
