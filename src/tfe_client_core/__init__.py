"""TFE Client Core - connection bootstrap for Terraform Enterprise API clients.

This library turns a small set of optional inputs into a configured,
authenticated and cached API client:
- Hostname, token and TLS settings resolved from arguments, environment
  variables and the Terraform CLI config / credentials files
- Service discovery through the host's well-known document
- Remote-declared version constraint checks with upgrade/downgrade guidance
- One cached client per distinct configuration, safe under concurrent callers

Example:
    ```python
    from tfe_client_core import get_client

    # Falls back to TFE_HOSTNAME / TFE_TOKEN / ~/.terraformrc
    client = get_client()

    response = client.http.get("organizations")
    ```
"""

from tfe_client_core.cache import ClientCache
from tfe_client_core.client import TFEClient, build_client, default_cache, get_client
from tfe_client_core.configuration import ClientConfiguration, TokenSource, resolve_configuration
from tfe_client_core.version import __version__

__all__ = [
    "ClientCache",
    "ClientConfiguration",
    "TFEClient",
    "TokenSource",
    "__version__",
    "build_client",
    "default_cache",
    "get_client",
    "resolve_configuration",
]
