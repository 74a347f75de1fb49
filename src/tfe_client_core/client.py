"""TFE API client and its cached construction."""

import logging
import os

import httpx

from tfe_client_core.cache import ClientCache
from tfe_client_core.configuration import ClientConfiguration, TokenSource, resolve_configuration
from tfe_client_core.discovery import TFE_SERVICE_IDS, check_constraints, resolve_service
from tfe_client_core.discovery.constraints import PRODUCT_NAME
from tfe_client_core.discovery.disco import DEFAULT_TIMEOUT
from tfe_client_core.errors import ConstraintCheckError, ConstraintsUnavailableError, VersionNotSupportedError
from tfe_client_core.transport import ServerErrorRetry
from tfe_client_core.version import DEV_VERSION, USER_AGENT, __version__

logger = logging.getLogger(__name__)

AGENT_VERSION_ENV = "TFC_AGENT_VERSION"
API_VERSION_HEADER = "TFP-API-Version"


class TFEClient:
    """Authenticated client for a discovered TFE API endpoint.

    Attributes:
        address: Base URL of the API service.
        cache_key: Fingerprint of the configuration the client was built from.
        token_source: Where the token came from.
        http: The underlying httpx client. Requests are relative to `address`.
    """

    def __init__(
        self,
        *,
        address: str,
        token: str,
        transport: httpx.BaseTransport,
        cache_key: str,
        token_source: TokenSource = TokenSource.PROVIDER_ARGUMENT,
        user_agent: str = USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.address = address
        self.cache_key = cache_key
        self.token_source = token_source
        self._retry_transport = ServerErrorRetry(wrapped_transport=transport)
        self.http = httpx.Client(
            base_url=address,
            transport=self._retry_transport,
            headers={
                "Authorization": f"Bearer {token}",
                "User-Agent": user_agent,
                "Accept": "application/vnd.api+json",
            },
            timeout=timeout,
        )

    def __repr__(self) -> str:
        return f"TFEClient(address={self.address!r})"

    def __enter__(self) -> "TFEClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def retry_server_errors(self, enabled: bool) -> None:
        """Toggle retrying idempotent requests on 5xx responses."""
        self._retry_transport.retry_server_errors = enabled

    @property
    def retries_server_errors(self) -> bool:
        return self._retry_transport.retry_server_errors

    def remote_api_version(self) -> str | None:
        """Ping the API and return the version it reports, if any."""
        response = self.http.get("ping")
        return response.headers.get(API_VERSION_HEADER)

    def send_authentication_warning(self) -> bool:
        """Whether to warn that a remote agent is using locally stored credentials."""
        return self.token_source is TokenSource.CREDENTIAL_FILES and bool(os.environ.get(AGENT_VERSION_ENV))

    def close(self) -> None:
        self.http.close()


def build_client(config: ClientConfiguration, current_version: str = __version__) -> TFEClient:
    """Discover the API endpoint for a configuration and construct a client.

    Version constraints declared by the host are checked unless running a
    development build. Failing to fetch or evaluate them is logged and
    ignored, but a violation is fatal.

    Raises:
        DiscoveryError: If the API endpoint cannot be discovered.
        ConstraintViolationError: If the host does not support this version.
    """
    host = config.discovery.discover(config.hostname)

    discovery_error: VersionNotSupportedError | None = None
    try:
        service_id, address = resolve_service(host, TFE_SERVICE_IDS)
    except VersionNotSupportedError as e:
        service_id, address, discovery_error = TFE_SERVICE_IDS[0], None, e

    if current_version != DEV_VERSION:
        try:
            constraints = host.version_constraints(service_id, PRODUCT_NAME)
            check_constraints(constraints, current_version)
        except ConstraintsUnavailableError as e:
            logger.debug(f"Skipping version constraint check: {e}")
        except ConstraintCheckError as e:
            logger.warning(str(e))

    # A constraint violation explains an unsupported version better, so it
    # is raised first.
    if discovery_error is not None:
        raise discovery_error

    client = TFEClient(
        address=str(address),
        token=config.token,
        transport=config.transport,
        cache_key=config.key(),
        token_source=config.token_source,
        timeout=config.timeout,
    )
    client.retry_server_errors(True)

    logger.debug(f"Constructed client for {address}")
    return client


default_cache: ClientCache[TFEClient] = ClientCache()


def get_client(
    hostname: str | None = None,
    token: str | None = None,
    insecure: bool = False,
    *,
    cache: ClientCache[TFEClient] | None = None,
    **kwargs,
) -> TFEClient:
    """Return a configured client, reusing a cached one for equal configurations.

    Hostname, token and TLS settings fall back to the environment and the
    Terraform CLI configuration. Discovery and version checks only run the
    first time a configuration is seen.

    Args:
        hostname: Explicit hostname.
        token: Explicit API token.
        insecure: Skip TLS certificate verification.
        cache: Client cache, defaults to the process-wide `default_cache`.
        **kwargs: Passed on to `resolve_configuration` (resolver,
            base_transport, timeout).

    Raises:
        ClientConfigurationError: Any of its subclasses, see
            `resolve_configuration` and `build_client`.
    """
    if cache is None:
        cache = default_cache

    config = resolve_configuration(hostname, token, insecure, **kwargs)
    return cache.get_or_create(config.key(), lambda: build_client(config))
