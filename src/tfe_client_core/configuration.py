"""Resolution of explicit inputs, environment and CLI config into a client configuration.

Each setting is defaulted independently:

- Hostname: explicit argument, then ``TFE_HOSTNAME``, then ``app.terraform.io``.
- Insecure: an explicit True always wins; an explicit False can still be
  switched on by ``TFE_SSL_SKIP_VERIFY``.
- Token: explicit argument, then ``TFE_TOKEN``, then ``TF_TOKEN_<host>``,
  then the CLI config and credentials files.
"""

import hashlib
import logging
import ssl
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache

import httpx

from tfe_client_core.auth import CredentialResolver, load_cli_config
from tfe_client_core.discovery import Discovery, normalize_hostname
from tfe_client_core.discovery.disco import DEFAULT_TIMEOUT
from tfe_client_core.errors import MissingAuthTokenError
from tfe_client_core.transport import create_transport_stack
from tfe_client_core.version import USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_HOSTNAME = "app.terraform.io"

TOKEN_ENV = "TFE_TOKEN"
HOSTNAME_ENV = "TFE_HOSTNAME"
SSL_SKIP_VERIFY_ENV = "TFE_SSL_SKIP_VERIFY"


class TokenSource(Enum):
    """Where the resolved token came from."""

    PROVIDER_ARGUMENT = "provider_argument"
    ENVIRONMENT_VARIABLE = "environment_variable"
    CREDENTIAL_FILES = "credential_files"


@dataclass(frozen=True, eq=False)
class ClientConfiguration:
    """The refined information needed to construct a TFE client.

    The hostname is always in comparison form and the token is never empty.
    """

    discovery: Discovery
    transport: httpx.BaseTransport
    ssl_context: ssl.SSLContext
    hostname: str
    token: str = field(repr=False)
    insecure: bool = False
    token_source: TokenSource = TokenSource.PROVIDER_ARGUMENT
    timeout: float = DEFAULT_TIMEOUT

    def key(self) -> str:
        """Return a fingerprint comparable across configurations.

        Equal (token, hostname, insecure) triples always produce equal keys.
        """
        digest = hashlib.sha256(self.token.encode("utf-8")).hexdigest()
        return f"{digest} {self.hostname}/{self.insecure}"


@lru_cache
def default_resolver() -> CredentialResolver:
    return CredentialResolver()


def resolve_configuration(
    hostname: str | None = None,
    token: str | None = None,
    insecure: bool = False,
    *,
    resolver: CredentialResolver | None = None,
    base_transport: httpx.BaseTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ClientConfiguration:
    """Resolve a client configuration, falling back to environment and CLI config.

    Args:
        hostname: Explicit hostname, optionally with a port.
        token: Explicit API token.
        insecure: Skip TLS certificate verification.
        resolver: Value resolver, defaults to a shared one that loads `.env`.
        base_transport: Transport to send requests with instead of a real
            HTTP transport.
        timeout: Timeout in seconds for every request.

    Raises:
        InvalidHostnameError: If the hostname cannot be normalized.
        InvalidSettingError: If TFE_SSL_SKIP_VERIFY is not a boolean.
        MissingAuthTokenError: If no token is found in any source.
    """
    resolver = resolver or default_resolver()

    raw_host = resolver.resolve(value=hostname, env_var_name=HOSTNAME_ENV, default=DEFAULT_HOSTNAME, mask_in_logs=False)
    logger.debug(f"Configuring client for host {raw_host!r}")

    # The environment can only switch this on: an explicit False looks the
    # same as an unset value.
    insecure = resolver.resolve_flag(value=insecure, env_var_name=SSL_SKIP_VERIFY_ENV)

    normalized_host = normalize_hostname(raw_host)

    ssl_context, transport = create_transport_stack(insecure=insecure, base_transport=base_transport)

    cli_config = load_cli_config()
    for problem in cli_config.diagnostics:
        logger.debug(f"Ignoring CLI config problem: {problem}")

    credentials_source = cli_config.credentials_source()
    discovery = Discovery(
        credentials_source=credentials_source,
        transport=transport,
        user_agent=USER_AGENT,
        timeout=timeout,
    )
    for host, services in cli_config.hosts.items():
        discovery.force_host_services(host, services)

    token_source = TokenSource.PROVIDER_ARGUMENT
    resolved_token = resolver.resolve(value=token, env_var_name=TOKEN_ENV)
    if resolved_token and not token:
        token_source = TokenSource.ENVIRONMENT_VARIABLE

    if not resolved_token:
        resolved_token = resolver.resolve_host_token(normalized_host)
        token_source = TokenSource.ENVIRONMENT_VARIABLE

    if not resolved_token:
        logger.debug(f"Attempting to fetch token from CLI configuration for hostname {normalized_host}...")
        creds = credentials_source.for_host(normalized_host)
        if creds is not None:
            resolved_token = creds.token
            token_source = TokenSource.CREDENTIAL_FILES

    if not resolved_token:
        raise MissingAuthTokenError(hostname=normalized_host)

    return ClientConfiguration(
        discovery=discovery,
        transport=transport,
        ssl_context=ssl_context,
        hostname=normalized_host,
        token=resolved_token,
        insecure=insecure,
        token_source=token_source,
        timeout=timeout,
    )
