"""Remote service discovery.

A host advertises the services it provides in a JSON document published at
``https://<host>/.well-known/terraform.json``, mapping versioned service
identifiers (``tfe.v2``, ``versions.v1``, ...) to URLs relative to the
document. This module fetches that document, resolves service URLs from it
and fetches the version constraints a host declares for its clients.

Example:
    ```python
    from tfe_client_core.discovery import Discovery, resolve_service

    discovery = Discovery()
    host = discovery.discover("app.terraform.io")
    service_id, address = resolve_service(host, ("tfe.v2.2", "tfe.v2.1", "tfe.v2"))
    ```
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from tfe_client_core.discovery.constraints import VersionConstraints
from tfe_client_core.errors import (
    ConstraintsUnavailableError,
    DiscoveryError,
    ServiceNotProvidedError,
    VersionNotSupportedError,
    raise_for_status,
)
from tfe_client_core.version import USER_AGENT

if TYPE_CHECKING:
    from tfe_client_core.auth.cli_config import StaticCredentialsSource

logger = logging.getLogger(__name__)

WELL_KNOWN_PATH = "/.well-known/terraform.json"
VERSIONS_SERVICE_ID = "versions.v1"
MAX_REDIRECTS = 3
DEFAULT_TIMEOUT = 30.0

# Most specific first.
TFE_SERVICE_IDS: tuple[str, ...] = ("tfe.v2.2", "tfe.v2.1", "tfe.v2")


@dataclass(frozen=True)
class ServiceID:
    """A versioned service identifier such as ``tfe.v2.2``."""

    name: str
    version: str

    @classmethod
    def parse(cls, service_id: str) -> "ServiceID":
        name, sep, version = service_id.partition(".")
        if not name or not sep or not version.startswith("v") or len(version) < 2:
            raise ValueError(f"invalid service identifier {service_id!r}")
        return cls(name=name, version=version)

    def __str__(self) -> str:
        return f"{self.name}.{self.version}"


class Host:
    """Services advertised by a single host."""

    def __init__(
        self,
        hostname: str,
        discovery_url: httpx.URL,
        services: dict[str, Any],
        discovery: "Discovery",
    ):
        self.hostname = hostname
        self.discovery_url = discovery_url
        self.services = services
        self._discovery = discovery

    def __repr__(self) -> str:
        return f"Host({self.hostname!r}, services={sorted(self.services)})"

    def service_url(self, service_id: str) -> httpx.URL:
        """Resolve the absolute URL of a service.

        Raises:
            VersionNotSupportedError: If the host provides the service, but
                not at the requested version.
            ServiceNotProvidedError: If the host does not provide the service.
            DiscoveryError: If the advertised location is not a valid URL.
        """
        requested = ServiceID.parse(service_id)

        if service_id not in self.services:
            supported = []
            for key in self.services:
                try:
                    candidate = ServiceID.parse(key)
                except ValueError:
                    continue
                if candidate.name == requested.name:
                    supported.append(candidate.version)

            if supported:
                raise VersionNotSupportedError(
                    f"host {self.hostname} does not support {requested.name} version {requested.version} "
                    f"(supported: {', '.join(sorted(supported))})",
                    hostname=self.hostname,
                    service_id=service_id,
                    supported=sorted(supported),
                )
            raise ServiceNotProvidedError(
                f"host {self.hostname} does not provide a {requested.name} service",
                hostname=self.hostname,
                service_id=service_id,
            )

        location = self.services[service_id]
        if not isinstance(location, str):
            raise DiscoveryError(
                f"service {service_id} on host {self.hostname} has an invalid location: {location!r}",
                hostname=self.hostname,
            )

        try:
            url = self.discovery_url.join(location)
        except httpx.InvalidURL as e:
            raise DiscoveryError(
                f"failed to parse service URL for {service_id} on host {self.hostname}: {e}",
                hostname=self.hostname,
            ) from e

        if url.scheme not in ("http", "https"):
            raise DiscoveryError(
                f"unsupported scheme {url.scheme!r} in service URL for {service_id} on host {self.hostname}",
                hostname=self.hostname,
            )

        return url

    def version_constraints(self, service_id: str, product: str) -> VersionConstraints:
        """Fetch the version constraints this host declares for a service.

        Raises:
            ConstraintsUnavailableError: If constraints cannot be fetched for
                any reason. Callers treat this as "no constraints".
        """
        try:
            versions_url = self.service_url(VERSIONS_SERVICE_ID)
            requested = ServiceID.parse(service_id)
        except (DiscoveryError, ValueError) as e:
            raise ConstraintsUnavailableError(f"no version constraints for {service_id}: {e}") from e

        if not versions_url.path.endswith("/"):
            versions_url = versions_url.copy_with(path=versions_url.path + "/")
        url = versions_url.join(f"{requested.name}/{requested.version}").copy_merge_params({"product": product})

        try:
            response = self._discovery.http.get(url)
        except httpx.HTTPError as e:
            raise ConstraintsUnavailableError(f"failed to request version constraints from {url}: {e}") from e

        if response.status_code != 200:
            raise ConstraintsUnavailableError(
                f"failed to request version constraints from {url}: HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ConstraintsUnavailableError(f"failed to decode version constraints from {url}: {e}") from e

        if not isinstance(data, dict):
            raise ConstraintsUnavailableError(f"unexpected version constraints document from {url}")

        return VersionConstraints.from_document(data)


class Discovery:
    """Discovers and memoizes the services advertised by hosts.

    Args:
        credentials_source: Optional source of per-host tokens sent with
            discovery requests.
        transport: HTTP transport to send requests with. It is shared with
            the client built from the discovery result, so it is not closed
            here.
        user_agent: User-Agent header value.
        timeout: Timeout for each request, in seconds.
    """

    def __init__(
        self,
        *,
        credentials_source: "StaticCredentialsSource | None" = None,
        transport: httpx.BaseTransport | None = None,
        user_agent: str = USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.credentials_source = credentials_source
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport
        self._forced: dict[str, dict[str, Any]] = {}
        self._hosts: dict[str, Host] = {}
        self._http: httpx.Client | None = None

    @property
    def http(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(
                transport=self._transport,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=MAX_REDIRECTS,
            )
        return self._http

    def force_host_services(self, hostname: str, services: dict[str, Any]) -> None:
        """Pin the services for a normalized hostname, bypassing the network."""
        self._forced[hostname] = dict(services)
        self._hosts.pop(hostname, None)

    def discover(self, hostname: str) -> Host:
        """Return the services advertised by a normalized hostname.

        Raises:
            DiscoveryError: If the discovery document cannot be fetched or
                decoded.
        """
        if hostname in self._hosts:
            return self._hosts[hostname]

        discovery_url = httpx.URL(f"https://{hostname}{WELL_KNOWN_PATH}")

        if hostname in self._forced:
            logger.debug(f"Using pinned services for host {hostname}")
            host = Host(hostname, discovery_url, self._forced[hostname], self)
        else:
            host = self._fetch(hostname, discovery_url)

        self._hosts[hostname] = host
        return host

    def _fetch(self, hostname: str, discovery_url: httpx.URL) -> Host:
        headers = {}
        if self.credentials_source is not None:
            creds = self.credentials_source.for_host(hostname)
            if creds is not None:
                headers["Authorization"] = f"Bearer {creds.token}"

        logger.debug(f"Fetching discovery document from {discovery_url}")

        try:
            response = self.http.get(discovery_url, headers=headers)
        except httpx.HTTPError as e:
            raise DiscoveryError(
                f"Failed to request discovery document from {discovery_url}: {e}",
                hostname=hostname,
            ) from e

        if response.status_code == 404:
            logger.debug(f"Host {hostname} does not publish a discovery document")
            return Host(hostname, response.url, {}, self)

        raise_for_status(response, hostname=hostname)

        content_type = response.headers.get("content-type", "")
        if not content_type.split(";")[0].strip() == "application/json":
            raise DiscoveryError(
                f"Discovery URL {response.url} returned an unsupported content type {content_type!r}",
                hostname=hostname,
                status_code=response.status_code,
                response=response,
            )

        try:
            services = response.json()
        except ValueError as e:
            raise DiscoveryError(
                f"Failed to decode discovery document from {response.url}: {e}",
                hostname=hostname,
                status_code=response.status_code,
                response=response,
            ) from e

        if not isinstance(services, dict):
            raise DiscoveryError(
                f"Discovery document from {response.url} is not a JSON object",
                hostname=hostname,
                status_code=response.status_code,
                response=response,
            )

        return Host(hostname, response.url, services, self)


def resolve_service(host: Host, service_ids: tuple[str, ...] = TFE_SERVICE_IDS) -> tuple[str, httpx.URL]:
    """Resolve the first acceptable service identifier a host provides.

    Identifiers are tried in order. An unsupported version moves on to the
    next identifier; any other discovery error aborts.

    Returns:
        Tuple of (service identifier, service URL).

    Raises:
        VersionNotSupportedError: If no identifier resolved. The error is the
            one raised for the first identifier.
        DiscoveryError: For any other failure.
    """
    first_error: VersionNotSupportedError | None = None

    for service_id in service_ids:
        try:
            url = host.service_url(service_id)
        except VersionNotSupportedError as e:
            logger.debug(f"Skipping {service_id}: {e}")
            if first_error is None:
                first_error = e
            continue
        logger.debug(f"Resolved {service_id} on host {host.hostname} to {url}")
        return service_id, url

    if first_error is not None:
        raise first_error
    raise DiscoveryError("no service identifiers to resolve", hostname=host.hostname)
