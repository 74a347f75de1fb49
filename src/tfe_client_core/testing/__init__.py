"""Testing utilities for code that builds TFE clients.

`MockTFEServer` answers discovery, version constraint and ping requests
through an `httpx.MockTransport`, so client construction can be exercised
without network access.

Example:
    ```python
    from tfe_client_core import ClientCache, get_client
    from tfe_client_core.testing import MockTFEServer


    def test_client_uses_discovered_address():
        server = MockTFEServer(services={"tfe.v2": "/api/v2/"})
        client = get_client(
            "tfe.example.com", "token", cache=ClientCache(), base_transport=server.transport
        )
        assert client.address == "https://tfe.example.com/api/v2/"
    ```
"""

from typing import Any

import httpx

from tfe_client_core.discovery.disco import WELL_KNOWN_PATH

__all__ = ["DEFAULT_SERVICES", "MockTFEServer"]

DEFAULT_SERVICES: dict[str, Any] = {
    "tfe.v2": "/api/v2/",
    "tfe.v2.1": "/api/v2/",
    "tfe.v2.2": "/api/v2/",
    "versions.v1": "/v1/versions/",
}


class MockTFEServer:
    """In-memory stand-in for a TFE host.

    Args:
        services: Discovery document to serve. None serves a 404.
        constraints: Constraints document served for every
            ``/v1/versions/<service>/<version>`` request. None serves a 404.
        api_version: Value of the TFP-API-Version header on ping responses.
    """

    def __init__(
        self,
        services: dict[str, Any] | None = DEFAULT_SERVICES,
        constraints: dict[str, Any] | None = None,
        api_version: str = "2.5",
    ):
        self.services = services
        self.constraints = constraints
        self.api_version = api_version
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def count(self, path: str) -> int:
        """Number of requests received for a path."""
        return sum(1 for request in self.requests if request.url.path == path)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == WELL_KNOWN_PATH:
            if self.services is None:
                return httpx.Response(404)
            return httpx.Response(200, json=self.services)

        if path.startswith("/v1/versions/"):
            if self.constraints is None:
                return httpx.Response(404)
            return httpx.Response(200, json=self.constraints)

        if path.endswith("/ping"):
            return httpx.Response(204, headers={"TFP-API-Version": self.api_version})

        return httpx.Response(404)
