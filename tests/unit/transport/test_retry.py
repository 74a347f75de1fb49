"""Tests for the retry transport."""

from unittest.mock import patch

import httpx
import pytest

from tfe_client_core.transport.retry import ServerErrorRetry


def counting_transport(statuses: list[int], headers: dict | None = None):
    """Mock transport answering with each status in turn, then 200."""
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        index = calls["count"]
        calls["count"] += 1
        if index < len(statuses):
            return httpx.Response(statuses[index], headers=headers)
        return httpx.Response(200, json={"success": True})

    return httpx.MockTransport(handler), calls


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("time.sleep") as sleep:
        yield sleep


class TestServerErrorRetry:
    """Retry behavior for server errors and rate limiting."""

    @pytest.mark.unit
    def test_server_errors_not_retried_by_default(self):
        """5xx responses are returned as is until retrying is switched on."""
        mock_transport, calls = counting_transport([503])
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport)

        with httpx.Client(transport=retry_transport) as client:
            response = client.get("https://tfe.example.com/api/v2/ping")

        assert response.status_code == 503
        assert calls["count"] == 1

    @pytest.mark.unit
    def test_retries_get_on_503_when_enabled(self):
        mock_transport, calls = counting_transport([503, 503])
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport, max_retries=5)
        retry_transport.retry_server_errors = True

        with httpx.Client(transport=retry_transport) as client:
            response = client.get("https://tfe.example.com/api/v2/ping")

        assert response.status_code == 200
        assert calls["count"] == 3

    @pytest.mark.unit
    def test_does_not_retry_post_on_503(self):
        mock_transport, calls = counting_transport([503])
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport)
        retry_transport.retry_server_errors = True

        with httpx.Client(transport=retry_transport) as client:
            response = client.post("https://tfe.example.com/api/v2/organizations", json={})

        assert response.status_code == 503
        assert calls["count"] == 1

    @pytest.mark.unit
    def test_retries_429_for_all_methods(self):
        """Rate limited requests are retried even when server error retries are off."""
        mock_transport, calls = counting_transport([429])
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport)

        with httpx.Client(transport=retry_transport) as client:
            response = client.post("https://tfe.example.com/api/v2/organizations", json={})

        assert response.status_code == 200
        assert calls["count"] == 2

    @pytest.mark.unit
    def test_gives_up_after_max_retries(self):
        mock_transport, calls = counting_transport([503] * 10)
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport, max_retries=2)
        retry_transport.retry_server_errors = True

        with httpx.Client(transport=retry_transport) as client:
            response = client.get("https://tfe.example.com/api/v2/ping")

        assert response.status_code == 503
        assert calls["count"] == 3

    @pytest.mark.unit
    def test_does_not_retry_404(self):
        mock_transport, calls = counting_transport([404])
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport)
        retry_transport.retry_server_errors = True

        with httpx.Client(transport=retry_transport) as client:
            response = client.get("https://tfe.example.com/api/v2/missing")

        assert response.status_code == 404
        assert calls["count"] == 1

    @pytest.mark.unit
    def test_retries_transport_errors_when_enabled(self):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 1:
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(200)

        retry_transport = ServerErrorRetry(wrapped_transport=httpx.MockTransport(handler))
        retry_transport.retry_server_errors = True

        with httpx.Client(transport=retry_transport) as client:
            response = client.get("https://tfe.example.com/api/v2/ping")

        assert response.status_code == 200
        assert calls["count"] == 2

    @pytest.mark.unit
    def test_transport_errors_raise_when_disabled(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection reset", request=request)

        retry_transport = ServerErrorRetry(wrapped_transport=httpx.MockTransport(handler))

        with httpx.Client(transport=retry_transport) as client:
            with pytest.raises(httpx.ConnectError):
                client.get("https://tfe.example.com/api/v2/ping")


class TestBackoff:
    """Delay calculation."""

    @pytest.mark.unit
    def test_exponential_backoff(self, no_sleep):
        mock_transport, _ = counting_transport([503, 503, 503])
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport, backoff_factor=1.0)
        retry_transport.retry_server_errors = True

        with httpx.Client(transport=retry_transport) as client:
            client.get("https://tfe.example.com/api/v2/ping")

        assert [c.args[0] for c in no_sleep.call_args_list] == [1.0, 2.0, 4.0]

    @pytest.mark.unit
    def test_backoff_is_capped(self):
        retry_transport = ServerErrorRetry(wrapped_transport=httpx.MockTransport(lambda r: None), max_backoff=5.0)

        assert retry_transport._calculate_backoff_delay(10) == 5.0

    @pytest.mark.unit
    def test_retry_after_seconds(self, no_sleep):
        mock_transport, _ = counting_transport([429], headers={"Retry-After": "7"})
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport)

        with httpx.Client(transport=retry_transport) as client:
            client.get("https://tfe.example.com/api/v2/ping")

        no_sleep.assert_called_once_with(7.0)

    @pytest.mark.unit
    def test_invalid_retry_after_falls_back_to_backoff(self, no_sleep):
        mock_transport, _ = counting_transport([429], headers={"Retry-After": "soon"})
        retry_transport = ServerErrorRetry(wrapped_transport=mock_transport, backoff_factor=0.5)

        with httpx.Client(transport=retry_transport) as client:
            client.get("https://tfe.example.com/api/v2/ping")

        no_sleep.assert_called_once_with(0.5)
