"""Tests for the fetch client, using an in-memory httpx transport."""

import httpx
import pytest

from workbench.cards import FetchRequestConfig, HttpMethod

from .lib import FetchClient, FetchError, clean_headers


def _client(handler) -> FetchClient:
    return FetchClient(default_timeout_ms=5000, transport=httpx.MockTransport(handler))


class TestCleanHeaders:
    """Tests for header filtering."""

    @pytest.mark.unit
    def test_drops_blank_keys_and_values(self):
        headers = {"Accept": "application/json", " ": "x", "X-Empty": "  "}
        assert clean_headers(headers) == {"Accept": "application/json"}


class TestFetchClient:
    """Tests for FetchClient.request."""

    @pytest.mark.unit
    def test_get_returns_body(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text='{"name": "pikachu"}')

        with _client(handler) as client:
            body = client.request(FetchRequestConfig())

        assert body == '{"name": "pikachu"}'
        assert seen[0].method == "GET"
        assert seen[0].headers["accept"] == "application/json"
        assert seen[0].content == b""

    @pytest.mark.unit
    def test_get_never_sends_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="ok")

        with _client(handler) as client:
            client.request(FetchRequestConfig(body="ignored"))

        assert seen[0].content == b""

    @pytest.mark.unit
    def test_post_sends_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, text="created")

        config = FetchRequestConfig(
            method=HttpMethod.POST,
            url="https://api.example.com/items",
            body='{"q": 1}',
        )
        with _client(handler) as client:
            assert client.request(config) == "created"

        assert seen[0].method == "POST"
        assert seen[0].content == b'{"q": 1}'

    @pytest.mark.unit
    def test_error_status_still_returns_text(self):
        with _client(lambda request: httpx.Response(404, text="not found")) as client:
            assert client.request(FetchRequestConfig()) == "not found"

    @pytest.mark.unit
    def test_blank_url_rejected(self):
        with _client(lambda request: httpx.Response(200)) as client:
            with pytest.raises(FetchError, match="Please enter a URL"):
                client.request(FetchRequestConfig(url="   "))

    @pytest.mark.unit
    def test_timeout_sets_flag(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with _client(handler) as client:
            with pytest.raises(FetchError) as exc_info:
                client.request(FetchRequestConfig(timeout_ms=250))

        assert exc_info.value.timed_out is True
        assert "250 ms" in str(exc_info.value)

    @pytest.mark.unit
    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        with _client(handler) as client:
            with pytest.raises(FetchError, match="failed") as exc_info:
                client.request(FetchRequestConfig())

        assert exc_info.value.timed_out is False

    @pytest.mark.unit
    def test_unencodable_header_rejected(self):
        with _client(lambda request: httpx.Response(200, text="ok")) as client:
            with pytest.raises(FetchError, match="failed") as exc_info:
                client.request(FetchRequestConfig(headers={"X-Name": "José"}))

        assert exc_info.value.timed_out is False

    @pytest.mark.unit
    def test_default_timeout_from_environment(self, monkeypatch):
        monkeypatch.setenv("WORKBENCH_FETCH_TIMEOUT_MS", "1234")
        client = FetchClient()
        assert client.default_timeout_ms == 1234
        client.close()
