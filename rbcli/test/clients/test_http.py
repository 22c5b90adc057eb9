"""Tests for clients/http.py - HTTP client abstraction."""

from __future__ import annotations

import base64
from collections.abc import Mapping

import pytest

from rbcli.clients.http import (
    HttpClient,
    HttpError,
    MockHttpClient,
    RealHttpClient,
    client_for,
)
from rbcli.core.config import ServerDetails
from rbcli.core.result import Err, Ok, Result


class TestHttpError:
    def test_str_with_status(self) -> None:
        error = HttpError(url="https://x/api", status=500, message="Internal Error")
        assert str(error) == "HTTP 500: Internal Error (https://x/api)"

    def test_str_with_body(self) -> None:
        error = HttpError(url="https://x/api", status=400, message="Bad Request", body=' {"errors": []} ')
        assert str(error) == 'HTTP 400: Bad Request (https://x/api): {"errors": []}'

    def test_str_without_status(self) -> None:
        error = HttpError(url="https://x", status=0, message="Timeout")
        assert str(error) == "Timeout (https://x)"


class TestMockHttpClient:
    def test_isinstance_check(self) -> None:
        assert isinstance(MockHttpClient(), HttpClient)

    def test_get_json(self) -> None:
        client = MockHttpClient()
        client.set_response("GET", "https://x/api/system/version", {"version": "7.100.0"})

        result = client.get_json("https://x/api/system/version")

        assert result == Ok({"version": "7.100.0"})
        assert client.calls[0].method == "GET"

    def test_unknown_url_is_404(self) -> None:
        result = MockHttpClient().get_json("https://x/unknown")
        assert isinstance(result, Err)
        assert result.error.status == 404

    def test_canned_error(self) -> None:
        client = MockHttpClient()
        down = HttpError(url="https://x/aql", status=503, message="down")
        client.set_response("POST", "https://x/aql", down)

        result = client.post_text("https://x/aql", "items.find()")

        assert isinstance(result, Err)
        assert result.error.status == 503
        assert client.calls[0].body == "items.find()"

    def test_send_json_records_call(self) -> None:
        client = MockHttpClient()
        client.set_response("post", "https://x/rb", {"created": "ok"})

        result = client.send_json(
            "POST",
            "https://x/rb",
            {"a": 1},
            params={"async": "false"},
            headers={"X-Key": "k"},
        )

        assert result == Ok(b'{"created": "ok"}')
        call = client.calls[0]
        assert call.body == {"a": 1}
        assert call.params == {"async": "false"}
        assert call.headers == {"X-Key": "k"}


class TestRealHttpClient:
    def test_bearer_token_preferred(self) -> None:
        client = RealHttpClient(access_token="tok", user="u", password="p")
        assert client._auth_header == "Bearer tok"  # pyright: ignore[reportPrivateUsage]

    def test_basic_auth(self) -> None:
        client = RealHttpClient(user="u", password="p")
        expected = "Basic " + base64.b64encode(b"u:p").decode("ascii")
        assert client._auth_header == expected  # pyright: ignore[reportPrivateUsage]

    def test_no_auth(self) -> None:
        client = RealHttpClient(user="u")
        assert client._auth_header is None  # pyright: ignore[reportPrivateUsage]

    def test_invalid_url_is_error(self) -> None:
        result = RealHttpClient(timeout=1).get_json("not-a-url")
        assert isinstance(result, Err)
        assert result.error.status == 0

    def test_send_without_payload_has_no_body(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client = RealHttpClient()
        seen: dict[str, object] = {}

        def fake_request(
            method: str,
            url: str,
            *,
            body: bytes | None = None,
            headers: Mapping[str, str] | None = None,
        ) -> Result[bytes, HttpError]:
            seen.update(method=method, url=url, body=body, headers=dict(headers or {}))
            return Ok(b"")

        monkeypatch.setattr(client, "_request", fake_request)

        client.send_json("DELETE", "https://x/rb", None, params={"async": "false"})

        assert seen == {"method": "DELETE", "url": "https://x/rb?async=false", "body": None, "headers": {}}

    def test_get_json_appends_params(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client = RealHttpClient()
        urls: list[str] = []

        def fake_request(
            method: str,
            url: str,
            *,
            body: bytes | None = None,
            headers: Mapping[str, str] | None = None,
        ) -> Result[bytes, HttpError]:
            urls.append(url)
            return Ok(b"{}")

        monkeypatch.setattr(client, "_request", fake_request)

        assert client.get_json("https://x/records", params={"project": "p"}) == Ok({})
        assert urls == ["https://x/records?project=p"]

    def test_client_for_server(self) -> None:
        client = client_for(ServerDetails(url="https://x", access_token="abc"), timeout=5)
        assert client.timeout == 5
        assert client._auth_header == "Bearer abc"  # pyright: ignore[reportPrivateUsage]


@pytest.mark.parametrize("raw", [b"", b"   "])
def test_empty_body_decodes_to_none(raw: bytes) -> None:
    from rbcli.clients.http import _decode_json  # pyright: ignore[reportPrivateUsage]

    assert _decode_json("https://x", raw) == Ok(None)
