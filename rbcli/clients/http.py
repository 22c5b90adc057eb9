"""HTTP client abstraction for the platform REST APIs.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Canned responses and call recording for tests
"""

from __future__ import annotations

import base64
import json
import ssl
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from rbcli import __version__
from rbcli.core.config import ServerDetails
from rbcli.core.result import Err, Ok, Result

__all__ = [
    "HttpCall",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "client_for",
]

DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        body: Response body, when the server sent one
    """

    url: str
    status: int
    message: str
    body: str = ""

    def __str__(self) -> str:
        detail = f": {self.body.strip()}" if self.body.strip() else ""
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url}){detail}"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations against one server."""

    def get_json(
        self, url: str, *, params: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        """GET url and decode the JSON body."""
        ...

    def post_text(self, url: str, text: str) -> Result[object, HttpError]:
        """POST a text/plain body and decode the JSON response."""
        ...

    def send_json(
        self,
        method: str,
        url: str,
        payload: object,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[bytes, HttpError]:
        """Send a JSON body (none when payload is None) and return the raw response bytes."""
        ...


def _with_params(url: str, params: Mapping[str, str] | None) -> str:
    if not params:
        return url
    return f"{url}?{urllib.parse.urlencode(dict(params))}"


def _decode_json(url: str, raw: bytes) -> Result[object, HttpError]:
    if not raw.strip():
        return Ok(None)
    try:
        data: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
    return Ok(data)


class RealHttpClient:
    """HTTP client using urllib.

    Authenticates with a bearer access token when one is configured,
    otherwise with basic auth when user and password are both set.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        access_token: str | None = None,
        user: str | None = None,
        password: str | None = None,
        user_agent: str = f"rbcli/{__version__}",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._auth_header: str | None = None
        if access_token:
            self._auth_header = f"Bearer {access_token}"
        elif user and password:
            token = base64.b64encode(f"{user}:{password}".encode()).decode("ascii")
            self._auth_header = f"Basic {token}"
        self._ssl_context = ssl.create_default_context()

    def _request(
        self,
        method: str,
        url: str,
        *,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[bytes, HttpError]:
        all_headers = {"User-Agent": self.user_agent}
        if self._auth_header is not None:
            all_headers["Authorization"] = self._auth_header
        if headers:
            all_headers.update(headers)

        try:
            req = urllib.request.Request(url, data=body, headers=all_headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            detail = ""
            try:
                detail = e.read().decode("utf-8", errors="replace")
            except OSError:
                pass
            return Err(HttpError(url=url, status=e.code, message=str(e.reason), body=detail))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(
        self, url: str, *, params: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        full_url = _with_params(url, params)
        result = self._request("GET", full_url, headers={"Accept": "application/json"})
        if isinstance(result, Err):
            return result
        return _decode_json(full_url, result.value)

    def post_text(self, url: str, text: str) -> Result[object, HttpError]:
        result = self._request(
            "POST",
            url,
            body=text.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)

    def send_json(
        self,
        method: str,
        url: str,
        payload: object,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[bytes, HttpError]:
        body: bytes | None = None
        all_headers: dict[str, str] = {}
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            all_headers["Content-Type"] = "application/json"
        if headers:
            all_headers.update(headers)
        return self._request(method, _with_params(url, params), body=body, headers=all_headers)


def client_for(server: ServerDetails, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> RealHttpClient:
    """Build a client authenticated for the given server."""
    return RealHttpClient(
        timeout=timeout,
        access_token=server.access_token,
        user=server.user,
        password=server.password,
    )


@dataclass(frozen=True, slots=True)
class HttpCall:
    """One request recorded by MockHttpClient."""

    method: str
    url: str
    body: object = None
    params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)


type _Canned = object | HttpError


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by (method, url). JSON-capable values are returned
    as-is; an HttpError is returned as Err.

    Usage:
        client = MockHttpClient()
        client.set_response("GET", "https://x/artifactory/api/system/version",
                            {"version": "7.114.0"})
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], _Canned] = {}
        self.calls: list[HttpCall] = []

    def set_response(self, method: str, url: str, response: _Canned) -> None:
        self._responses[(method.upper(), url)] = response

    def _lookup(self, method: str, url: str) -> Result[object, HttpError]:
        key = (method.upper(), url)
        if key not in self._responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._responses[key]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(
        self, url: str, *, params: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        self.calls.append(HttpCall(method="GET", url=url, params=dict(params or {})))
        return self._lookup("GET", url)

    def post_text(self, url: str, text: str) -> Result[object, HttpError]:
        self.calls.append(HttpCall(method="POST", url=url, body=text))
        return self._lookup("POST", url)

    def send_json(
        self,
        method: str,
        url: str,
        payload: object,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[bytes, HttpError]:
        self.calls.append(
            HttpCall(
                method=method.upper(),
                url=url,
                body=payload,
                params=dict(params or {}),
                headers=dict(headers or {}),
            )
        )
        result = self._lookup(method, url)
        if isinstance(result, Err):
            return result
        value = result.value
        if isinstance(value, bytes):
            return Ok(value)
        if value is None:
            return Ok(b"")
        return Ok(json.dumps(value).encode("utf-8"))
