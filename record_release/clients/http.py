"""HTTP client abstraction for the ledger, GitHub and artifact service calls.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeAlias, cast, runtime_checkable

from record_release import __version__
from record_release.core.result import Err, Ok, Result
from record_release.core.structured import StrDict, as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
    "RecordedRequest",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        body: Raw response body, when the server sent one
    """

    url: str
    status: int
    message: str
    body: bytes = b""

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"

    def json_body(self) -> StrDict | None:
        """Decode the error body as a JSON object, if it is one."""
        if not self.body:
            return None
        try:
            obj: object = json.loads(self.body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        return as_str_dict(obj)


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Non-2xx responses are returned as Err(HttpError) with the response body
    attached, so callers can decode structured API errors.
    """

    def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        """Send an optional JSON payload and decode a JSON object response."""
        ...

    def request_bytes(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> Result[bytes, HttpError]:
        """Send raw bytes and return the raw response body."""
        ...


def _decode_json_object(url: str, raw: bytes, status: int) -> Result[dict[str, Any], HttpError]:
    """Decode a successful response body; a malformed body keeps the response status."""
    if not raw.strip():
        return Ok({})
    try:
        data_obj: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=status, message=f"JSON parse error: {e}", body=raw))
    data = as_str_dict(data_obj)
    if data is None:
        return Err(HttpError(url=url, status=status, message="Expected JSON object", body=raw))
    # Values are dynamic; preserve as Any for callers.
    return Ok(cast(dict[str, Any], data))


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - JSON encoding/decoding
    - Error bodies on non-2xx responses
    - Timeout handling (no retries)
    """

    def __init__(
        self,
        timeout: float = 60.0,
        user_agent: str = f"record-release/{__version__}",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        # Use system certificates
        self._ssl_context = ssl.create_default_context()

    def _open(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        data: bytes | None,
    ) -> urllib.request.Request:
        all_headers = {"User-Agent": self.user_agent}
        if headers:
            all_headers.update(headers)
        return urllib.request.Request(url, data=data, headers=all_headers, method=method)

    def _send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        data: bytes | None,
    ) -> Result[tuple[int, bytes], HttpError]:
        try:
            req = self._open(method, url, headers, data)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok((response.status, response.read()))
        except urllib.error.HTTPError as e:
            try:
                body = e.read()
            except OSError:
                body = b""
            return Err(HttpError(url=url, status=e.code, message=str(e.reason), body=body))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        all_headers = {"Accept": "application/json"}
        if headers:
            all_headers.update(headers)
        data: bytes | None = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            all_headers.setdefault("Content-Type", "application/json")

        result = self._send(method, url, all_headers, data)
        if isinstance(result, Err):
            return result
        status, raw = result.value
        return _decode_json_object(url, raw, status)

    def request_bytes(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> Result[bytes, HttpError]:
        result = self._send(method, url, headers, data)
        if isinstance(result, Err):
            return result
        return Ok(result.value[1])


@dataclass(frozen=True, slots=True)
class RecordedRequest:
    """A request seen by MockHttpClient."""

    method: str
    url: str
    headers: dict[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8")) if self.body else None


MockResponse: TypeAlias = dict[str, Any] | bytes | HttpError
MockHandler: TypeAlias = Callable[[RecordedRequest], MockResponse]


def _empty_requests() -> list[RecordedRequest]:
    return []


@dataclass
class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are registered per (method, url). A response is a JSON dict,
    raw bytes, an HttpError, or a handler called with the recorded request.

    Usage:
        client = MockHttpClient()
        client.set("GET", "https://api.example.com/webhook/version?environment=staging",
                   {"version": "1.2.3"})
        result = client.request_json("GET", "https://api.example.com/webhook/version?environment=staging")
        assert result == Ok({"version": "1.2.3"})
    """

    requests: list[RecordedRequest] = field(default_factory=_empty_requests)
    _responses: dict[tuple[str, str], MockResponse | MockHandler] = field(
        default_factory=lambda: {}
    )

    def set(self, method: str, url: str, response: MockResponse | MockHandler) -> None:
        """Set the response for (method, url)."""
        self._responses[(method.upper(), url)] = response

    def calls(self, method: str | None = None, url_prefix: str = "") -> list[RecordedRequest]:
        """Recorded requests, optionally filtered."""
        return [
            r
            for r in self.requests
            if (method is None or r.method == method.upper()) and r.url.startswith(url_prefix)
        ]

    def _respond(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
        body: bytes,
    ) -> MockResponse:
        request = RecordedRequest(
            method=method.upper(), url=url, headers=dict(headers or {}), body=body
        )
        self.requests.append(request)

        response = self._responses.get((request.method, url))
        if response is None:
            return HttpError(url=url, status=404, message="Not found (mock)")
        if callable(response):
            return response(request)
        return response

    def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        payload: object | None = None,
    ) -> Result[dict[str, Any], HttpError]:
        body = json.dumps(payload).encode("utf-8") if payload is not None else b""
        response = self._respond(method, url, headers, body)
        if isinstance(response, HttpError):
            return Err(response)
        if isinstance(response, bytes):
            return _decode_json_object(url, response, 200)
        return Ok(response)

    def request_bytes(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        data: bytes | None = None,
    ) -> Result[bytes, HttpError]:
        response = self._respond(method, url, headers, data or b"")
        if isinstance(response, HttpError):
            return Err(response)
        if isinstance(response, bytes):
            return Ok(response)
        return Ok(json.dumps(response).encode("utf-8"))
