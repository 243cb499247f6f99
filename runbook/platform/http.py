"""HTTP client abstraction for the release host.

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
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from runbook.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """A completed HTTP exchange, successful or not.

    ``body`` is the decoded JSON document, or the raw text when the response
    is not JSON.
    """

    status: int
    body: object

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Lets the GitHub gateway run against a mock client in unit tests.
    """

    def get_text(self, url: str) -> Result[str, HttpError]:
        """Fetch URL and return the body as text.

        Any non-2xx status is an Err.
        """
        ...

    def post_json(
        self,
        url: str,
        payload: object,
        headers: dict[str, str] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        """POST a JSON document.

        HTTP error statuses come back as ``Ok(HttpResponse)`` so callers can
        read the error body; Err is reserved for transport failures where no
        response was received.
        """
        ...


def _decode_body(raw: bytes) -> object:
    text = raw.decode("utf-8", errors="replace")
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


class RealHttpClient:
    """Real HTTP client using urllib with system certificates."""

    def __init__(self, timeout: float = 30.0, user_agent: str = "runbook/0.1.0") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def get_text(self, url: str) -> Result[str, HttpError]:
        try:
            req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                raw: bytes = response.read()
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        try:
            return Ok(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            return Err(HttpError(url=url, status=0, message=f"Decode error: {e}"))

    def post_json(
        self,
        url: str,
        payload: object,
        headers: dict[str, str] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        all_headers = {
            "User-Agent": self.user_agent,
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(headers or {}),
        }
        try:
            req = urllib.request.Request(
                url,
                data=json.dumps(payload).encode("utf-8"),
                headers=all_headers,
                method="POST",
            )
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(HttpResponse(status=response.status, body=_decode_body(response.read())))
        except urllib.error.HTTPError as e:
            return Ok(HttpResponse(status=e.code, body=_decode_body(e.read())))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


def _empty_posts() -> list[tuple[str, object, dict[str, str]]]:
    return []


@dataclass
class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_text(STATUS_URL, '{"status": "good"}')
        client.queue_post(RELEASES_URL, HttpResponse(201, {"html_url": "..."}))
    """

    texts: dict[str, str | HttpError] = field(default_factory=dict)
    posts: dict[str, list[HttpResponse | HttpError]] = field(default_factory=dict)
    sent: list[tuple[str, object, dict[str, str]]] = field(default_factory=_empty_posts)
    fetched: list[str] = field(default_factory=list)

    def set_text(self, url: str, response: str | HttpError) -> None:
        self.texts[url] = response

    def queue_post(self, url: str, response: HttpResponse | HttpError) -> None:
        """Responses for a URL are returned in the order they were queued."""
        self.posts.setdefault(url, []).append(response)

    def get_text(self, url: str) -> Result[str, HttpError]:
        self.fetched.append(url)
        response = self.texts.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not Found"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def post_json(
        self,
        url: str,
        payload: object,
        headers: dict[str, str] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        self.sent.append((url, payload, dict(headers or {})))
        queue = self.posts.get(url)
        if not queue:
            return Err(HttpError(url=url, status=0, message="no mock response"))
        response = queue.pop(0)
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
