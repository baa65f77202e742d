"""
HTTP fetching.

The pipeline only needs one capability from the network: a GET that
returns the status code and the raw body, reporting byte progress along
the way.  :class:`Fetcher` describes that capability so tests can swap
in an in-memory double; :class:`RequestsFetcher` is the production
implementation built on ``requests``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

import requests

logger = logging.getLogger(__name__)

# (total_bytes_or_0, bytes_so_far)
ByteProgress = Callable[[int, int], None]


@dataclass
class RequestOptions:
    """Per-request headers and an optional byte-progress callback."""
    referer: str = ""
    user_agent: str = ""
    cookies: str = ""
    progress: ByteProgress | None = None

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.referer:
            headers["Referer"] = self.referer
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        if self.cookies:
            headers["Cookie"] = self.cookies
        return headers


@dataclass
class Response:
    """Outcome of a GET.

    ``status`` is 0 when the transfer failed before an HTTP status was
    received; ``error_message`` then holds the transport error.
    """
    status: int = 0
    body: bytes = b""
    error_message: str = ""


class Fetcher(Protocol):
    """Anything that can perform a GET for the pipeline."""

    def get(self, url: str, opts: RequestOptions) -> Response:
        ...


class RequestsFetcher:
    """Fetcher backed by a ``requests.Session``.

    The body is streamed in chunks so that ``opts.progress`` sees the
    transfer advance.  No terminal progress event is guaranteed; the
    progress reporter synthesizes one.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        chunk_size: int = 64 * 1024,
        timeout_s: float | None = 60.0,
    ) -> None:
        self.session = session or requests.Session()
        self.chunk_size = chunk_size
        self.timeout_s = timeout_s

    def get(self, url: str, opts: RequestOptions) -> Response:
        logger.debug("GET %s", url)
        try:
            with self.session.get(
                url,
                headers=opts.headers(),
                stream=True,
                timeout=self.timeout_s,
            ) as resp:
                total = _content_length(resp)
                chunks: list[bytes] = []
                received = 0
                for chunk in resp.iter_content(chunk_size=self.chunk_size):
                    if not chunk:
                        continue
                    chunks.append(chunk)
                    received += len(chunk)
                    if opts.progress is not None:
                        opts.progress(total, received)
                return Response(status=resp.status_code, body=b"".join(chunks))
        except requests.RequestException as exc:
            logger.debug("GET %s failed: %s", url, exc)
            return Response(status=0, error_message=str(exc))


def _content_length(resp: requests.Response) -> int:
    """Declared body size, or 0 when unknown."""
    try:
        return max(int(resp.headers.get("Content-Length", 0)), 0)
    except ValueError:
        return 0
