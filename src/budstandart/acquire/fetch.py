"""Plain HTTP downloads that replay the browser session's cookies.

PDF files are fetched outside the browser (Chrome would open them in its
viewer instead of handing over the bytes), so the authenticated cookies of
the browser context are copied into an ordinary ``requests`` call.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

import requests

from budstandart.errors import TransferFailed

logger = logging.getLogger(__name__)


def _is_pdf(data: bytes) -> bool:
    """Validate that data starts with PDF magic bytes."""
    return data[:5] == b"%PDF-"


@dataclass
class FetchResult:
    """Response of a cookie-authenticated GET."""

    url: str
    status: int
    content: bytes = b""
    content_type: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_pdf(self) -> bool:
        return _is_pdf(self.content)


def cookie_header(cookies: Iterable[Mapping]) -> str:
    """Render browser cookies (dicts with ``name``/``value``) as a Cookie header."""
    return "; ".join(
        f"{cookie['name']}={cookie['value']}" for cookie in cookies if cookie.get("name")
    )


def fetch_with_cookies(
    url: str,
    cookies: Iterable[Mapping],
    user_agent: str,
    timeout: float = 60,
) -> FetchResult:
    """GET ``url`` with the given browser cookies.

    Non-2xx responses are returned, not raised; the caller decides whether a
    bad status means "not applicable".

    Raises:
        TransferFailed: Connection error, timeout or other network failure.
    """
    headers = {"User-Agent": user_agent}
    header = cookie_header(cookies)
    if header:
        headers["Cookie"] = header

    try:
        resp = requests.get(url, headers=headers, timeout=timeout, allow_redirects=True)
    except requests.RequestException as e:
        raise TransferFailed(url, str(e)) from e

    logger.debug(f"GET {url} -> {resp.status_code} ({len(resp.content)} bytes)")
    return FetchResult(
        url=url,
        status=resp.status_code,
        content=resp.content,
        content_type=resp.headers.get("Content-Type", ""),
    )
