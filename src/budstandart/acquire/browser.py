"""Attach to an externally managed Chrome over the DevTools protocol.

Chrome must be started by the user with remote debugging enabled, e.g.::

    google-chrome --remote-debugging-port=9222

The user's existing browser profile (and whatever portal cookies it already
holds) is reused. Leaving the context manager detaches from the browser but
never closes it. The working tab is the first open tab when there is one.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from budstandart.errors import BrowserUnavailable, NavigationFailed, NavigationTimeout

logger = logging.getLogger(__name__)


@dataclass
class BrowserConnection:
    """A live attachment: the remote browser, its context and our working tab."""

    browser: Any
    context: Any
    page: Any


def navigate(page, url: str, timeout_ms: int) -> None:
    """Load ``url`` and wait until the network is idle.

    Raises:
        NavigationTimeout: The page did not settle within ``timeout_ms``.
        NavigationFailed: The browser reported any other load error.
    """
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

    logger.debug(f"Navigating to {url}")
    try:
        page.goto(url, wait_until="networkidle", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise NavigationTimeout(f"Timed out after {timeout_ms} ms loading {url}") from e
    except PlaywrightError as e:
        raise NavigationFailed(f"Could not load {url}: {e}") from e


@contextmanager
def connect_browser(cdp_url: str, timeout_ms: int = 30000) -> Iterator[BrowserConnection]:
    """Attach to the browser at ``cdp_url`` and pick a working tab.

    The first open tab of the default context is reused; a tab is opened
    only when there is none, and only such a tab is closed again. The
    Playwright driver is stopped on every exit path, which detaches from
    the browser without terminating it.

    Raises:
        BrowserUnavailable: Nothing is listening at ``cdp_url``.
    """
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright

    with sync_playwright() as pw:
        logger.info(f"Connecting to browser at {cdp_url}")
        try:
            browser = pw.chromium.connect_over_cdp(cdp_url)
        except PlaywrightError as e:
            raise BrowserUnavailable(
                f"Could not connect to browser at {cdp_url}. "
                f"Start Chrome with --remote-debugging-port. ({e})"
            ) from e

        context = browser.contexts[0] if browser.contexts else browser.new_context()
        opened = not context.pages
        page = context.new_page() if opened else context.pages[0]
        page.set_default_timeout(timeout_ms)
        try:
            yield BrowserConnection(browser=browser, context=context, page=page)
        finally:
            if opened:
                try:
                    page.close()
                except PlaywrightError as e:
                    logger.debug(f"Working tab already gone: {e}")
            logger.debug("Disconnected from browser")
