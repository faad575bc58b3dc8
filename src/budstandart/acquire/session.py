"""Portal login and session verification.

The attached browser may already hold a valid portal session (the user's own
Chrome profile), so login is only attempted when the landing page does not
look authenticated. Whether a page "looks authenticated" is decided by
``evaluate_auth_state`` from several independent signals rather than a single
string match.
"""

import logging

from bs4 import BeautifulSoup
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from budstandart.acquire.adapters import PortalAdapter
from budstandart.acquire.browser import navigate
from budstandart.errors import (
    AuthenticationFormNotFound,
    AuthenticationRejected,
    NavigationTimeout,
)
from budstandart.models import AuthState, Credentials

logger = logging.getLogger(__name__)

_IDENTIFIER_INPUT = ('input[type="text"]', 'input[type="email"]', "input:not([type])")
_PASSWORD_INPUT = 'input[type="password"]'
_SUBMIT_CONTROL = ('button[type="submit"]', 'input[type="submit"]')
_LOGIN_FORM = 'form:has(input[type="password"])'


def _within(scope: str, selectors) -> str:
    """``selectors`` restricted to descendants of ``scope``."""
    return ", ".join(f"{scope} {selector}" for selector in selectors)


def evaluate_auth_state(html: str, adapter: PortalAdapter) -> AuthState:
    """Classify a rendered page as authenticated, not, or undecidable.

    Signals:
      * personalized: a greeting / personal-cabinet marker or a logout link
      * login surface: the login heading or a password input
      * failure: an explicit "wrong credentials" message

    AUTHENTICATED needs a personalized signal with no login surface and no
    failure message. NOT_AUTHENTICATED needs a login surface or failure
    message with no personalized signal. Everything else is INDETERMINATE.
    """
    soup = BeautifulSoup(html, "html.parser")
    text = " ".join(soup.get_text(" ").split())

    personalized = any(marker in text for marker in adapter.personalized_markers)
    if not personalized and adapter.logout_link_selector:
        personalized = soup.select_one(adapter.logout_link_selector) is not None

    login_surface = any(marker in text for marker in adapter.login_surface_markers)
    if not login_surface:
        login_surface = soup.select_one(_PASSWORD_INPUT) is not None

    failed = any(marker in text for marker in adapter.failure_markers)

    if personalized and not login_surface and not failed:
        return AuthState.AUTHENTICATED
    if (login_surface or failed) and not personalized:
        return AuthState.NOT_AUTHENTICATED
    return AuthState.INDETERMINATE


class SessionManager:
    """Establishes and re-verifies the portal session on a browser page.

    Args:
        adapter: Portal layout (URLs and markers).
        timeout_ms: Bound for every navigation, including the post-login one.
    """

    def __init__(self, adapter: PortalAdapter, timeout_ms: int = 30000):
        self.adapter = adapter
        self.timeout_ms = timeout_ms

    def verify(self, page) -> AuthState:
        """Load the portal home page and classify it."""
        navigate(page, self.adapter.home_url, self.timeout_ms)
        return evaluate_auth_state(page.content(), self.adapter)

    def ensure_authenticated(self, page, credentials: Credentials) -> None:
        """Make sure ``page``'s browser context is logged in.

        Idempotent: when the session is already authenticated nothing is
        submitted.

        Raises:
            AuthenticationFormNotFound: No identifier/password inputs on the
                login page.
            AuthenticationRejected: The page after submitting is not
                authenticated (including undecidable pages).
            NavigationTimeout: The login transition took too long.
        """
        logger.info("Checking authentication...")
        state = self.verify(page)
        if state == AuthState.AUTHENTICATED:
            logger.info("Already authenticated")
            return

        logger.info(f"Session is {state.value}; logging in as {credentials.identifier}")
        navigate(page, self.adapter.login_url, self.timeout_ms)
        self._submit_login(page, credentials)

        after = evaluate_auth_state(page.content(), self.adapter)
        if after != AuthState.AUTHENTICATED:
            raise AuthenticationRejected(
                f"Login failed for {credentials.identifier} (page is {after.value})"
            )
        logger.info("Logged in successfully")

    def _submit_login(self, page, credentials: Credentials) -> None:
        # Pages also carry a header search form; stay inside the login form.
        identifier_input = page.query_selector(
            _within(_LOGIN_FORM, _IDENTIFIER_INPUT)
        ) or page.query_selector(", ".join(_IDENTIFIER_INPUT))
        password_input = page.query_selector(_PASSWORD_INPUT)
        if identifier_input is None or password_input is None:
            raise AuthenticationFormNotFound(
                f"No login form (identifier + password inputs) at {self.adapter.login_url}"
            )

        identifier_input.fill(credentials.identifier)
        password_input.fill(credentials.secret)

        submit = page.query_selector(
            _within(_LOGIN_FORM, _SUBMIT_CONTROL)
        ) or self._find_labelled_submit(page)
        try:
            with page.expect_navigation(wait_until="networkidle", timeout=self.timeout_ms):
                if submit is not None:
                    submit.click()
                else:
                    password_input.press("Enter")
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(
                f"Login did not complete within {self.timeout_ms} ms"
            ) from e

    def _find_labelled_submit(self, page):
        """Fallback: a button whose caption contains the adapter's submit label."""
        label = self.adapter.submit_label
        if not label:
            return None
        for control in page.query_selector_all(
            'button, input[type="button"], input[type="submit"]'
        ):
            caption = control.inner_text() or control.get_attribute("value") or ""
            if label in caption:
                return control
        return None
