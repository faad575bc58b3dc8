"""Shared pytest configuration and fixtures.

Browser interaction is exercised against ``FakePage``, an in-memory stand-in
for a Playwright page: each URL maps to canned HTML, selectors are evaluated
with BeautifulSoup, and submitting the login form swaps in scripted
post-login pages.
"""

from contextlib import contextmanager

import pytest
from bs4 import BeautifulSoup
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from budstandart.acquire.adapters import BudstandartAdapter
from budstandart.acquire.browser import BrowserConnection
from budstandart.acquire.fetch import FetchResult
from budstandart.config import PortalConfig
from budstandart.models import Credentials

BASE_URL = "https://online.budstandart.com"
HOME_URL = f"{BASE_URL}/ua/"
LOGIN_URL = f"{BASE_URL}/ua/login.html"

# ---------------------------------------------------------------------------
# Fake Playwright objects
# ---------------------------------------------------------------------------


class FakeElement:
    """Element handle backed by a BeautifulSoup tag."""

    def __init__(self, page, tag):
        self.page = page
        self.tag = tag

    def fill(self, value):
        self.page.filled[self.tag.get("type") or "text"] = value
        self.page.filled_names.append(self.tag.get("name"))

    def click(self):
        self.page.clicks.append(self.tag.name)
        self.page._submit()

    def press(self, key):
        self.page.key_presses.append(key)
        if key == "Enter":
            self.page._submit()

    def inner_text(self):
        return self.tag.get_text(" ").strip()

    def get_attribute(self, name):
        return self.tag.get(name)


class FakeContext:
    def __init__(self, cookies=None):
        self._cookies = list(cookies or [])
        self.cookie_requests = []

    def cookies(self, urls=None):
        self.cookie_requests.append(urls)
        return list(self._cookies)


class FakePage:
    """Minimal synchronous Playwright page.

    Args:
        routes: URL -> HTML served by ``goto``.
        after_login: URL -> HTML replacing ``routes`` entries once the login
            form is submitted.
        post_submit_html: Content shown right after submitting.
        pdf_bytes: What ``page.pdf()`` returns.
        pdf_error: Exception raised by ``page.pdf()`` instead.
        slow_urls: URLs whose ``goto`` times out.
        navigation_times_out: The post-submit navigation times out.
    """

    def __init__(
        self,
        routes,
        after_login=None,
        post_submit_html=None,
        pdf_bytes=b"%PDF-1.4 rendered",
        pdf_error=None,
        slow_urls=(),
        navigation_times_out=False,
        cookies=None,
    ):
        self.routes = dict(routes)
        self.after_login = dict(after_login or {})
        self.post_submit_html = post_submit_html
        self.pdf_bytes = pdf_bytes
        self.pdf_error = pdf_error
        self.slow_urls = set(slow_urls)
        self.navigation_times_out = navigation_times_out
        self.context = FakeContext(cookies)

        self.url = "about:blank"
        self.html = "<html><body></body></html>"
        self.visits = []
        self.filled = {}
        self.filled_names = []
        self.clicks = []
        self.key_presses = []
        self.submissions = 0
        self.pdf_calls = []

    # -- navigation --

    def goto(self, url, wait_until=None, timeout=None):
        if url in self.slow_urls:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.visits.append(url)
        self.url = url
        self.html = self.routes.get(url, "<html><body>Not found</body></html>")

    def content(self):
        return self.html

    @contextmanager
    def expect_navigation(self, wait_until=None, timeout=None):
        yield
        if self.navigation_times_out:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for navigation")

    def _submit(self):
        self.submissions += 1
        self.routes.update(self.after_login)
        if self.post_submit_html is not None:
            self.html = self.post_submit_html

    # -- selectors --

    def _soup(self):
        return BeautifulSoup(self.html, "html.parser")

    def query_selector(self, selector):
        tag = self._soup().select_one(selector)
        return FakeElement(self, tag) if tag is not None else None

    def query_selector_all(self, selector):
        return [FakeElement(self, tag) for tag in self._soup().select(selector)]

    # -- rendering --

    def pdf(self, **kwargs):
        self.pdf_calls.append(kwargs)
        if self.pdf_error is not None:
            raise self.pdf_error
        return self.pdf_bytes


class FakeFetcher:
    """Stands in for ``fetch_with_cookies``; records calls."""

    def __init__(
        self,
        status=200,
        content=b"%PDF-1.7 original",
        content_type="application/pdf",
        responses=None,
    ):
        self.status = status
        self.content = content
        self.content_type = content_type
        # url -> (status, content), overriding the defaults above
        self.responses = dict(responses or {})
        self.calls = []

    def __call__(self, url, cookies, user_agent, timeout=60):
        self.calls.append({"url": url, "cookies": list(cookies), "user_agent": user_agent})
        status, content = self.responses.get(url, (self.status, self.content))
        return FetchResult(
            url=url, status=status, content=content, content_type=self.content_type
        )


class FakeConnector:
    """Replacement for ``connect_browser`` that hands out a FakePage."""

    def __init__(self, page):
        self.page = page
        self.opened = 0
        self.released = 0

    @contextmanager
    def __call__(self, cdp_url, timeout_ms=30000):
        self.opened += 1
        try:
            yield BrowserConnection(browser=None, context=self.page.context, page=self.page)
        finally:
            self.released += 1


# ---------------------------------------------------------------------------
# Portal pages
# ---------------------------------------------------------------------------

LOGIN_FORM = """
<h2>Вхід на сервіс</h2>
<form action="/ua/login.html" method="post">
  <input type="text" name="login" placeholder="Логін">
  <input type="password" name="pass" placeholder="Пароль">
  <button type="submit">Увійти</button>
</form>
"""


def page_html(body, title="БУДСТАНДАРТ Online"):
    return (
        f"<html><head><title>{title}</title></head>"
        f'<body><div class="logo">budstandart</div>{body}</body></html>'
    )


@pytest.fixture
def adapter():
    return BudstandartAdapter(BASE_URL)


@pytest.fixture
def credentials():
    return Credentials(identifier="user@example.com", secret="s3cret")


@pytest.fixture
def portal_config(tmp_path):
    return PortalConfig(
        base_url=BASE_URL,
        cdp_url="http://localhost:9222",
        timeout_ms=30000,
        output_dir=tmp_path / "out",
        state_dir=tmp_path / "state",
    )


@pytest.fixture
def home_authenticated():
    return page_html(
        """
        <div class="user-panel">Доброго дня, Іван! <a href="/ua/cabinet.html">Особистий кабінет</a>
        <a href="/ua/logout.html">Вийти</a></div>
        <ul class="new-docs">
          <li><a href="/ua/catalog/doc-page.html?id_doc=101">ДСТУ Б В.2.7-1:2020 Будівельні матеріали</a></li>
          <li><a href="/ua/catalog/doc-page.html?id_doc=102">ДБН В.1.1-7:2016 Пожежна безпека</a></li>
          <li><a href="/ua/catalog/doc-page.html?id_doc=101">ДСТУ Б В.2.7-1:2020 (повтор)</a></li>
          <li><a href="/ua/catalog/searchdoc.html?id_doc=">Пошук</a></li>
        </ul>
        """
    )


@pytest.fixture
def home_anonymous():
    return page_html(LOGIN_FORM)


@pytest.fixture
def login_page():
    return page_html(LOGIN_FORM)


@pytest.fixture
def search_html():
    return page_html(
        """
        <div class="search-results">
          <div class="item">
            <a href="/ua/catalog/doc-page.html?id_doc=71180">ДБН В.2.6-31:2021 Теплова ізоляція будівель</a>
            <a href="/ua/catalog/doc-page.html?id_doc=71180">Докладніше</a>
          </div>
          <div class="item">
            <a href="/ua/catalog/doc-page.html?id_doc=88263">ДБН В.2.2-40:2018 Інклюзивність будівель і споруд</a>
          </div>
          <div class="item">
            <a href="/ua/catalog/doc-page.html?id_doc=90210">ДБН А.2.2-3:2014 Склад та зміст проектної документації</a>
          </div>
        </div>
        """
    )


@pytest.fixture
def detail_html():
    return page_html(
        """
        <h1 class="doc-title">ДБН В.2.6-31:2021 Теплова ізоляція будівель</h1>
        <table class="doc-metadata">
          <tr><th>Статус:</th><td>Чинний</td></tr>
          <tr><td>Дата введення:</td><td>2022-09-01</td></tr>
          <tr><td>Замість:</td><td></td></tr>
        </table>
        <a href="/files/dbn-v26-31-2021.pdf">Завантажити PDF</a>
        """
    )


@pytest.fixture
def detail_no_pdf_html():
    return page_html(
        """
        <h1>ДСТУ-Н Б В.1.1-27:2010 Захист від небезпечних геологічних процесів</h1>
        <table class="document-info"><tr><td>Статус</td><td>Чинний</td></tr></table>
        """
    )


@pytest.fixture
def viewer_iframe_html():
    return page_html(
        '<iframe src="/pdfjs/web/viewer.html?file=%2Fdocs%2Fsecure%2F71180.pdf&amp;lang=uk"></iframe>'
    )


@pytest.fixture
def viewer_text_html():
    return page_html(
        """
        <div id="bsdoctext">
          <h2>1 Сфера застосування</h2>
          <p>Ці норми поширюються на проектування.</p>
          <script>trackView();</script>
          <style>.x { color: red; }</style>
          <table><tr><td>Клас</td><td>А</td></tr></table>
        </div>
        """
    )


@pytest.fixture
def viewer_empty_html():
    return page_html("<div class='viewer'>Документ недоступний</div>")


@pytest.fixture
def make_page():
    """Factory for FakePage instances."""
    return FakePage


@pytest.fixture
def make_fetcher():
    return FakeFetcher


@pytest.fixture
def make_connector():
    return FakeConnector
