"""Portal page adapters.

Everything that depends on the portal's markup (URLs, CSS selectors, marker
strings) lives here so that a layout change touches one class. The parsing
and session code only talks to the ``PortalAdapter`` interface.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence
from urllib.parse import quote

logger = logging.getLogger(__name__)


class PortalAdapter(ABC):
    """Markup and URL layout of one document portal."""

    name: str = ""

    # Listing pages
    search_link_selector: str = 'a[href*="id_doc"]'
    search_min_title_length: int = 1
    recent_link_selector: str = 'a[href*="id_doc"]'
    recent_min_title_length: int = 1

    # Detail page
    title_selectors: Sequence[str] = ("h1",)
    metadata_table_selectors: Sequence[str] = ()
    pdf_link_selector: str = 'a[href*=".pdf"]'

    # Viewer page
    content_selector: str = "body"

    # Authentication signals (plain text found in the rendered page)
    personalized_markers: Sequence[str] = ()
    logout_link_selector: Optional[str] = None
    login_surface_markers: Sequence[str] = ()
    failure_markers: Sequence[str] = ()
    submit_label: str = ""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    @property
    @abstractmethod
    def home_url(self) -> str: ...

    @property
    @abstractmethod
    def login_url(self) -> str: ...

    @abstractmethod
    def search_url(self, query: str) -> str: ...

    @property
    def recent_url(self) -> str:
        return self.home_url

    @abstractmethod
    def detail_url(self, external_id: str) -> str: ...

    @abstractmethod
    def viewer_url(self, external_id: str) -> str: ...

    @abstractmethod
    def matches(self, html: str) -> bool:
        """Capability probe: does this page come from the adapter's portal?"""


class BudstandartAdapter(PortalAdapter):
    """online.budstandart.com (Ukrainian interface)."""

    name = "budstandart"

    # Search results also link to navigation items ("Докладніше", pagination)
    # with id_doc in the href; real document titles are longer.
    search_link_selector = 'a[href*="id_doc"]'
    search_min_title_length = 11
    recent_link_selector = 'a[href*="doc-page.html?id_doc="]'
    recent_min_title_length = 1

    title_selectors = ("h1.doc-title", "h1")
    metadata_table_selectors = (".doc-metadata", ".document-info")
    pdf_link_selector = 'a[href*=".pdf"], a[href*="download"]'

    content_selector = "#bsdoctext"

    personalized_markers = ("Доброго дня", "Особистий кабінет")
    logout_link_selector = 'a[href*="logout"]'
    login_surface_markers = ("Вхід на сервіс",)
    failure_markers = (
        "Невірний логін або пароль",
        "Невірний пароль",
        "Помилка авторизації",
    )
    submit_label = "Увійти"

    @property
    def home_url(self) -> str:
        return f"{self.base_url}/ua/"

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/ua/login.html"

    def search_url(self, query: str) -> str:
        return f"{self.base_url}/ua/catalog/searchdoc.html?request={quote(query, safe='')}"

    def detail_url(self, external_id: str) -> str:
        return f"{self.base_url}/ua/catalog/doc-page.html?id_doc={external_id}"

    def viewer_url(self, external_id: str) -> str:
        return f"{self.base_url}/ua/catalog/document.html?id_doc={external_id}"

    def matches(self, html: str) -> bool:
        lowered = html.lower()
        return "budstandart" in lowered or 'id="bsdoctext"' in lowered


ADAPTERS: list[type[PortalAdapter]] = [BudstandartAdapter]


def select_adapter(
    html: str, base_url: str, candidates: Optional[Sequence[type[PortalAdapter]]] = None
) -> PortalAdapter:
    """Pick the first adapter whose probe accepts ``html``.

    Falls back to the first candidate when nothing matches, so an unfamiliar
    landing page still gets the default layout.
    """
    candidates = list(candidates or ADAPTERS)
    for adapter_cls in candidates:
        adapter = adapter_cls(base_url)
        if adapter.matches(html):
            logger.debug(f"Selected portal adapter: {adapter.name}")
            return adapter
    logger.warning(f"No adapter recognized the page; using {candidates[0].name}")
    return candidates[0](base_url)
