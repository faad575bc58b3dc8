"""Document detail pages: title, metadata table and PDF link."""

import logging
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from budstandart.acquire.adapters import PortalAdapter
from budstandart.acquire.browser import navigate
from budstandart.errors import DocumentNotFound
from budstandart.models import DocumentDetail, DocumentReference

logger = logging.getLogger(__name__)


def _clean(text: str) -> str:
    return " ".join(text.split())


def _find_title(soup: BeautifulSoup, adapter: PortalAdapter) -> str:
    for selector in adapter.title_selectors:
        node = soup.select_one(selector)
        if node is not None:
            title = _clean(node.get_text(" "))
            if title:
                return title
    return ""


def _find_metadata(soup: BeautifulSoup, adapter: PortalAdapter) -> dict[str, str]:
    """Key/value rows of the first metadata table present, in page order."""
    for selector in adapter.metadata_table_selectors:
        table = soup.select_one(selector)
        if table is None:
            continue
        metadata: dict[str, str] = {}
        for row in table.select("tr"):
            label_cell = row.find(["td", "th"])
            value_cells = row.find_all("td")
            if label_cell is None or not value_cells:
                continue
            label = _clean(label_cell.get_text(" ")).rstrip(":").strip()
            value = _clean(value_cells[-1].get_text(" "))
            if label and value:
                metadata[label] = value
        return metadata
    return {}


def _find_pdf_link(
    soup: BeautifulSoup, adapter: PortalAdapter, page_url: str
) -> Optional[str]:
    for anchor in soup.select(adapter.pdf_link_selector):
        href = anchor.get("href")
        if href:
            return urljoin(page_url, href)
    return None


def parse_detail(
    html: str, external_id: str, canonical_url: str, adapter: PortalAdapter
) -> DocumentDetail:
    """Build a DocumentDetail from a rendered detail page.

    Raises:
        DocumentNotFound: The page has no title.
    """
    soup = BeautifulSoup(html, "html.parser")
    title = _find_title(soup, adapter)
    if not title:
        raise DocumentNotFound(f"Document {external_id} not found (no title at {canonical_url})")

    return DocumentDetail(
        reference=DocumentReference(
            external_id=external_id, title=title, canonical_url=canonical_url
        ),
        metadata=_find_metadata(soup, adapter),
        candidate_pdf_url=_find_pdf_link(soup, adapter, canonical_url),
    )


def fetch_detail(page, external_id: str, adapter: PortalAdapter, timeout_ms: int = 30000):
    """Navigate to a document's detail page and parse it."""
    url = adapter.detail_url(external_id)
    logger.info(f"Fetching document {external_id}...")
    navigate(page, url, timeout_ms)
    detail = parse_detail(page.content(), external_id, url, adapter)
    if detail.candidate_pdf_url:
        logger.info(f"Found PDF link: {detail.candidate_pdf_url}")
    return detail
