"""Parse result lists (search results, recent documents) into references."""

import re
from typing import Iterator
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from budstandart.models import DocumentReference

_ID_PATTERN = re.compile(r"id_doc=(\d+)")


class DocumentListing:
    """Document references found on a listing page.

    Lazy and restartable: every iteration walks the parsed markup again from
    the top, yielding at most ``limit`` references in document order with
    duplicate ids dropped (first occurrence wins).
    """

    def __init__(
        self,
        soup: BeautifulSoup,
        limit: int,
        page_url: str,
        link_selector: str,
        min_title_length: int,
    ):
        self._soup = soup
        self.limit = limit
        self.page_url = page_url
        self.link_selector = link_selector
        self.min_title_length = min_title_length

    def __iter__(self) -> Iterator[DocumentReference]:
        if self.limit <= 0:
            return
        seen: set[str] = set()
        for anchor in self._soup.select(self.link_selector):
            reference = self._to_reference(anchor)
            if reference is None or reference.external_id in seen:
                continue
            seen.add(reference.external_id)
            yield reference
            if len(seen) >= self.limit:
                return

    def _to_reference(self, anchor):
        href = anchor.get("href") or ""
        match = _ID_PATTERN.search(href)
        if not match:
            return None
        title = " ".join(anchor.get_text(" ").split())
        if not title or len(title) < self.min_title_length:
            return None
        return DocumentReference(
            external_id=match.group(1),
            title=title,
            canonical_url=urljoin(self.page_url, href),
        )


def parse_listing(
    html: str,
    limit: int,
    *,
    page_url: str,
    link_selector: str = 'a[href*="id_doc"]',
    min_title_length: int = 1,
) -> DocumentListing:
    """Extract document references from a rendered listing page.

    Relative hrefs are resolved against ``page_url``, the address the listing
    was loaded from.

    Entries whose href carries no numeric ``id_doc`` or whose text is empty
    (or shorter than ``min_title_length``) are skipped silently. ``limit`` of
    zero or less yields nothing.
    """
    soup = BeautifulSoup(html, "html.parser")
    return DocumentListing(
        soup,
        limit=limit,
        page_url=page_url,
        link_selector=link_selector,
        min_title_length=min_title_length,
    )
