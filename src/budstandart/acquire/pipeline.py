"""Acquisition orchestrator.

One invocation = attach to the browser, authenticate, then list, describe or
download. States move IDLE -> AUTHENTICATING -> LISTING | DETAIL_FETCHING
[-> EXTRACTING] -> DONE, or to FAILED from anywhere. Errors are re-raised
unchanged and the browser connection is released on every path.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

from budstandart.acquire.adapters import PortalAdapter, select_adapter
from budstandart.acquire.browser import connect_browser, navigate
from budstandart.acquire.detail import fetch_detail
from budstandart.acquire.extraction import ExtractionContext, ExtractionPipeline, Strategy
from budstandart.acquire.fetch import FetchResult, fetch_with_cookies
from budstandart.acquire.listing import parse_listing
from budstandart.acquire.session import SessionManager
from budstandart.config import PortalConfig
from budstandart.models import (
    Credentials,
    DocumentDetail,
    DocumentReference,
    ExtractionResult,
    OrchestratorState,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


class AcquisitionOrchestrator:
    """Drives one portal operation from login to result.

    Args:
        config: Portal, browser and output settings.
        credentials: Login used when the browser is not already signed in.
        adapter: Portal layout; probed from the landing page when omitted.
        connect: Context manager factory yielding a browser connection.
        fetcher: HTTP downloader used by the direct PDF strategy.
        strategies: Extraction strategies, in order (default chain if None).
    """

    def __init__(
        self,
        config: PortalConfig,
        credentials: Credentials,
        *,
        adapter: Optional[PortalAdapter] = None,
        connect: Callable = connect_browser,
        fetcher: Callable[..., FetchResult] = fetch_with_cookies,
        strategies: Optional[Sequence[Strategy]] = None,
    ):
        self.config = config
        self.credentials = credentials
        self.adapter = adapter
        self._connect = connect
        self._fetcher = fetcher
        self._extraction = ExtractionPipeline(strategies)
        self._sessions: Optional[SessionManager] = None
        self.state = OrchestratorState.IDLE
        self.history: list[OrchestratorState] = [self.state]

    def _transition(self, state: OrchestratorState) -> None:
        logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @contextmanager
    def _authenticated_page(self) -> Iterator:
        """Attach, authenticate and yield the working page.

        Marks the invocation DONE on normal exit and FAILED on any error.
        """
        self.state = OrchestratorState.IDLE
        self.history = [self.state]
        try:
            with self._connect(self.config.cdp_url, self.config.timeout_ms) as conn:
                page = conn.page
                self._transition(OrchestratorState.AUTHENTICATING)
                if self.adapter is None:
                    navigate(page, self.config.base_url + "/", self.config.timeout_ms)
                    self.adapter = select_adapter(page.content(), self.config.base_url)
                self._sessions = SessionManager(self.adapter, self.config.timeout_ms)
                self._sessions.ensure_authenticated(page, self.credentials)
                yield page
        except BaseException:
            self._transition(OrchestratorState.FAILED)
            raise
        self._transition(OrchestratorState.DONE)

    def search(self, query: str, limit: int = DEFAULT_LIMIT) -> list[DocumentReference]:
        """Search the catalog; first ``limit`` unique documents in page order."""
        with self._authenticated_page() as page:
            self._transition(OrchestratorState.LISTING)
            logger.info(f'Searching for "{query}"...')
            search_url = self.adapter.search_url(query)
            navigate(page, search_url, self.config.timeout_ms)
            results = list(
                parse_listing(
                    page.content(),
                    limit,
                    page_url=search_url,
                    link_selector=self.adapter.search_link_selector,
                    min_title_length=self.adapter.search_min_title_length,
                )
            )
            logger.info(f"Found {len(results)} documents")
        return results

    def recent(self, limit: int = DEFAULT_LIMIT) -> list[DocumentReference]:
        """Documents linked from the portal's landing page."""
        with self._authenticated_page() as page:
            self._transition(OrchestratorState.LISTING)
            logger.info("Fetching recent documents...")
            navigate(page, self.adapter.recent_url, self.config.timeout_ms)
            results = list(
                parse_listing(
                    page.content(),
                    limit,
                    page_url=self.adapter.recent_url,
                    link_selector=self.adapter.recent_link_selector,
                    min_title_length=self.adapter.recent_min_title_length,
                )
            )
        return results

    def document(self, external_id: str) -> DocumentDetail:
        """Title, metadata and PDF link of one document."""
        with self._authenticated_page() as page:
            self._transition(OrchestratorState.DETAIL_FETCHING)
            detail = fetch_detail(page, external_id, self.adapter, self.config.timeout_ms)
        return detail

    def download(self, external_id: str, output: Optional[Path] = None) -> ExtractionResult:
        """Save one document to disk (PDF when possible, HTML otherwise).

        Args:
            external_id: Portal document id (``id_doc``).
            output: Exact destination path. Defaults to a title-derived name
                in ``config.output_dir``.
        """
        with self._authenticated_page() as page:
            self._transition(OrchestratorState.DETAIL_FETCHING)
            detail = fetch_detail(page, external_id, self.adapter, self.config.timeout_ms)

            self._transition(OrchestratorState.EXTRACTING)
            logger.info(f"Downloading document {external_id}...")
            ctx = ExtractionContext(
                page=page,
                detail=detail,
                adapter=self.adapter,
                timeout_ms=self.config.timeout_ms,
                user_agent=self.config.user_agent,
                fetcher=self._fetcher,
                verify_session=lambda: self._sessions.verify(page),
            )
            result = self._extraction.run(ctx, output=output, output_dir=self.config.output_dir)
        return result
