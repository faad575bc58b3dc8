"""Turn a document into a file on disk, trying several strategies in order.

1. DirectPdfFetch: download the PDF (link on the detail page, or the ``file=``
   parameter of the viewer's PDF.js iframe) with the browser's cookies.
2. RenderedPdf: print the detail page to PDF in the browser.
3. HtmlCapture: save the viewer's document body as a standalone HTML page.

A strategy that cannot apply returns ``Inapplicable`` and the next one is
tried. Network and navigation failures are raised, not treated as
"inapplicable".
"""

import html
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence, Union
from urllib.parse import unquote, urljoin

from bs4 import BeautifulSoup
from playwright.sync_api import Error as PlaywrightError

from budstandart.acquire.adapters import PortalAdapter
from budstandart.acquire.browser import navigate
from budstandart.acquire.fetch import FetchResult, fetch_with_cookies
from budstandart.errors import ContentNotExtractable, SessionExpired, TransferFailed
from budstandart.models import (
    AuthState,
    DocumentDetail,
    ExtractionResult,
    ExtractionStrategy,
)

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 200

_UNSAFE_CHARS = re.compile(r'[/\\?%*:|"<>]')
_VIEWER_FILE_PARAM = re.compile(r"[?&#]file=([^&]+)")

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="uk">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
    body {{ font-family: Arial, sans-serif; max-width: 1200px; margin: 0 auto; padding: 20px; }}
    table {{ border-collapse: collapse; width: 100%; margin: 20px 0; }}
    table, th, td {{ border: 1px solid #ddd; }}
    th, td {{ padding: 8px; text-align: left; }}
    th {{ background-color: #f2f2f2; }}
    h1, h2, h3, h4 {{ color: #333; margin-top: 20px; }}
  </style>
</head>
<body>
  <h1>{title}</h1>
  <p><strong>Джерело:</strong> <a href="{source}">{source}</a></p>
  <hr>
  {content}
</body>
</html>
"""


def safe_filename(title: str, extension: str) -> str:
    """Derive a filesystem-safe file name from a document title.

    Path separators and shell-hostile characters become ``-``, whitespace
    runs become a single ``_``, and the stem is capped at 200 characters.

    Args:
        title: Document title (any Unicode).
        extension: Suffix including the dot, e.g. ``".pdf"``.
    """
    stem = _UNSAFE_CHARS.sub("-", title)
    stem = re.sub(r"\s+", "_", stem)
    stem = re.sub(r"_{2,}", "_", stem)
    stem = stem.strip("_")[:MAX_FILENAME_LENGTH]
    return f"{stem or 'document'}{extension}"


def _umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_atomic(dest: Path, payload: bytes) -> None:
    """Write ``payload`` to ``dest`` via a temp file renamed into place.

    The file gets the same permissions as a plain ``open(dest, "wb")``
    would give it (0666 minus the umask), not mkstemp's 0600.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=dest.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.chmod(tmp_path, 0o666 & ~_umask())
        Path(tmp_path).replace(dest)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


@dataclass
class Artifact:
    """Document content produced by a strategy, held fully in memory."""

    payload: bytes
    extension: str
    source_url: str


@dataclass
class Inapplicable:
    """A strategy could not be used for this document."""

    reason: str


ExtractionAttempt = Union[Artifact, Inapplicable]


@dataclass
class ExtractionContext:
    """Everything a strategy may need for one document.

    ``verify_session`` reloads the portal and reports the auth state; it is
    called before the pipeline moves past an inapplicable strategy.
    """

    page: object
    detail: DocumentDetail
    adapter: PortalAdapter
    timeout_ms: int = 30000
    user_agent: str = ""
    fetcher: Callable[..., FetchResult] = fetch_with_cookies
    verify_session: Optional[Callable[[], AuthState]] = None
    _viewer_html: Optional[str] = field(default=None, repr=False)

    @property
    def viewer_url(self) -> str:
        return self.adapter.viewer_url(self.detail.external_id)

    def viewer_html(self) -> str:
        """Rendered viewer page, loaded at most once per document."""
        if self._viewer_html is None:
            navigate(self.page, self.viewer_url, self.timeout_ms)
            self._viewer_html = self.page.content()
        return self._viewer_html


class Strategy(ABC):
    """One way of materializing a document."""

    kind: ExtractionStrategy

    @abstractmethod
    def attempt(self, ctx: ExtractionContext) -> ExtractionAttempt: ...


class DirectPdfFetch(Strategy):
    """Download the original PDF over HTTP with the session's cookies."""

    kind = ExtractionStrategy.DIRECT_PDF_FETCH

    def attempt(self, ctx: ExtractionContext) -> ExtractionAttempt:
        failures: list[str] = []
        for pdf_url in self._pdf_urls(ctx):
            logger.info(f"Found PDF: {pdf_url}")
            cookies = ctx.page.context.cookies(pdf_url)
            result = ctx.fetcher(pdf_url, cookies, ctx.user_agent)

            if not result.ok:
                failure = TransferFailed(pdf_url, f"HTTP {result.status}", status=result.status)
                logger.warning(str(failure))
                failures.append(str(failure))
                continue
            if not result.content:
                failures.append(f"empty response from {pdf_url}")
                continue
            if not result.is_pdf:
                logger.warning(
                    f"Response from {pdf_url} does not start with a PDF header "
                    f"(Content-Type: {result.content_type or 'unknown'}); saving anyway"
                )
            return Artifact(payload=result.content, extension=".pdf", source_url=pdf_url)

        if not failures:
            return Inapplicable("no PDF link on the detail page or in the viewer")
        return Inapplicable("; ".join(failures))

    def _pdf_urls(self, ctx: ExtractionContext) -> Iterator[str]:
        """Detail-page link first, then the viewer's PDF; the viewer loads only if needed."""
        candidate = ctx.detail.candidate_pdf_url
        if candidate:
            yield candidate
        viewer_pdf = self._viewer_pdf_url(ctx)
        if viewer_pdf and viewer_pdf != candidate:
            yield viewer_pdf

    @staticmethod
    def _viewer_pdf_url(ctx: ExtractionContext) -> Optional[str]:
        """The PDF behind the viewer's ``<iframe src=".../viewer.html?file=...">``.

        ``file=`` is relative to the iframe document, whose own ``src`` is
        relative to the viewer page.
        """
        soup = BeautifulSoup(ctx.viewer_html(), "html.parser")
        for iframe in soup.find_all("iframe"):
            src = iframe.get("src") or ""
            match = _VIEWER_FILE_PARAM.search(src)
            if match:
                frame_url = urljoin(ctx.viewer_url, src)
                return urljoin(frame_url, unquote(match.group(1)))
        return None


class RenderedPdf(Strategy):
    """Print the detail page to PDF from the browser."""

    kind = ExtractionStrategy.RENDERED_PDF

    def attempt(self, ctx: ExtractionContext) -> ExtractionAttempt:
        url = ctx.detail.canonical_url
        navigate(ctx.page, url, ctx.timeout_ms)
        try:
            payload = ctx.page.pdf(
                format="A4",
                print_background=True,
                margin={"top": "20mm", "bottom": "20mm", "left": "15mm", "right": "15mm"},
            )
        except PlaywrightError as e:
            return Inapplicable(f"page renderer unavailable: {e}")
        if not payload:
            return Inapplicable("page renderer produced no output")
        return Artifact(payload=payload, extension=".pdf", source_url=url)


class HtmlCapture(Strategy):
    """Save the viewer's document text as a self-contained HTML file."""

    kind = ExtractionStrategy.HTML_CAPTURE

    def attempt(self, ctx: ExtractionContext) -> ExtractionAttempt:
        soup = BeautifulSoup(ctx.viewer_html(), "html.parser")
        container = soup.select_one(ctx.adapter.content_selector)
        if container is None:
            return Inapplicable(f"viewer has no {ctx.adapter.content_selector} element")

        for node in container.select("script, style"):
            node.decompose()
        content = container.decode_contents().strip()
        if not content:
            return Inapplicable(f"{ctx.adapter.content_selector} is empty")

        logger.info("No PDF available, capturing HTML content")
        page_html = _HTML_TEMPLATE.format(
            title=html.escape(ctx.detail.title),
            source=html.escape(ctx.viewer_url),
            content=content,
        )
        return Artifact(
            payload=page_html.encode("utf-8"), extension=".html", source_url=ctx.viewer_url
        )


def default_strategies() -> list[Strategy]:
    return [DirectPdfFetch(), RenderedPdf(), HtmlCapture()]


class ExtractionPipeline:
    """Runs strategies in order and writes the first artifact produced.

    Args:
        strategies: Ordered strategies; defaults to direct fetch, rendered
            PDF, HTML capture.
    """

    def __init__(self, strategies: Optional[Sequence[Strategy]] = None):
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def run(
        self,
        ctx: ExtractionContext,
        output: Optional[Path] = None,
        output_dir: Path = Path("."),
    ) -> ExtractionResult:
        """Extract ``ctx.detail`` to disk.

        Args:
            ctx: Document and browser context.
            output: Exact destination path; used verbatim when given.
            output_dir: Directory for the title-derived file name otherwise.

        Raises:
            ContentNotExtractable: Every strategy was inapplicable.
            SessionExpired: The session was lost while falling back.
        """
        reasons: list[str] = []
        verified = False

        for index, strategy in enumerate(self.strategies):
            if index > 0 and not verified:
                self._reverify(ctx)
                verified = True

            logger.debug(f"Trying {strategy.kind.value}")
            attempt = strategy.attempt(ctx)
            if isinstance(attempt, Artifact):
                return self._store(ctx, strategy.kind, attempt, output, output_dir)

            logger.info(f"{strategy.kind.value} not applicable: {attempt.reason}")
            reasons.append(f"{strategy.kind.value}: {attempt.reason}")

        raise ContentNotExtractable(ctx.detail.external_id, reasons)

    @staticmethod
    def _reverify(ctx: ExtractionContext) -> None:
        if ctx.verify_session is None:
            return
        state = ctx.verify_session()
        if state != AuthState.AUTHENTICATED:
            raise SessionExpired(
                f"Session no longer authenticated ({state.value}) while "
                f"extracting document {ctx.detail.external_id}"
            )

    @staticmethod
    def _store(
        ctx: ExtractionContext,
        kind: ExtractionStrategy,
        artifact: Artifact,
        output: Optional[Path],
        output_dir: Path,
    ) -> ExtractionResult:
        if output is not None:
            dest = Path(output)
            if dest.suffix.lower() != artifact.extension:
                logger.warning(
                    f"Saving {kind.value} output ({artifact.extension}) to {dest} "
                    f"as requested; the file name suffix does not match"
                )
        else:
            dest = Path(output_dir) / safe_filename(ctx.detail.title, artifact.extension)

        write_atomic(dest, artifact.payload)
        logger.info(f"Saved {len(artifact.payload)} bytes to {dest}")
        return ExtractionResult(
            reference=ctx.detail.reference,
            strategy=kind,
            storage_path=str(dest),
            byte_size=len(artifact.payload),
            source_url=artifact.source_url,
        )
