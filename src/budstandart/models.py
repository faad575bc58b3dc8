"""Core data models for document acquisition."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Credentials:
    """Portal login. Held in memory for one invocation, never persisted."""

    identifier: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class DocumentReference:
    """A document as it appears in a listing (search results or recent)."""

    external_id: str
    title: str
    canonical_url: str

    def to_dict(self) -> dict:
        return {
            "id_doc": self.external_id,
            "title": self.title,
            "url": self.canonical_url,
        }


@dataclass
class DocumentDetail:
    """A document's detail page: reference plus metadata table and PDF link."""

    reference: DocumentReference
    metadata: dict[str, str] = field(default_factory=dict)
    candidate_pdf_url: Optional[str] = None

    @property
    def external_id(self) -> str:
        return self.reference.external_id

    @property
    def title(self) -> str:
        return self.reference.title

    @property
    def canonical_url(self) -> str:
        return self.reference.canonical_url

    def to_dict(self) -> dict:
        return {
            "id_doc": self.external_id,
            "title": self.title,
            "url": self.canonical_url,
            "metadata": dict(self.metadata),
            "pdfUrl": self.candidate_pdf_url,
        }


class ExtractionStrategy(str, Enum):
    """How a document's content was materialized."""

    DIRECT_PDF_FETCH = "direct_pdf_fetch"
    RENDERED_PDF = "rendered_pdf"
    HTML_CAPTURE = "html_capture"


@dataclass(frozen=True)
class ExtractionResult:
    """A document written to local storage."""

    reference: DocumentReference
    strategy: ExtractionStrategy
    storage_path: str
    byte_size: int
    source_url: str

    @property
    def format(self) -> str:
        return "html" if self.strategy == ExtractionStrategy.HTML_CAPTURE else "pdf"

    def to_dict(self) -> dict:
        return {
            "id_doc": self.reference.external_id,
            "title": self.reference.title,
            "url": self.source_url,
            "strategy": self.strategy.value,
            "format": self.format,
            "downloadPath": self.storage_path,
            "size": self.byte_size,
        }


class AuthState(str, Enum):
    """Outcome of inspecting a rendered page for a logged-in session."""

    AUTHENTICATED = "authenticated"
    NOT_AUTHENTICATED = "not_authenticated"
    INDETERMINATE = "indeterminate"


class OrchestratorState(str, Enum):
    """Lifecycle of a single acquisition invocation."""

    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    LISTING = "listing"
    DETAIL_FETCHING = "detail_fetching"
    EXTRACTING = "extracting"
    DONE = "done"
    FAILED = "failed"
