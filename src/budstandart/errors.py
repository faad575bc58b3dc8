"""Exception hierarchy for portal acquisition and the file-search store."""

from typing import Optional, Sequence


class BudstandartError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(BudstandartError):
    """Missing or invalid configuration (credentials, URLs, API keys)."""


class AcquisitionError(BudstandartError):
    """Base class for failures while talking to the portal."""


class BrowserUnavailable(AcquisitionError):
    """Could not attach to the remote-debugging browser."""


class AuthenticationFormNotFound(AcquisitionError):
    """The login page has no identifier/password input pair."""


class AuthenticationRejected(AcquisitionError):
    """Credentials were submitted but the portal did not grant a session."""


class SessionExpired(AuthenticationRejected):
    """An established session stopped being authenticated mid-run."""


class NavigationTimeout(AcquisitionError):
    """A page transition did not finish within the configured bound."""


class NavigationFailed(AcquisitionError):
    """The browser could not load a page (DNS, connection or TLS errors)."""


class DocumentNotFound(AcquisitionError):
    """The detail page for a document id has no recognizable title."""


class ContentNotExtractable(AcquisitionError):
    """Every extraction strategy was inapplicable for the document."""

    def __init__(self, external_id: str, reasons: Sequence[str] = ()):
        self.external_id = external_id
        self.reasons = list(reasons)
        detail = "; ".join(self.reasons) if self.reasons else "no strategy applied"
        super().__init__(f"Could not extract content for document {external_id}: {detail}")


class TransferFailed(AcquisitionError):
    """An HTTP transfer failed at the network level or with a bad status."""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(f"Transfer failed for {url}: {message}")


class StoreError(BudstandartError):
    """File-search store operation failed."""


class StoreNotFound(StoreError):
    """The named store is not in the manifest."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Store "{name}" not found')
