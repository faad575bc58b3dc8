"""Portal and runtime configuration.

Settings come from environment variables (a ``.env`` file is loaded by the
CLI), with defaults pointing at the public BUDSTANDART portal and a Chrome
instance started with ``--remote-debugging-port=9222``.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from budstandart.errors import ConfigurationError
from budstandart.models import Credentials

DEFAULT_BASE_URL = "https://online.budstandart.com"
DEFAULT_CDP_URL = "http://localhost:9222"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class PortalConfig:
    """Where the portal and the controllable browser live."""

    base_url: str = DEFAULT_BASE_URL
    cdp_url: str = DEFAULT_CDP_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    output_dir: Path = field(default_factory=lambda: Path("."))
    state_dir: Path = field(default_factory=lambda: Path.home() / ".budstandart")
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        self.base_url = self.base_url.rstrip("/")
        self.output_dir = Path(self.output_dir)
        self.state_dir = Path(self.state_dir).expanduser()
        self.validate()

    def validate(self) -> None:
        parsed = urlparse(self.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationError(f"Invalid portal base URL: {self.base_url!r}")
        if self.timeout_ms <= 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout_ms}")

    @property
    def manifest_path(self) -> Path:
        """JSON manifest of file-search stores."""
        return self.state_dir / "gemini-stores.json"


def load_portal_config(**overrides) -> PortalConfig:
    """Build a PortalConfig from BUDSTANDART_* environment variables.

    Keyword overrides with a value other than None win over the environment.
    """
    raw_timeout = os.getenv("BUDSTANDART_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS))
    try:
        timeout_ms = int(raw_timeout)
    except ValueError:
        raise ConfigurationError(f"BUDSTANDART_TIMEOUT_MS must be an integer, got {raw_timeout!r}")

    values = {
        "base_url": os.getenv("BUDSTANDART_BASE_URL", DEFAULT_BASE_URL),
        "cdp_url": os.getenv("BUDSTANDART_CDP_URL", DEFAULT_CDP_URL),
        "timeout_ms": timeout_ms,
        "output_dir": Path(os.getenv("BUDSTANDART_OUTPUT_DIR", ".")),
        "state_dir": Path(os.getenv("BUDSTANDART_STATE_DIR", str(Path.home() / ".budstandart"))),
        "user_agent": os.getenv("BUDSTANDART_USER_AGENT", DEFAULT_USER_AGENT),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return PortalConfig(**values)


def resolve_credentials(
    email: Optional[str] = None, password: Optional[str] = None
) -> Credentials:
    """Explicit values first, then BUDSTANDART_EMAIL / BUDSTANDART_PASSWORD."""
    identifier = email or os.getenv("BUDSTANDART_EMAIL")
    secret = password or os.getenv("BUDSTANDART_PASSWORD")
    if not identifier or not secret:
        raise ConfigurationError(
            "Credentials required. Pass --email/--password or set "
            "BUDSTANDART_EMAIL and BUDSTANDART_PASSWORD."
        )
    return Credentials(identifier=identifier, secret=secret)
