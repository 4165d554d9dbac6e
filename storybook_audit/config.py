import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from storybook_audit.errors import CatalogNotFoundError
from storybook_audit.models import ScreenshotMode

logger = logging.getLogger(__name__)

DEFAULT_PORT = 9876
ENV_PREFIX = "STORYBOOK_AUDIT_"

# Environment variable suffix -> settings field
ENV_FIELDS = {
    "STORYBOOK": "storybook_dir",
    "PORT": "port",
    "AXE_URL": "axe_url",
    "AXE_SCRIPT": "axe_script",
    "REPORT_TIMEOUT": "report_timeout",
    "SETTLE_MS": "settle_ms",
    "OUTPUT_DIR": "output_dir",
}


class AuditSettings(BaseModel):
    storybook_dir: Path
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)
    screenshot_mode: ScreenshotMode = ScreenshotMode.NONE
    output_dir: Path = Path(".")

    # axe-core is loaded into the content frame by URL. A local script file,
    # when given, is served by the catalog server at /axe.min.js.
    axe_script: Optional[Path] = None
    axe_url: Optional[str] = None

    report_timeout: Optional[float] = Field(120.0, description="Seconds to wait for the console report; None waits forever")
    settle_ms: int = Field(1000, ge=0)
    key_delay_ms: int = Field(150, ge=0)
    advance_retries: int = Field(3, ge=1)
    content_frame_pattern: str = "iframe"
    viewport_width: int = 1920
    viewport_height: int = 1080
    max_entries: Optional[int] = Field(None, ge=1)
    fail_on_violations: bool = False

    @field_validator("report_timeout")
    @classmethod
    def _zero_timeout_means_unbounded(cls, v):
        if v is not None and v <= 0:
            return None
        return v

    @property
    def base_url(self) -> str:
        return f"http://localhost:{self.port}"

    @property
    def resolved_axe_url(self) -> str:
        return self.axe_url or f"{self.base_url}/axe.min.js"

    def ensure_catalog(self) -> Path:
        """Returns the absolute catalog directory, failing if it was never built."""
        path = self.storybook_dir.expanduser().resolve()
        if not path.is_dir():
            raise CatalogNotFoundError(f"Storybook directory not found: {path} (create it with build-storybook)")
        if not (path / "index.html").exists():
            logger.warning(f"No index.html in {path}; is this a compiled Storybook?")
        return path

    @classmethod
    def from_env(cls, **overrides: Any) -> "AuditSettings":
        """
        Builds settings from the environment (and a .env file, if present).
        Keyword overrides win over the environment; None overrides are ignored
        so unset CLI flags fall through to env values and defaults.
        """
        load_dotenv()

        values: Dict[str, Any] = {}
        for suffix, field in ENV_FIELDS.items():
            raw = os.getenv(ENV_PREFIX + suffix)
            if raw:
                values[field] = raw

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
