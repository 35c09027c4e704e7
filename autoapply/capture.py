"""Render a job page in headless Chromium and capture a full-page screenshot."""
from __future__ import annotations

from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from autoapply.errors import ExternalToolError
from autoapply.log import get_logger
from autoapply.models import is_valid_url

log = get_logger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
NAVIGATION_TIMEOUT_MS = 30_000


class PageCapture:
    """One headless browser per capture; it is always closed before returning."""

    def __init__(self, *, headless: bool = True, timeout_ms: int = NAVIGATION_TIMEOUT_MS) -> None:
        self.headless = headless
        self.timeout_ms = timeout_ms

    def capture(self, url: str, dest: Path) -> Path:
        if not is_valid_url(url):
            raise ExternalToolError(f"Invalid URL: {url!r}")
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)

        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=self.headless)
                try:
                    context = browser.new_context(viewport=VIEWPORT, user_agent=USER_AGENT)
                    page = context.new_page()
                    page.set_default_timeout(self.timeout_ms)
                    log.info("Navigating to: %s", url)
                    page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
                    page.screenshot(path=str(dest), full_page=True)
                finally:
                    browser.close()
        except PlaywrightError as exc:
            msg = str(exc).split("\n")[0][:200]
            raise ExternalToolError(f"Render failed for {url}: {msg}") from exc
        except OSError as exc:
            raise ExternalToolError(f"Could not write screenshot {dest}: {exc}") from exc

        log.debug("Screenshot saved → %s", dest)
        return dest
