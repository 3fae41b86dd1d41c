"""
HTML → PDF rendering backends.

Provides:
- PdfRenderer: the capability every backend implements (``render`` + ``aclose``)
- RemotePdfRenderer: html2pdf.app HTTP API via httpx
- BrowserPdfRenderer: headless Chromium via Playwright, with executable discovery
- UnavailablePdfRenderer: always refuses, so callers fall back to HTML
- build_pdf_renderer: picks one backend from settings at process start

Every backend bounds the whole render by a timeout and reports failure only
through ``RenderingUnavailableError`` (or ``RenderingTimeoutError``), never by
returning partial output.
"""
from __future__ import annotations

import abc
import asyncio
import dataclasses
import logging
import shutil
from typing import List, Optional

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from app.config import Settings
from app.utils.helpers import mask_secret, truncate_text

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors and options
# ---------------------------------------------------------------------------

class RenderingUnavailableError(RuntimeError):
    """The PDF backend could not produce a document."""


class RenderingTimeoutError(RenderingUnavailableError):
    """The PDF backend did not finish within the timeout budget."""


@dataclasses.dataclass(frozen=True)
class PageOptions:
    """Page setup passed to every backend."""

    format: str = "A4"
    margin_px: int = 75
    print_background: bool = True

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PageOptions":
        return cls(format=cfg.PDF_PAGE_FORMAT, margin_px=cfg.PDF_MARGIN_PX)


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------

class PdfRenderer(abc.ABC):
    """Converts a finished HTML document to PDF bytes."""

    backend: str = "none"

    @abc.abstractmethod
    async def render(self, html: str, options: PageOptions) -> bytes:
        """Return PDF bytes or raise ``RenderingUnavailableError``."""

    async def aclose(self) -> None:
        """Release any resources held by the backend."""


class UnavailablePdfRenderer(PdfRenderer):
    """Backend used where no PDF engine is configured (e.g. serverless without a key)."""

    backend = "none"

    def __init__(self, reason: str = "PDF rendering is not configured") -> None:
        self.reason = reason

    async def render(self, html: str, options: PageOptions) -> bytes:
        raise RenderingUnavailableError(self.reason)


# ---------------------------------------------------------------------------
# Remote API backend
# ---------------------------------------------------------------------------

class RemotePdfRenderer(PdfRenderer):
    """
    Renders through the html2pdf.app REST API.

    One ``httpx.AsyncClient`` is created with the renderer and reused for
    every request until ``aclose``.  The API key travels as the ``apiKey``
    query parameter and is never written to logs or error messages.
    """

    backend = "remote"

    def __init__(
        self,
        api_key: str,
        api_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0))

    async def render(self, html: str, options: PageOptions) -> bytes:
        payload = {
            "html": html,
            "format": options.format,
            "marginTop": options.margin_px,
            "marginRight": options.margin_px,
            "marginBottom": options.margin_px,
            "marginLeft": options.margin_px,
            "printBackground": options.print_background,
            "displayHeaderFooter": False,
        }
        logger.info(
            "Requesting PDF from %s (key %s, %d bytes of HTML)",
            self.api_url,
            mask_secret(self._api_key),
            len(html),
        )
        try:
            response = await asyncio.wait_for(
                self._client.post(self.api_url, params={"apiKey": self._api_key}, json=payload),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise RenderingTimeoutError(
                f"PDF service did not respond within {self.timeout:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            # str(exc) can carry the request URL, which holds the key
            raise RenderingUnavailableError(
                f"PDF service unreachable ({type(exc).__name__})"
            ) from exc

        if not response.is_success:
            raise RenderingUnavailableError(
                f"PDF generation failed: {response.status_code} {truncate_text(response.text)}"
            )
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Headless browser backend
# ---------------------------------------------------------------------------

class BrowserPdfRenderer(PdfRenderer):
    """
    Renders with headless Chromium through Playwright.

    Executables are tried in order: the configured path (or Playwright's
    bundled Chromium when unset), then any system browser found on ``PATH``.
    The first one that launches is used.
    """

    backend = "browser"

    LAUNCH_ARGS: List[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--no-first-run",
    ]
    SYSTEM_BROWSERS = ("google-chrome", "chromium", "chromium-browser", "microsoft-edge")

    def __init__(self, executable_path: Optional[str] = None, timeout: float = 30.0) -> None:
        self.executable_path = executable_path
        self.timeout = timeout

    def candidate_executables(self) -> List[Optional[str]]:
        """Executables to try; ``None`` means Playwright's bundled Chromium."""
        candidates: List[Optional[str]] = [self.executable_path]
        for name in self.SYSTEM_BROWSERS:
            found = shutil.which(name)
            if found and found not in candidates:
                candidates.append(found)
        return candidates

    async def render(self, html: str, options: PageOptions) -> bytes:
        try:
            return await asyncio.wait_for(self._render(html, options), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise RenderingTimeoutError(
                f"Browser PDF rendering exceeded {self.timeout:g}s"
            ) from exc
        except PlaywrightError as exc:
            raise RenderingUnavailableError(f"Browser PDF rendering failed: {exc}") from exc

    async def _render(self, html: str, options: PageOptions) -> bytes:
        failures: List[str] = []
        margin = f"{options.margin_px}px"
        async with async_playwright() as playwright:
            for executable in self.candidate_executables():
                label = executable or "bundled chromium"
                try:
                    browser = await playwright.chromium.launch(
                        executable_path=executable,
                        args=self.LAUNCH_ARGS,
                        headless=True,
                    )
                except PlaywrightError as exc:
                    logger.warning("Chromium launch failed (%s): %s", label, exc)
                    failures.append(label)
                    continue

                logger.info("Rendering PDF with %s", label)
                try:
                    page = await browser.new_page()
                    await page.set_content(html, wait_until="networkidle")
                    return await page.pdf(
                        format=options.format,
                        print_background=options.print_background,
                        margin={"top": margin, "right": margin, "bottom": margin, "left": margin},
                    )
                finally:
                    await browser.close()

        raise RenderingUnavailableError(
            f"No usable browser found (tried: {', '.join(failures)})"
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def build_pdf_renderer(cfg: Settings) -> PdfRenderer:
    """
    Choose the backend once, at process start.

    ``PDF_BACKEND=auto`` uses the remote API on a serverless platform when a
    key is configured (nothing otherwise) and headless Chromium locally.
    """
    backend = cfg.PDF_BACKEND.strip().lower()
    api_key = cfg.get_pdf_api_key()

    if backend == "auto":
        if cfg.is_serverless:
            backend = "remote" if api_key else "none"
        else:
            backend = "browser"

    if backend == "remote":
        if not api_key:
            logger.warning("PDF_BACKEND=remote but no PDF API key is set; PDF output disabled")
            return UnavailablePdfRenderer(
                "PDF API key not configured. Set PDF_API_KEY (or pdf_api_key / NUXT_PDF_API_KEY)."
            )
        return RemotePdfRenderer(api_key, cfg.PDF_API_URL, timeout=cfg.PDF_TIMEOUT_SECONDS)
    if backend == "browser":
        return BrowserPdfRenderer(cfg.BROWSER_EXECUTABLE_PATH, timeout=cfg.PDF_TIMEOUT_SECONDS)
    if backend == "none":
        return UnavailablePdfRenderer()

    raise ValueError(f"Unknown PDF_BACKEND {cfg.PDF_BACKEND!r} (expected auto, remote, browser or none)")
