"""Tests for the PDF backends and backend selection."""
import asyncio
import json

import httpx
import pytest

from app.config import Settings
from app.services import pdf_renderer as pdf_module
from app.services.pdf_renderer import (
    BrowserPdfRenderer,
    PageOptions,
    RemotePdfRenderer,
    RenderingTimeoutError,
    RenderingUnavailableError,
    UnavailablePdfRenderer,
    build_pdf_renderer,
)

API_URL = "https://pdf.example.test/v1/generate"
API_KEY = "secret-key-123456"


def _remote(handler, timeout: float = 5.0) -> RemotePdfRenderer:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemotePdfRenderer(API_KEY, API_URL, timeout=timeout, client=client)


def _settings(**values) -> Settings:
    return Settings(_env_file=None, **values)


# ---------------------------------------------------------------------------
# Remote API backend
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remote_renderer_posts_html_and_options():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"%PDF-remote")

    renderer = _remote(handler)
    pdf = await renderer.render("<p>hi</p>", PageOptions(format="A4", margin_px=75))
    await renderer.aclose()

    assert pdf == b"%PDF-remote"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.params["apiKey"] == API_KEY
    body = json.loads(request.content)
    assert body["html"] == "<p>hi</p>"
    assert body["format"] == "A4"
    assert body["marginTop"] == body["marginLeft"] == 75
    assert body["printBackground"] is True
    assert body["displayHeaderFooter"] is False


@pytest.mark.asyncio
async def test_remote_renderer_error_status_is_unavailable():
    renderer = _remote(lambda request: httpx.Response(401, text="bad key"))
    with pytest.raises(RenderingUnavailableError) as exc_info:
        await renderer.render("<p/>", PageOptions())
    await renderer.aclose()
    assert "401" in str(exc_info.value)
    assert not isinstance(exc_info.value, RenderingTimeoutError)


@pytest.mark.asyncio
async def test_remote_renderer_http_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    renderer = _remote(handler)
    with pytest.raises(RenderingTimeoutError):
        await renderer.render("<p/>", PageOptions())
    await renderer.aclose()


@pytest.mark.asyncio
async def test_remote_renderer_overall_timeout_budget():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, content=b"late")

    renderer = _remote(handler, timeout=0.05)
    with pytest.raises(RenderingTimeoutError):
        await renderer.render("<p/>", PageOptions())
    await renderer.aclose()


@pytest.mark.asyncio
async def test_remote_renderer_connection_error_hides_key():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

    renderer = _remote(handler)
    with pytest.raises(RenderingUnavailableError) as exc_info:
        await renderer.render("<p/>", PageOptions())
    await renderer.aclose()
    assert API_KEY not in str(exc_info.value)
    assert "ConnectError" in str(exc_info.value)


# ---------------------------------------------------------------------------
# Browser and disabled backends
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_unavailable_renderer_always_raises():
    renderer = UnavailablePdfRenderer("disabled here")
    with pytest.raises(RenderingUnavailableError, match="disabled here"):
        await renderer.render("<p/>", PageOptions())


def test_browser_candidates_start_with_configured_path(monkeypatch):
    found = {"chromium": "/usr/bin/chromium", "google-chrome": "/opt/chrome"}
    monkeypatch.setattr(pdf_module.shutil, "which", lambda name: found.get(name))
    renderer = BrowserPdfRenderer(executable_path="/custom/chrome")
    assert renderer.candidate_executables() == ["/custom/chrome", "/opt/chrome", "/usr/bin/chromium"]


def test_browser_candidates_default_to_bundled(monkeypatch):
    monkeypatch.setattr(pdf_module.shutil, "which", lambda name: None)
    assert BrowserPdfRenderer().candidate_executables() == [None]


@pytest.mark.asyncio
async def test_browser_renderer_timeout(monkeypatch):
    async def slow_render(self, html, options):
        await asyncio.sleep(1)
        return b"late"

    monkeypatch.setattr(BrowserPdfRenderer, "_render", slow_render)
    with pytest.raises(RenderingTimeoutError):
        await BrowserPdfRenderer(timeout=0.05).render("<p/>", PageOptions())


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_auto_on_serverless_with_key_uses_remote():
    renderer = build_pdf_renderer(_settings(VERCEL="1", PDF_API_KEY="k"))
    assert isinstance(renderer, RemotePdfRenderer)
    await renderer.aclose()


def test_auto_on_serverless_without_key_is_unavailable():
    renderer = build_pdf_renderer(_settings(VERCEL="1", PDF_API_KEY=None))
    assert isinstance(renderer, UnavailablePdfRenderer)


def test_auto_locally_uses_browser():
    renderer = build_pdf_renderer(_settings(VERCEL="", BROWSER_EXECUTABLE_PATH="/bin/chrome"))
    assert isinstance(renderer, BrowserPdfRenderer)
    assert renderer.executable_path == "/bin/chrome"


def test_remote_without_key_is_unavailable():
    renderer = build_pdf_renderer(_settings(PDF_BACKEND="remote", PDF_API_KEY="  "))
    assert renderer.backend == "none"


def test_explicit_none_backend():
    assert build_pdf_renderer(_settings(PDF_BACKEND="none")).backend == "none"


def test_unknown_backend_rejected():
    with pytest.raises(ValueError):
        build_pdf_renderer(_settings(PDF_BACKEND="wkhtmltopdf"))


def test_api_key_legacy_env_names(monkeypatch):
    monkeypatch.delenv("PDF_API_KEY", raising=False)
    monkeypatch.delenv("pdf_api_key", raising=False)
    monkeypatch.setenv("NUXT_PDF_API_KEY", "nuxt-key")
    assert Settings(_env_file=None).get_pdf_api_key() == "nuxt-key"
