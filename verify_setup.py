"""
Setup verification script for the statutory declaration service.
Checks dependencies, configuration and the PDF backends.
"""
import asyncio
import sys
import os
from typing import List, Tuple

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"


def print_status(message: str, status: bool):
    """Print colored status message."""
    symbol = f"{GREEN}✓{RESET}" if status else f"{RED}✗{RESET}"
    print(f"{symbol} {message}")


async def check_python_version() -> bool:
    """Check Python version is 3.11+."""
    version = sys.version_info
    if version.major == 3 and version.minor >= 11:
        print_status(f"Python version: {version.major}.{version.minor}.{version.micro}", True)
        return True
    else:
        print_status(f"Python version {version.major}.{version.minor} (requires 3.11+)", False)
        return False


async def check_dependencies() -> bool:
    """Check if required packages are installed."""
    required_packages = [
        "fastapi",
        "uvicorn",
        "pydantic_settings",
        "httpx",
        "multipart",
        "playwright",
    ]

    all_installed = True
    for package in required_packages:
        try:
            __import__(package)
            print_status(f"Package '{package}' installed", True)
        except ImportError:
            print_status(f"Package '{package}' missing", False)
            all_installed = False

    return all_installed


async def check_env_file() -> bool:
    """Check if .env file exists."""
    if os.path.exists(".env"):
        print_status(".env file exists", True)
    else:
        print_status(".env file missing (defaults and process environment will be used)", False)
    # Optional: every setting has a default
    return True


async def check_template() -> bool:
    """Check the declaration template loads and renders without leftover tokens."""
    from app.models.schemas import DeclarationRecord, Purchaser
    from app.services.template_renderer import get_default_template, render_declaration

    template = get_default_template()
    record = DeclarationRecord(purchasers=(Purchaser(name="Test", ic="000000-00-0000"),))
    html = render_declaration(record, template)
    ok = "{{" not in html
    print_status(f"Template '{template.name}' ({len(template.tokens())} placeholders)", ok)
    return ok


async def check_pdf_api() -> bool:
    """Check the html2pdf.app key is set and the API answers."""
    from app.config import settings

    api_key = settings.get_pdf_api_key()
    if not api_key:
        print_status("PDF API key not set (remote backend unavailable)", not settings.is_serverless)
        if settings.is_serverless:
            print(f"  {YELLOW}Set PDF_API_KEY: serverless deployments have no local browser{RESET}")
        return not settings.is_serverless

    print_status("PDF API key configured", True)
    import httpx

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(
                settings.PDF_API_URL,
                params={"apiKey": api_key},
                json={"html": "<p>setup check</p>", "format": "A4"},
            )

        ok = response.status_code == 200
        print_status(f"PDF API responded with status {response.status_code}", ok)
        return ok

    except httpx.HTTPError as e:
        # Only the type: the message can contain the request URL and key
        print_status(f"PDF API unreachable ({type(e).__name__})", False)
        return False


async def check_browser() -> bool:
    """Check headless Chromium launches through Playwright."""
    from app.config import settings
    from app.services.pdf_renderer import BrowserPdfRenderer, PageOptions, RenderingUnavailableError

    renderer = BrowserPdfRenderer(settings.BROWSER_EXECUTABLE_PATH, timeout=30.0)
    try:
        pdf = await renderer.render("<p>setup check</p>", PageOptions())
        print_status(f"Chromium rendered a test PDF ({len(pdf)} bytes)", True)
        return True
    except RenderingUnavailableError as e:
        print_status(f"Chromium unavailable: {e}", False)
        print(f"  {YELLOW}Run: playwright install chromium{RESET}")
        # Only required when the browser backend would be selected
        return settings.is_serverless or settings.PDF_BACKEND in ("remote", "none")


async def main():
    """Run all verification checks."""
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}Statutory Declaration Service - Setup Verification{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

    checks: List[Tuple[str, callable]] = [
        ("Python Version", check_python_version),
        ("Dependencies", check_dependencies),
        ("Environment File", check_env_file),
        ("Declaration Template", check_template),
        ("PDF API", check_pdf_api),
        ("Headless Browser", check_browser),
    ]

    results = []

    for check_name, check_func in checks:
        print(f"\n{BLUE}Checking {check_name}...{RESET}")
        try:
            result = await check_func()
            results.append(result)
        except Exception as e:
            print_status(f"Error during check: {str(e)}", False)
            results.append(False)

    # Summary
    print(f"\n{BLUE}{'='*60}{RESET}")
    passed = sum(results)
    total = len(results)

    if passed == total:
        print(f"{GREEN}✓ All checks passed! ({passed}/{total}){RESET}")
        print(f"\n{GREEN}You're ready to run the service:{RESET}")
        print(f"  python -m app.main")
        print(f"  or")
        print(f"  uvicorn app.main:app --reload")
    else:
        print(f"{RED}✗ Some checks failed ({passed}/{total} passed){RESET}")
        print(f"\n{YELLOW}Please fix the issues above before running the service.{RESET}")
        sys.exit(1)

    print(f"{BLUE}{'='*60}{RESET}\n")


if __name__ == "__main__":
    asyncio.run(main())
