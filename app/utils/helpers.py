"""
Common utility functions and helpers.
"""
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional
import re


def as_text(value: Any) -> str:
    """
    Coerce a loosely-typed payload value to display text.

    Falsy values (None, "", 0, False, empty containers) count as absent and
    become "". Nested containers are not display values and are also absent.

    Args:
        value: Raw value from a payload

    Returns:
        The value as a string, or "" if absent
    """
    if not value or isinstance(value, (Mapping, list, tuple, set)):
        return ""
    return value if isinstance(value, str) else str(value)


def first_non_empty(payload: Mapping[str, Any], keys: Iterable[str]) -> str:
    """
    Return the first non-empty value found under any of *keys*.

    Args:
        payload: Mapping to search
        keys: Candidate keys in precedence order

    Returns:
        The first present value as text, or "" if none is present
    """
    for key in keys:
        text = as_text(payload.get(key))
        if text:
            return text
    return ""


def today_iso() -> str:
    """Current UTC date as YYYY-MM-DD."""
    return datetime.now(timezone.utc).date().isoformat()


def safe_filename(name: str, suffix: str, default: str = "StatutoryDeclaration") -> str:
    """
    Build a download filename from a person's name.

    Args:
        name: Display name (may contain any characters)
        suffix: Appended after the sanitized name, e.g. "_SD_Webhook.pdf"
        default: Stem used when nothing survives sanitization

    Returns:
        Filename safe for a Content-Disposition header
    """
    stem = re.sub(r"[^a-zA-Z0-9\-_ ]", "", name or "")
    stem = re.sub(r"\s+", "_", stem.strip())
    return f"{stem or default}{suffix}"


def mask_secret(secret: Optional[str], visible: int = 4) -> str:
    """Show only the first few characters of a credential for logging."""
    if not secret:
        return "<unset>"
    return f"{secret[:visible]}..."


def truncate_text(text: str, max_length: int = 200, suffix: str = "...") -> str:
    """
    Truncate text to maximum length.

    Args:
        text: Text to truncate
        max_length: Maximum length
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix
