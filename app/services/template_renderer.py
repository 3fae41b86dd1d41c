"""
Placeholder substitution for the statutory declaration template.

Templates are plain HTML containing ``{{FIELD_NAME}}`` tokens.  Rendering is a
single textual pass: known tokens become the mapped value, unknown tokens
become an empty string, so no raw token is ever left in the output.
"""
from __future__ import annotations

import html
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Set

from app.config import settings
from app.models.schemas import DeclarationRecord

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "statutory_declaration.html"


class DocumentTemplate:
    """An immutable template string with ``{{TOKEN}}`` placeholders."""

    def __init__(self, source: str, name: str = "inline") -> None:
        self._source = source
        self.name = name

    @classmethod
    def from_file(cls, path: Path) -> "DocumentTemplate":
        path = Path(path)
        return cls(path.read_text(encoding="utf-8"), name=path.name)

    @property
    def source(self) -> str:
        return self._source

    def tokens(self) -> Set[str]:
        """Distinct token names appearing in the template."""
        return set(TOKEN_PATTERN.findall(self._source))

    def render(self, fields: Mapping[str, str], escape: bool = False) -> str:
        """
        Substitute every token in one pass.

        Args:
            fields: Token name -> display value
            escape: HTML-escape values before insertion

        Returns:
            The finished document
        """
        def _replace(match: "re.Match[str]") -> str:
            value = fields.get(match.group(1)) or ""
            return html.escape(value, quote=True) if escape else value

        return TOKEN_PATTERN.sub(_replace, self._source)


def build_field_map(record: DeclarationRecord) -> Dict[str, str]:
    """Project a record onto the template's token names."""
    purchaser = record.first_purchaser()
    return {
        "NAME": purchaser.name,
        "NRIC": purchaser.ic,
        "ADDRESS": record.address,
        "PROPERTY": record.property,
        "BANK": record.bank,
        "BANK_ADDRESS": record.bank_address,
        "BRANCH_ADDRESS": record.branch_address,
        "FACILITY": record.facility,
        "DATE": record.date,
    }


@lru_cache(maxsize=None)
def _load_template(path: str) -> DocumentTemplate:
    template = DocumentTemplate.from_file(Path(path))
    logger.info("Loaded document template %s (%d tokens)", template.name, len(template.tokens()))
    return template


def get_default_template() -> DocumentTemplate:
    """The canonical declaration template (``TEMPLATE_PATH`` overrides it)."""
    return _load_template(settings.TEMPLATE_PATH or str(DEFAULT_TEMPLATE_PATH))


def render_declaration(
    record: DeclarationRecord,
    template: Optional[DocumentTemplate] = None,
    escape: Optional[bool] = None,
) -> str:
    """Render *record* into *template* (the canonical one by default)."""
    template = template or get_default_template()
    if escape is None:
        escape = settings.ESCAPE_FIELD_VALUES
    return template.render(build_field_map(record), escape=escape)
