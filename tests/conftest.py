from __future__ import annotations

import sys
import textwrap
from pathlib import Path

SRC = Path(__file__).resolve().parents[1] / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


import pytest

from vellum.document import TemplateDocumentModel
from vellum.model import Document, DocumentKind
from vellum.service import TemplateLanguageService


@pytest.fixture
def write_file():
    def _write(root: Path, rel: str, content: str = "") -> Path:
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_document():
    def _make(
        text: str,
        *,
        path: Path | None = None,
        kind: DocumentKind = DocumentKind.TEMPLATE,
        language_id: str = "vellum",
    ) -> Document:
        target = path if path is not None else Path("/workspace/page.vellum")
        return Document(uri=target.as_uri(), text=text, kind=kind, language_id=language_id)

    return _make


@pytest.fixture
def service() -> TemplateLanguageService:
    return TemplateLanguageService(TemplateDocumentModel())
