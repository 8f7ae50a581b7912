from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class DiagnosticLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int
    column: int
    length: int


class CompilerDiagnostic(BaseModel):
    """Diagnostic record as emitted by the template compiler.

    ``line`` and ``column`` are 1-indexed. ``severity`` follows the LSP
    numbering (1 error, 2 warning, 3 information, 4 hint).
    """

    model_config = ConfigDict(frozen=True)

    text: str
    hint: Optional[str] = None
    location: DiagnosticLocation
    code: int
    severity: int


class DiagnosticRecordDTO(BaseModel):
    path: str
    line: int
    character: int
    severity: str
    code: Optional[int | str] = None
    message: str


class GlobLensDTO(BaseModel):
    path: str
    line: int
    character: int
    pattern: str
    match_count: int


class CheckReportDTO(BaseModel):
    diagnostics: List[DiagnosticRecordDTO] = []
    errors: int = 0
    warnings: int = 0


class GlobReportDTO(BaseModel):
    lenses: List[GlobLensDTO] = []
