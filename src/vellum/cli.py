from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from lsprotocol.types import DiagnosticSeverity

from vellum.config import ServerSettings, load_settings
from vellum.document import TemplateDocumentModel
from vellum.model import SCRIPT_LANGUAGE_ID, TEMPLATE_LANGUAGE_ID, Document, DocumentKind
from vellum.schema import (
    CheckReportDTO,
    DiagnosticRecordDTO,
    GlobLensDTO,
    GlobReportDTO,
)
from vellum.service import TemplateLanguageService

app = typer.Typer(add_completion=False, help="Vellum template language tooling.")

logger = logging.getLogger(__name__)


def _configure_logging(level: str | None, settings: ServerSettings) -> None:
    name = (level or settings.log_level).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"unknown log level: {level}", param_hint="--log-level")
    logging.basicConfig(
        level=numeric,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _service(settings: ServerSettings) -> TemplateLanguageService:
    return TemplateLanguageService(
        TemplateDocumentModel(template_extensions=settings.template_extensions),
        glob_loader=settings.glob_loader,
    )


def _iter_files(paths: List[Path], suffixes: tuple[str, ...]) -> Iterator[Path]:
    for path in paths:
        if path.is_dir():
            for child in sorted(path.rglob("*")):
                if child.is_file() and child.suffix.lower() in suffixes:
                    yield child
        elif path.is_file():
            if path.suffix.lower() not in suffixes:
                raise typer.BadParameter(
                    f"{path} is not one of: {', '.join(suffixes)}", param_hint="PATHS"
                )
            yield path
        else:
            raise typer.BadParameter(f"no such file or directory: {path}")


def _load_document(path: Path, settings: ServerSettings) -> Document | None:
    if path.suffix.lower() in settings.template_extensions:
        kind, language_id = DocumentKind.TEMPLATE, TEMPLATE_LANGUAGE_ID
    else:
        kind, language_id = DocumentKind.SCRIPT, SCRIPT_LANGUAGE_ID
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        typer.echo(f"{path}: not valid UTF-8 ({exc.reason} at byte {exc.start})", err=True)
        return None
    return Document(
        uri=path.resolve().as_uri(),
        text=text,
        kind=kind,
        language_id=language_id,
    )


def _severity_name(value: DiagnosticSeverity | None) -> str:
    if value is None:
        return "unknown"
    return DiagnosticSeverity(value).name.lower()


@app.command()
def lsp(
    root: Optional[Path] = typer.Option(None, "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Run the language server over stdio."""
    from vellum import server as server_module

    settings = load_settings(root=root, config_path=config)
    _configure_logging(log_level, settings)
    server_module.server.config_path = config
    server_module.server.apply_settings(settings)
    server_module.start()


@app.command()
def check(
    paths: List[Path] = typer.Argument(...),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """Report compiler diagnostics for templates."""
    settings = load_settings(root=root, config_path=config)
    _configure_logging(log_level, settings)
    service = _service(settings)
    report = CheckReportDTO()
    for path in _iter_files(paths, settings.template_extensions):
        logger.debug("Checking %s", path)
        document = _load_document(path, settings)
        if document is None:
            report.errors += 1
            continue
        for diagnostic in service.diagnostics(document):
            severity = _severity_name(diagnostic.severity)
            if severity == "error":
                report.errors += 1
            elif severity == "warning":
                report.warnings += 1
            report.diagnostics.append(
                DiagnosticRecordDTO(
                    path=str(path),
                    line=diagnostic.range.start.line + 1,
                    character=diagnostic.range.start.character + 1,
                    severity=severity,
                    code=diagnostic.code,
                    message=diagnostic.message,
                )
            )
    if as_json:
        typer.echo(json.dumps(report.model_dump(), indent=2))
    else:
        for record in report.diagnostics:
            first_line = record.message.splitlines()[0] if record.message else ""
            typer.echo(
                f"{record.path}:{record.line}:{record.character}: "
                f"{record.severity} {record.code} {first_line}"
            )
    if report.errors:
        raise typer.Exit(code=1)


@app.command()
def globs(
    paths: List[Path] = typer.Argument(...),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
    loader: Optional[str] = typer.Option(None, "--loader"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
    as_json: bool = typer.Option(False, "--json"),
) -> None:
    """List resource glob calls and how many files each one matches."""
    settings = load_settings(
        root=root, config_path=config, overrides={"glob_loader": loader}
    )
    _configure_logging(log_level, settings)
    service = _service(settings)
    suffixes = settings.template_extensions + settings.script_extensions
    report = GlobReportDTO()
    unreadable = 0
    for path in _iter_files(paths, suffixes):
        loaded = _load_document(path, settings)
        if loaded is None:
            unreadable += 1
            continue
        document = service.script_view(loaded)
        for annotation in service.glob_annotations(document):
            report.lenses.append(
                GlobLensDTO(
                    path=str(path),
                    line=annotation.line + 1,
                    character=annotation.character + 1,
                    pattern=annotation.pattern,
                    match_count=annotation.match_count,
                )
            )
    if as_json:
        typer.echo(json.dumps(report.model_dump(), indent=2))
    else:
        for lens in report.lenses:
            typer.echo(
                f"{lens.path}:{lens.line}:{lens.character}: "
                f"Matches {lens.match_count} files ({lens.pattern})"
            )
    if unreadable:
        raise typer.Exit(code=1)


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
