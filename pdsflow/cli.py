"""Typer based command line entry points for PDSFlow."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from pdsflow_io.pdf_io import PdfProcessingError, extract_words
from pdsflow_io.utils.paths import prepare_output_path

from pdsflow.config import Settings, load_settings
from pdsflow.core.errors import ConfigError, RenderError
from pdsflow.core.logger import get_logger, set_level
from pdsflow.registry import build_overlay_fields, load_overlay_registry, load_page_registry
from pdsflow.services.projection import (
    RenderOptions,
    check_page,
    check_required,
    render_pdf,
    render_workbook,
)
from pdsflow.services.projection.models import coerce_record

OUTPUT_FORMATS = {"pdf", "xlsx"}

app = typer.Typer(help="Render CS Form 212 (Personal Data Sheet) records onto their templates.")


def _validate_format(value: str) -> str:
    value = value.lower()
    if value not in OUTPUT_FORMATS:
        raise typer.BadParameter("format must be one of pdf, xlsx")
    return value


def _load_record(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} must contain a JSON object")
    return data


def _settings(path: Optional[Path]) -> Settings:
    try:
        return load_settings(path)
    except ConfigError as exc:
        typer.secho(f"Invalid settings: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    get_logger()
    try:
        set_level(log_level)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command("render")
def cli_render(
    record_path: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, resolve_path=True),
    fmt: str = typer.Option("pdf", "--format", "-f", help="Output format (pdf/xlsx)", callback=_validate_format),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output directory", resolve_path=True),
    settings_path: Optional[Path] = typer.Option(None, "--settings", help="settings.yaml override", exists=True),
    include_signature: bool = typer.Option(False, "--include-signature", help="Embed the drawn signature"),
    use_current_date: bool = typer.Option(False, "--use-current-date", help="Stamp today's date on the declaration"),
    debug_grid: bool = typer.Option(False, "--debug-grid", help="Overlay a 50pt calibration grid (pdf only)"),
    report: Optional[Path] = typer.Option(None, "--report", help="Write the field report CSV here", resolve_path=True),
) -> None:
    """Render a record JSON file to PDF or XLSX."""

    logger = get_logger()
    settings = _settings(settings_path)
    options = RenderOptions(
        include_signature=include_signature,
        use_current_date=use_current_date,
        debug_grid=debug_grid,
    )
    renderer = render_pdf if fmt == "pdf" else render_workbook
    try:
        result = renderer(_load_record(record_path), options, settings)
    except RenderError as exc:
        typer.secho(f"Render failed: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    target = prepare_output_path(
        result.filename,
        out or settings.output_dir,
        protected=(settings.template_pdf, settings.template_xlsx),
    )
    target.write_bytes(result.content)

    summary = result.report.summary()
    typer.echo(f"Output: {target}")
    typer.echo(f"Written fields: {summary['written']}")
    typer.echo(f"Skipped fields: {summary['skipped']}")
    for reason, count in summary["reasons"].items():
        typer.echo(f"  {reason}: {count}")
    if report is not None:
        typer.echo(f"Report: {result.report.to_csv(report)}")
    logger.info("CLI render completed: output=%s", target)


@app.command("check")
def cli_check(
    record_path: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, resolve_path=True),
    page: Optional[int] = typer.Option(None, "--page", "-p", min=1, max=4, help="Check one page only"),
) -> None:
    """List required fields that are still blank."""

    record = coerce_record(_load_record(record_path))
    if page is not None:
        result = check_page(record, page)
    else:
        overlay = load_overlay_registry()
        result = check_required(record.to_payload(), overlay.requirements)

    if result.ok:
        typer.echo("All required fields are filled")
        return
    typer.secho(f"Missing {len(result.missing)} required field(s):", fg=typer.colors.RED)
    for item in result.missing:
        typer.echo(f"  {item.path}: {item.label}")
    raise typer.Exit(code=1)


@app.command("overlay")
def cli_overlay(
    page: int = typer.Option(..., "--page", "-p", min=1, help="Template page number"),
) -> None:
    """Print the editable widget geometry of one page as JSON."""

    page_registry = load_page_registry()
    if page not in page_registry.pages:
        raise typer.BadParameter(f"page must be one of {', '.join(map(str, page_registry.pages))}")
    fields = build_overlay_fields(page_registry, load_overlay_registry(), page)
    typer.echo(json.dumps([f.as_dict() for f in fields], ensure_ascii=False, indent=2))


@app.command("inspect")
def cli_inspect(
    pdf_path: Path = typer.Argument(..., exists=True, readable=True, dir_okay=False, resolve_path=True),
    page: int = typer.Option(1, "--page", "-p", min=1, help="1-based page number"),
) -> None:
    """Print positioned words of a rendered page for coordinate calibration."""

    try:
        words = extract_words(pdf_path, page)
    except PdfProcessingError as exc:
        typer.secho(f"Unable to inspect {pdf_path}: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc
    typer.echo(json.dumps([asdict(word) for word in words], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    app()
