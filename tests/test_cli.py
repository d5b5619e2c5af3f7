from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from pdsflow.cli import app

runner = CliRunner()


@pytest.fixture()
def record_file(tmp_path: Path, sample_record) -> Path:
    path = tmp_path / "record.json"
    path.write_text(json.dumps(sample_record), encoding="utf-8")
    return path


@pytest.fixture()
def settings_file(tmp_path: Path, pdf_template: Path, xlsx_template: Path) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump({"template_pdf": str(pdf_template), "template_xlsx": str(xlsx_template)}),
        encoding="utf-8",
    )
    return path


@pytest.mark.parametrize("fmt", ["pdf", "xlsx"])
def test_render_writes_output(tmp_path: Path, record_file: Path, settings_file: Path, fmt: str) -> None:
    out_dir = tmp_path / "rendered"
    result = runner.invoke(
        app,
        ["render", str(record_file), "--format", fmt, "--out", str(out_dir), "--settings", str(settings_file)],
    )
    assert result.exit_code == 0, result.output
    outputs = list(out_dir.glob(f"CS_Form_212_DELA_CRUZ_JUAN_MIGUEL_*.{fmt}"))
    assert len(outputs) == 1
    assert "Written fields:" in result.output
    assert "Skipped fields:" in result.output


def test_render_writes_report_csv(tmp_path: Path, record_file: Path, settings_file: Path) -> None:
    report = tmp_path / "report.csv"
    result = runner.invoke(
        app,
        [
            "render", str(record_file), "-f", "xlsx", "-o", str(tmp_path / "out"),
            "--settings", str(settings_file), "--report", str(report),
        ],
    )
    assert result.exit_code == 0, result.output
    header = report.read_text(encoding="utf-8").splitlines()[0]
    assert header == "target,status,path,location,reason,value"


def test_render_rejects_unknown_format(record_file: Path) -> None:
    result = runner.invoke(app, ["render", str(record_file), "--format", "docx"])
    assert result.exit_code != 0


def test_render_reports_missing_template(tmp_path: Path, record_file: Path) -> None:
    settings = tmp_path / "settings.yaml"
    settings.write_text(yaml.safe_dump({"template_pdf": str(tmp_path / "absent.pdf")}), encoding="utf-8")
    result = runner.invoke(app, ["render", str(record_file), "--settings", str(settings)])
    assert result.exit_code == 1
    assert "Render failed" in result.output


def test_render_rejects_bad_settings(tmp_path: Path, record_file: Path) -> None:
    settings = tmp_path / "settings.yaml"
    settings.write_text("colour: blue\n", encoding="utf-8")
    result = runner.invoke(app, ["render", str(record_file), "--settings", str(settings)])
    assert result.exit_code == 2
    assert "Unknown settings keys: colour" in result.output


def test_check_passes_complete_record(record_file: Path) -> None:
    result = runner.invoke(app, ["check", str(record_file)])
    assert result.exit_code == 0, result.output
    assert "All required fields are filled" in result.output


def test_check_lists_missing_fields(tmp_path: Path, sample_record) -> None:
    sample_record["personalInfo"]["surname"] = ""
    path = tmp_path / "record.json"
    path.write_text(json.dumps(sample_record), encoding="utf-8")

    result = runner.invoke(app, ["check", str(path), "--page", "1"])
    assert result.exit_code == 1
    assert "Missing 1 required field(s):" in result.output
    assert "personalInfo.surname: Surname" in result.output


def test_overlay_prints_widget_json() -> None:
    result = runner.invoke(app, ["overlay", "--page", "4"])
    assert result.exit_code == 0, result.output
    widgets = json.loads(result.stdout)
    keys = {w["key"] for w in widgets}
    assert {"decl_agree", "declaration_signature"} <= keys


def test_overlay_rejects_unknown_page() -> None:
    result = runner.invoke(app, ["overlay", "--page", "9"])
    assert result.exit_code != 0


def test_inspect_lists_words(pdf_template: Path) -> None:
    result = runner.invoke(app, ["inspect", str(pdf_template), "--page", "1"])
    assert result.exit_code == 0, result.output
    words = json.loads(result.stdout)
    assert words[0]["text"] == "PERSONAL"
