from __future__ import annotations

from pathlib import Path

from pdsflow_io.utils.paths import prepare_output_path


def test_prepare_output_path_creates_directory(tmp_path: Path) -> None:
    target = prepare_output_path("CS_Form_212_X_Y_2025.pdf", tmp_path / "out" / "nested")
    assert target.parent.is_dir()
    assert target.name == "CS_Form_212_X_Y_2025.pdf"


def test_prepare_output_path_never_targets_a_template(tmp_path: Path) -> None:
    template = tmp_path / "template.pdf"
    template.write_bytes(b"%PDF-1.4")
    target = prepare_output_path("template.pdf", tmp_path, protected=[template])
    assert target == tmp_path / "template_out.pdf"
