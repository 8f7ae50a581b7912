from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from vellum import cli


def _site(tmp_path: Path) -> Path:
    (tmp_path / "posts").mkdir()
    for name in ("a.md", "b.md", "c.md"):
        (tmp_path / "posts" / name).write_text("# post\n")
    (tmp_path / "index.vellum").write_text(
        '---\nposts = Vellum.glob("./posts/*.md")\n---\n<ul></ul>\n'
    )
    (tmp_path / "broken.vellum").write_text("---\nvalue = (1,\n---\n<p/>\n")
    (tmp_path / "draft.vellum").write_text("---\nvalue = 1\n")
    (tmp_path / "loader.py").write_text('extra = Vellum.glob("posts/a.md")\n')
    return tmp_path


def test_check_reports_errors_and_exits_nonzero(tmp_path: Path) -> None:
    site = _site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.app, ["check", str(site), "--root", str(site)])
    assert result.exit_code == 1
    assert "broken.vellum:2:" in result.output
    assert "error 1001" in result.output
    assert "draft.vellum:1:1: warning 1002" in result.output
    assert "index.vellum" not in result.output


def test_check_clean_template_exits_zero(tmp_path: Path) -> None:
    site = _site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.app, ["check", str(site / "index.vellum"), "--root", str(site)])
    assert result.exit_code == 0
    assert result.output == ""


def test_check_json_output(tmp_path: Path) -> None:
    site = _site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(
        cli.app, ["check", str(site / "draft.vellum"), "--root", str(site), "--json"]
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["warnings"] == 1
    assert payload["errors"] == 0
    assert payload["diagnostics"][0]["code"] == 1002


def test_globs_lists_templates_and_scripts(tmp_path: Path) -> None:
    site = _site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.app, ["globs", str(site), "--root", str(site)])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert any(line.endswith("index.vellum:2:21: Matches 3 files (./posts/*.md)") for line in lines)
    assert any(line.endswith("loader.py:1:21: Matches 1 files (posts/a.md)") for line in lines)


def test_globs_loader_override_json(tmp_path: Path) -> None:
    site = _site(tmp_path)
    (site / "custom.py").write_text('rows = Site.glob("posts/*.md")\n')
    runner = CliRunner()
    result = runner.invoke(
        cli.app,
        ["globs", str(site / "custom.py"), "--root", str(site), "--loader", "Site.glob", "--json"],
    )
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert [lens["match_count"] for lens in payload["lenses"]] == [3]


def test_missing_path_is_rejected(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli.app, ["check", str(tmp_path / "nope.vellum"), "--root", str(tmp_path)])
    assert result.exit_code != 0


def test_unknown_log_level_is_rejected(tmp_path: Path) -> None:
    site = _site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(
        cli.app, ["check", str(site / "index.vellum"), "--root", str(site), "--log-level", "chatty"]
    )
    assert result.exit_code == 2


def test_lsp_command_starts_server(tmp_path: Path, monkeypatch) -> None:
    from vellum import server as server_module

    started: list[bool] = []
    monkeypatch.setattr(server_module, "start", lambda: started.append(True))
    runner = CliRunner()
    result = runner.invoke(cli.app, ["lsp", "--root", str(tmp_path)])
    assert result.exit_code == 0
    assert started == [True]
    assert server_module.server.settings.glob_loader == "Vellum.glob"


def test_check_rejects_explicit_non_template(tmp_path: Path) -> None:
    site = _site(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli.app, ["check", str(site / "loader.py"), "--root", str(site)])
    assert result.exit_code == 2


def test_check_reports_undecodable_template(tmp_path: Path) -> None:
    site = _site(tmp_path)
    (site / "latin.vellum").write_bytes(b"\xff\xfe---\n")
    runner = CliRunner()
    result = runner.invoke(cli.app, ["check", str(site), "--root", str(site)])
    assert result.exit_code == 1
    assert "latin.vellum: not valid UTF-8" in result.output
    assert "broken.vellum:2:" in result.output


def test_globs_lists_readable_files_before_failing(tmp_path: Path) -> None:
    site = _site(tmp_path)
    (site / "latin.vellum").write_bytes(b"\xff\xfe---\n")
    runner = CliRunner()
    result = runner.invoke(cli.app, ["globs", str(site), "--root", str(site)])
    assert result.exit_code == 1
    assert "latin.vellum: not valid UTF-8" in result.output
    assert "Matches 3 files (./posts/*.md)" in result.output


def test_unknown_severity_is_not_an_error() -> None:
    assert cli._severity_name(None) == "unknown"
