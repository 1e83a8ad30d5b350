import json
from pathlib import Path

import pytest

from buildsmith import cli
from buildsmith.utils.fileops import write_tree

from conftest import FakeAIService, component_responder, complete_project


def test_validate_directory_prints_markdown(tmp_path: Path, capsys) -> None:
    write_tree(tmp_path, complete_project())
    (tmp_path / "node_modules" / "react").mkdir(parents=True)
    (tmp_path / "node_modules" / "react" / "index.js").write_text("console.log(1)", encoding="utf-8")

    exit_code = cli.run_cli(["validate", str(tmp_path), "--minimum-score", "0"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert out.startswith("# Quality Report")
    assert "| structure | 100 |" in out


def test_validate_json_bundle(tmp_path: Path, capsys) -> None:
    bundle = tmp_path / "bundle.json"
    bundle.write_text(json.dumps({"files": [{"path": "index.html", "content": "<html></html>"}]}), encoding="utf-8")

    exit_code = cli.run_cli(["validate", str(bundle), "--json", "--extended", "lint"])

    report = json.loads(capsys.readouterr().out)
    assert exit_code == 1
    assert "lint" in report["categories"]
    assert report["passed"] is False


def test_validate_rejects_bad_bundle(tmp_path: Path, capsys) -> None:
    bundle = tmp_path / "bundle.json"
    bundle.write_text("definitely not json", encoding="utf-8")

    exit_code = cli.run_cli(["validate", str(bundle)])

    assert exit_code == 2
    assert "not a file bundle" in capsys.readouterr().err


def test_load_artifacts_skips_node_modules(tmp_path: Path) -> None:
    write_tree(tmp_path, {"src/App.tsx": "x", "node_modules/a/index.js": "y"})

    artifacts = cli.load_artifacts(tmp_path)

    assert artifacts.paths == ["src/App.tsx"]


def test_generate_writes_project_and_report(tmp_path: Path, monkeypatch, capsys) -> None:
    ai = FakeAIService(['{"components": []}'], default=component_responder)
    monkeypatch.setattr(cli, "build_ai_service", lambda settings: ai)
    output = tmp_path / "site"

    exit_code = cli.run_cli(["generate", "Lisbon Bakery", "Fresh bread", "--output", str(output), "--quiet"])

    summary = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert (output / "package.json").is_file()
    assert (output / "src" / "components" / "Hero.tsx").is_file()
    assert (output / "QUALITY_REPORT.md").read_text(encoding="utf-8").startswith("# Lisbon Bakery quality report")
    assert summary["tokens_used"] == 10 * len(ai.prompts)
    assert summary["errors"] == []


def test_write_tree_refuses_escaping_paths(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        write_tree(tmp_path / "out", {"../evil.txt": "x"})
