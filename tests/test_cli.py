"""Tests for the command-line interface."""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from textanchor.cli import app

runner = CliRunner()

ORIGINAL = """
<html><body>
<div data-container-id="msg-1"><p>What does TypeScript give me?</p></div>
<div data-container-id="msg-2"><p>TypeScript offers Type Safety and Better IDE Support.</p></div>
</body></html>
"""

EDITED = """
<html><body>
<div data-container-id="msg-1"><p>What does TypeScript give me?</p></div>
<div data-container-id="msg-2"><p>TypeScript provides Type Safety and more.</p></div>
</body></html>
"""


@pytest.fixture
def original_file(tmp_path: Path) -> Path:
    path = tmp_path / "original.html"
    path.write_text(ORIGINAL, encoding="utf-8")
    return path


@pytest.fixture
def anchor_file(tmp_path: Path, original_file: Path) -> Path:
    path = tmp_path / "anchor.yaml"
    result = runner.invoke(
        app,
        ["create", str(original_file), "-c", "msg-2", "-t", "Type Safety", "-o", str(path)],
    )
    assert result.exit_code == 0, result.output
    return path


def _html(tmp_path: Path, name: str, markup: str) -> str:
    path = tmp_path / name
    path.write_text(markup, encoding="utf-8")
    return str(path)


class TestCreateCommand:
    """Tests for 'textanchor create'."""

    def test_prints_anchor_yaml(self, original_file) -> None:
        result = runner.invoke(
            app, ["create", str(original_file), "-c", "msg-2", "-t", "Type Safety"]
        )

        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["selectedText"] == "Type Safety"
        assert data["containerId"] == "msg-2"
        assert data["startOffset"] == 18
        assert data["strategy"] == "path"

    def test_occurrence(self, original_file) -> None:
        result = runner.invoke(
            app, ["create", str(original_file), "-c", "msg-1", "-t", "TypeScript", "-n", "1"]
        )
        assert result.exit_code == 0
        assert yaml.safe_load(result.output)["startOffset"] == 10

    def test_writes_output_file(self, anchor_file) -> None:
        data = yaml.safe_load(anchor_file.read_text(encoding="utf-8"))
        assert data["selectedText"] == "Type Safety"

    def test_unknown_container(self, original_file) -> None:
        result = runner.invoke(app, ["create", str(original_file), "-c", "msg-9", "-t", "Type"])
        assert result.exit_code == 1
        assert "No container" in result.output

    def test_missing_occurrence(self, original_file) -> None:
        result = runner.invoke(
            app, ["create", str(original_file), "-c", "msg-2", "-t", "Type Safety", "-n", "2"]
        )
        assert result.exit_code == 1
        assert "fewer than 2" in result.output

    def test_missing_file(self, tmp_path) -> None:
        result = runner.invoke(
            app, ["create", str(tmp_path / "nope.html"), "-c", "msg-2", "-t", "Type"]
        )
        assert result.exit_code == 1
        assert "Error" in result.output


class TestResolveCommand:
    """Tests for 'textanchor resolve'."""

    def test_resolves_after_edit(self, tmp_path, anchor_file) -> None:
        edited = _html(tmp_path, "edited.html", EDITED)
        result = runner.invoke(app, ["resolve", edited, str(anchor_file)])

        assert result.exit_code == 0, result.output
        assert "Status: found" in result.output
        assert "Strategy: path" in result.output
        assert "Match: Type Safety" in result.output

    def test_orphaned_anchor(self, tmp_path, anchor_file) -> None:
        gone = _html(tmp_path, "gone.html", "<div id='x'>Unrelated content only</div>")
        result = runner.invoke(app, ["resolve", gone, str(anchor_file)])

        assert result.exit_code == 1
        assert "Status: orphaned" in result.output
        assert "could not be resolved" in result.output

    def test_zero_budget_times_out(self, original_file, anchor_file) -> None:
        result = runner.invoke(app, ["resolve", str(original_file), str(anchor_file), "-b", "0"])
        assert result.exit_code == 1
        assert "Status: timed_out" in result.output

    def test_config_file(self, tmp_path, original_file, anchor_file) -> None:
        config = tmp_path / "config.yaml"
        config.write_text("strategy_order: [fuzzy]\n", encoding="utf-8")

        result = runner.invoke(
            app, ["resolve", str(original_file), str(anchor_file), "--config", str(config)]
        )
        assert result.exit_code == 0, result.output
        assert "Strategy: fuzzy" in result.output

    def test_invalid_anchor_file(self, tmp_path, original_file) -> None:
        broken = tmp_path / "broken.yaml"
        broken.write_text("selectedText: [unclosed\n", encoding="utf-8")
        result = runner.invoke(app, ["resolve", str(original_file), str(broken)])
        assert result.exit_code == 1
        assert "Error" in result.output


def test_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "textanchor 0.1.0" in result.output
