"""Tests for CLI help text."""

from __future__ import annotations

import pytest

from pageroots.cli import main


def _render_help(capsys: pytest.CaptureFixture[str]) -> str:
    """Run `pageroots --help` via CLI entrypoint and return captured stdout."""
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0
    return capsys.readouterr().out


def test_help_includes_tagline(capsys: pytest.CaptureFixture[str]) -> None:
    out = _render_help(capsys)
    assert "pageroots: Resolve the glob roots a page file scanner may read and search" in out


def test_help_includes_common_usage(capsys: pytest.CaptureFixture[str]) -> None:
    out = _render_help(capsys)
    assert "Common usage:" in out
    assert "pageroots . --include @acme/pages" in out
    assert "pageroots --list-files ." in out


def test_help_mentions_config_files(capsys: pytest.CaptureFixture[str]) -> None:
    out = _render_help(capsys)
    assert "pageroots.toml" in out
    assert "[tool.pageroots]" in out
