"""Tests for the command-line entry points."""

from __future__ import annotations

import runpy
from pathlib import Path

import pytest

from haarlike_ecs.cli import check_main, generate_main
from haarlike_ecs.config import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def no_env_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def small_config(tmp_path: Path) -> Path:
    path = tmp_path / "small.toml"
    path.write_text("[catalog]\nwindow_size = 6\ndimensions = [2]\n")
    return path


@pytest.fixture
def bad_catalog(tmp_path: Path) -> Path:
    path = tmp_path / "bad.txt"
    path.write_text(
        "2 0 0 3 3 3 0 3 3 1 -1\n"
        "2 6 6 3 3 6 6 3 3 1 -1\n"
        "2 15 0 3 3 18 0 3 3 1 -1\n"
        "2 3 0 3 3 0 0 3 3 1 -1\n"
    )
    return path


class TestGenerateMain:
    """Test haarlike-gen."""

    def test_generate(self, tmp_path: Path, small_config: Path) -> None:
        output = tmp_path / "out.txt"

        assert generate_main([str(output), "--config", str(small_config)]) == 0
        assert len(output.read_text().splitlines()) == 13

    def test_workers_option(self, tmp_path: Path, small_config: Path) -> None:
        serial = tmp_path / "serial.txt"
        parallel = tmp_path / "parallel.txt"

        assert generate_main([str(serial), "--config", str(small_config)]) == 0
        assert generate_main(
            [str(parallel), "--config", str(small_config), "--workers", "2"]
        ) == 0
        assert serial.read_bytes() == parallel.read_bytes()

    def test_missing_argument(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            generate_main([])
        assert exc_info.value.code == 2

    def test_unwritable_output(self, tmp_path: Path, small_config: Path) -> None:
        output = tmp_path / "missing" / "out.txt"
        assert generate_main([str(output), "--config", str(small_config)]) == 1

    def test_missing_config(self, tmp_path: Path) -> None:
        output = tmp_path / "out.txt"
        assert generate_main([str(output), "--config", str(tmp_path / "none.toml")]) == 1
        assert not output.exists()


class TestCheckMain:
    """Test haarlike-check."""

    def test_findings_exit_zero_by_default(
        self, bad_catalog: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert check_main([str(bad_catalog)]) == 0

        out = capsys.readouterr().out
        assert "Loaded 4 wavelets." in out
        assert "Overlaps (line 2)" in out
        assert "Size problem (line 3)" in out
        assert "Repeats (lines 1 and 4)" in out
        assert "3 findings." in out

    def test_fail_on_findings(self, bad_catalog: Path) -> None:
        assert check_main([str(bad_catalog), "--fail-on-findings"]) == 1

    def test_fail_on_findings_from_config(self, tmp_path: Path, bad_catalog: Path) -> None:
        config = tmp_path / "strict.toml"
        config.write_text("[check]\nfail_on_findings = true\n")
        assert check_main([str(bad_catalog), "--config", str(config)]) == 1

    def test_clean_catalog(
        self,
        tmp_path: Path,
        small_config: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        catalog = tmp_path / "clean.txt"
        generate_main([str(catalog), "--config", str(small_config)])
        capsys.readouterr()

        assert check_main(
            [str(catalog), "--config", str(small_config), "--fail-on-findings"]
        ) == 0
        assert "0 findings." in capsys.readouterr().out

    def test_stats_option(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        catalog = tmp_path / "stats.txt"
        catalog.write_text("2 0 0 3 3 3 0 3 3 1 -1 0.5\n")

        assert check_main([str(catalog), "--stats", "gaussian", "--fail-on-findings"]) == 1
        assert "Bad statistics (line 1)" in capsys.readouterr().out

    def test_unknown_stats_kind(self, bad_catalog: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            check_main([str(bad_catalog), "--stats", "poisson"])
        assert exc_info.value.code == 2

    def test_invalid_utf8_line_reported(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test an undecodable line is reported while the rest is checked."""
        catalog = tmp_path / "binary.txt"
        catalog.write_bytes(
            b"2 0 0 3 3 3 0 3 3 1 -1\n"
            b"2 \xff 0 3 3 3 0 3 3 1 -1\n"
            b"2 0 0 3 3 0 3 3 3 1 -1\n"
        )

        assert check_main([str(catalog)]) == 0

        out = capsys.readouterr().out
        assert "Loaded 2 wavelets." in out
        assert "Malformed (line 2) ==> Invalid UTF-8" in out
        assert "1 findings." in out

    def test_missing_catalog(self, tmp_path: Path) -> None:
        assert check_main([str(tmp_path / "missing.txt")]) == 1

    def test_does_not_modify_catalog(self, bad_catalog: Path) -> None:
        before = bad_catalog.read_bytes()
        check_main([str(bad_catalog), "--exhaustive"])
        assert bad_catalog.read_bytes() == before


class TestModuleExecution:
    """Test the module itself is not an entry point."""

    def test_run_as_script_does_nothing(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test running the module as __main__ neither checks nor exits."""
        namespace = runpy.run_module("haarlike_ecs.cli", run_name="__main__")

        assert "check_main" in namespace
        assert capsys.readouterr().out == ""
