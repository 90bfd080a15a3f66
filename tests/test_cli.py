"""Tests for the mastercleaner CLI."""

import json
from pathlib import Path

import pytest
from builders import MISSING
from click.testing import CliRunner

from mastercleaner import __version__
from mastercleaner.cli.main import main

QUIET = {"MASTERCLEANER_LOG_LEVEL": "CRITICAL"}


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CLI runner working in an empty directory with an empty home."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    return CliRunner()


class TestMain:
    """Tests for the command group."""

    def test_version(self, runner: CliRunner) -> None:
        """--version prints the package version."""
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config_file(self, runner: CliRunner, tmp_path: Path, data_dir: Path) -> None:
        """A bad --config file is reported and exits 1."""
        config = tmp_path / "bad.yaml"
        config.write_text("walker:\n  max_depth: -3\n", encoding="utf-8")

        result = runner.invoke(main, ["--config", str(config), "scan", str(data_dir)], env=QUIET)

        assert result.exit_code == 1
        assert "MC-5002" in result.output


class TestScanCommand:
    """Tests for `mastercleaner scan`."""

    def test_json(self, runner: CliRunner, data_dir: Path) -> None:
        """--json prints the triage result."""
        result = runner.invoke(main, ["scan", str(data_dir), "--json"], env=QUIET)

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [p["plugin"] for p in data["cleanable"]] == ["One.esp"]
        assert [p["plugin"] for p in data["unsafe"]] == ["Two.esp"]
        assert len(data["failed"]) == 2

    def test_human(self, runner: CliRunner, data_dir: Path) -> None:
        """The default output lists cleanable and unsafe plugins."""
        result = runner.invoke(main, ["scan", str(data_dir)], env=QUIET)

        assert result.exit_code == 0, result.output
        assert "One.esp" in result.output
        assert "Two.esp" in result.output
        assert "Gone.esp" in result.output
        assert "Broken.esp" in result.output

    def test_invalid_data_dir(self, runner: CliRunner, tmp_path: Path) -> None:
        """A directory without the anchor master is rejected."""
        result = runner.invoke(main, ["scan", str(tmp_path), "--json"], env=QUIET)

        assert result.exit_code == 1
        assert "MC-5005" in result.output

    def test_configured_data_dir(self, runner: CliRunner, data_dir: Path) -> None:
        """Without an argument the configured data_dir is scanned."""
        env = {**QUIET, "MASTERCLEANER_DISCOVERY_DATA_DIR": str(data_dir)}
        result = runner.invoke(main, ["scan", "--json"], env=env)

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["data_dir"] == str(data_dir)


class TestReportCommand:
    """Tests for `mastercleaner report`."""

    def test_writes_report(self, runner: CliRunner, data_dir: Path) -> None:
        """The report lands next to the plugin with the expected content."""
        result = runner.invoke(main, ["report", str(data_dir / "One.esp"), "--missing", MISSING], env=QUIET)

        assert result.exit_code == 0, result.output
        report = json.loads((data_dir / "One_MissingMasterReport.json").read_text(encoding="utf-8"))
        assert report["Plugin"] == "One.esp"
        assert report["MissingMaster"] == MISSING
        assert report["FormLists"][0]["Links"] == [
            {"Path": "items[0]", "ReferencedFormKey": f"{MISSING}:000D00"}
        ]

    def test_detects_missing_master(self, runner: CliRunner, data_dir: Path) -> None:
        """Without --missing the absent master is detected."""
        result = runner.invoke(main, ["report", str(data_dir / "One.esp"), "--json"], env=QUIET)

        assert result.exit_code == 0, result.output
        summary = json.loads(result.output)
        assert summary["missing_master"] == MISSING
        assert summary["entries"]["FormLists"] == 1
        assert summary["safe_links"] == 1

    def test_yaml_to_output_dir(self, runner: CliRunner, data_dir: Path, tmp_path: Path) -> None:
        """--format yaml and --output place a YAML report elsewhere."""
        out = tmp_path / "reports"
        result = runner.invoke(
            main,
            ["report", str(data_dir / "One.esp"), "-m", MISSING, "-o", str(out), "--format", "yaml"],
            env=QUIET,
        )

        assert result.exit_code == 0, result.output
        assert (out / "One_MissingMasterReport.yaml").exists()

    @pytest.mark.parametrize(
        ("plugin", "args", "error_id"),
        [
            ("Two.esp", [], "MC-2005"),
            ("Clean.esp", [], "MC-2004"),
            ("One.esp", ["--missing", "Other.esp"], "MC-2006"),
            ("Nope.esp", [], "MC-2001"),
            ("Broken.esp", [], "MC-2002"),
        ],
    )
    def test_errors(self, runner: CliRunner, data_dir: Path, plugin: str, args: list[str], error_id: str) -> None:
        """Unusable plugins and masters exit 1 with their error id."""
        result = runner.invoke(main, ["report", str(data_dir / plugin), *args, "--json"], env=QUIET)

        assert result.exit_code == 1
        assert error_id in result.output


class TestCleanCommand:
    """Tests for `mastercleaner clean`."""

    def test_interactive_flow(self, runner: CliRunner, data_dir: Path) -> None:
        """Selecting a plugin writes the dummy master and the report."""
        result = runner.invoke(main, ["clean", "--data-dir", str(data_dir)], input="1\n", env=QUIET)

        assert result.exit_code == 0, result.output
        assert (data_dir / MISSING).exists()
        assert (data_dir / "One_MissingMasterReport.json").exists()
        assert "MissingMasterCleaner_ApplyJsonRemovals" in result.output

    def test_detected_data_dir_rejected(
        self, runner: CliRunner, data_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Declining the registry Data directory asks for the path instead."""
        elsewhere = tmp_path / "Elsewhere"
        elsewhere.mkdir()
        (elsewhere / "Skyrim.esm").write_text('{"masters": []}', encoding="utf-8")
        monkeypatch.setattr("mastercleaner.discovery._registry_data_dir", lambda key: elsewhere)

        result = runner.invoke(main, ["clean", "--no-dummy"], input=f"n\n{data_dir}\n1\n", env=QUIET)

        assert result.exit_code == 0, result.output
        assert "Is this Data directory location correct?" in result.output
        assert (data_dir / "One_MissingMasterReport.json").exists()

    def test_select_without_dummy(self, runner: CliRunner, data_dir: Path) -> None:
        """--select skips the prompt; --no-dummy skips the dummy master."""
        result = runner.invoke(main, ["clean", "-d", str(data_dir), "--select", "1", "--no-dummy"], env=QUIET)

        assert result.exit_code == 0, result.output
        assert not (data_dir / MISSING).exists()
        assert (data_dir / "One_MissingMasterReport.json").exists()

    def test_selection_out_of_range(self, runner: CliRunner, data_dir: Path) -> None:
        """A --select beyond the list is a usage error."""
        result = runner.invoke(main, ["clean", "-d", str(data_dir), "--select", "5"], env=QUIET)

        assert result.exit_code == 2
        assert not (data_dir / "One_MissingMasterReport.json").exists()

    def test_nothing_to_clean(self, runner: CliRunner, tmp_path: Path) -> None:
        """A Data directory without cleanable plugins ends quietly."""
        data = tmp_path / "EmptyData"
        data.mkdir()
        (data / "Skyrim.esm").write_text('{"masters": []}', encoding="utf-8")

        result = runner.invoke(main, ["clean", "-d", str(data)], env=QUIET)

        assert result.exit_code == 0, result.output
        assert "No plugins" in result.output


class TestConfigCommand:
    """Tests for `mastercleaner config`."""

    def test_show_json(self, runner: CliRunner, tmp_path: Path) -> None:
        """show prints the config loaded through --config."""
        config = tmp_path / "custom.yaml"
        config.write_text("walker:\n  max_depth: 8\n", encoding="utf-8")

        result = runner.invoke(main, ["--config", str(config), "config", "show", "--json"], env=QUIET)

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["walker"]["max_depth"] == 8
        assert data["report"]["suffix"] == "_MissingMasterReport"

    def test_show_table(self, runner: CliRunner) -> None:
        """The default output lists settings by dotted name."""
        result = runner.invoke(main, ["config", "show"], env=QUIET)

        assert result.exit_code == 0, result.output
        assert "walker.max_depth" in result.output

    def test_init(self, runner: CliRunner) -> None:
        """init writes the defaults once and refuses to overwrite."""
        result = runner.invoke(main, ["config", "init"], env=QUIET)

        assert result.exit_code == 0, result.output
        assert Path(".mastercleaner/config.yaml").exists()

        again = runner.invoke(main, ["config", "init"], env=QUIET)
        assert again.exit_code == 2
        assert "already exists" in again.output
