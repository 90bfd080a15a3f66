"""Tests for Data directory discovery and plugin triage."""

import sys
from pathlib import Path

import pytest
from builders import MISSING, write_dump

from mastercleaner.discovery import (
    detect_data_dir,
    is_valid_data_dir,
    list_plugins,
    plugin_name_of,
    triage_plugins,
)
from mastercleaner.foundation.errors import CleanerError, ErrorCode
from mastercleaner.foundation.types.config import DiscoveryConfig

EXTENSIONS = (".esp", ".esm", ".esl")


class TestDataDir:
    """Tests for Data directory validation and detection."""

    def test_valid_data_dir(self, data_dir: Path, tmp_path: Path) -> None:
        """A Data directory holds the anchor master."""
        assert is_valid_data_dir(data_dir)
        assert not is_valid_data_dir(tmp_path)
        assert not is_valid_data_dir(tmp_path / "nope")
        assert not is_valid_data_dir(None)
        assert not is_valid_data_dir("  ")

    def test_anchor_dump_counts(self, tmp_path: Path) -> None:
        """The anchor master may be present as a dump."""
        (tmp_path / "Skyrim.esm.json").write_text("{}", encoding="utf-8")
        assert is_valid_data_dir(tmp_path)

    def test_explicit_wins(self, data_dir: Path) -> None:
        """An explicit valid path is returned as is."""
        assert detect_data_dir(data_dir) == data_dir

    def test_explicit_invalid_raises(self, tmp_path: Path) -> None:
        """An explicit invalid path is an error, not a fallback."""
        with pytest.raises(CleanerError) as exc_info:
            detect_data_dir(tmp_path)
        assert exc_info.value.code is ErrorCode.DATA_DIR_INVALID
        assert "Skyrim.esm" in exc_info.value.message

    def test_configured_data_dir(self, data_dir: Path) -> None:
        """The configured data_dir is used when no path is given."""
        assert detect_data_dir(None, DiscoveryConfig(data_dir=str(data_dir))) == data_dir

    def test_registry_path_confirmed(self, data_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A registry path is used only when the confirm callback accepts it."""
        monkeypatch.setattr("mastercleaner.discovery._registry_data_dir", lambda key: data_dir)
        asked: list[Path] = []

        def decline(path: Path) -> bool:
            asked.append(path)
            return False

        assert detect_data_dir(None, confirm=decline) is None
        assert asked == [data_dir]
        assert detect_data_dir(None, confirm=lambda path: True) == data_dir
        assert detect_data_dir(None) == data_dir

    @pytest.mark.skipif(sys.platform == "win32", reason="registry lookup runs on Windows")
    def test_nothing_found(self, tmp_path: Path) -> None:
        """An invalid configured path and no registry give None."""
        assert detect_data_dir(None, DiscoveryConfig(data_dir=str(tmp_path))) is None


class TestListPlugins:
    """Tests for plugin listing."""

    def test_plugin_names(self) -> None:
        """Plugin files and their dumps map to the plugin name."""
        assert plugin_name_of(Path("Foo.esp"), EXTENSIONS) == "Foo.esp"
        assert plugin_name_of(Path("Foo.ESM.yaml"), EXTENSIONS) == "Foo.ESM"
        assert plugin_name_of(Path("Foo.txt"), EXTENSIONS) is None
        assert plugin_name_of(Path("report.json"), EXTENSIONS) is None

    def test_sorted_plugins_only(self, data_dir: Path) -> None:
        """Only plugin files are listed, sorted by name."""
        names = [p.name for p in list_plugins(data_dir, EXTENSIONS)]
        assert names == ["Broken.esp", "Clean.esp", "One.esp", "Real.esp", "Skyrim.esm", "Two.esp", "Update.esm"]


class TestTriage:
    """Tests for triage_plugins."""

    def test_buckets(self, data_dir: Path) -> None:
        """Plugins split into cleanable, unsafe and failed."""
        result = triage_plugins(data_dir)

        assert [p.identity.name for p in result.cleanable] == ["One.esp"]
        assert [m.name for m in result.cleanable[0].missing] == [MISSING]
        assert [p.identity.name for p in result.unsafe] == ["Two.esp"]
        assert [m.name for m in result.unsafe[0].missing] == [MISSING, "Gone.esp"]
        assert [f.path.name for f in result.failed] == ["Broken.esp", "Real.esp"]

    def test_base_masters_skipped(self, data_dir: Path) -> None:
        """Base-game masters are never triaged."""
        result = triage_plugins(data_dir)
        assert result.scanned == 5

    def test_present_master_in_any_case(self, data_dir: Path) -> None:
        """A master present under different case or as a dump is not missing."""
        write_dump(data_dir, "gone.esp.json", [])
        result = triage_plugins(data_dir)
        assert [p.identity.name for p in result.cleanable] == ["One.esp", "Two.esp"]
        assert result.unsafe == []

    def test_binary_plugin_recorded_as_failed(self, data_dir: Path) -> None:
        """A binary plugin fails on its own without aborting triage."""
        result = triage_plugins(data_dir)

        failure = next(f for f in result.failed if f.path.name == "Real.esp")
        assert "not a text record dump" in failure.error
        assert [p.identity.name for p in result.cleanable] == ["One.esp"]

    def test_threshold(self, data_dir: Path) -> None:
        """The unsafe threshold is configurable."""
        result = triage_plugins(data_dir, DiscoveryConfig(max_missing_masters=2))
        assert [p.identity.name for p in result.cleanable] == ["One.esp", "Two.esp"]
        assert result.unsafe == []

    def test_to_dict(self, data_dir: Path) -> None:
        """Triage results serialize for --json output."""
        data = triage_plugins(data_dir).to_dict()
        assert data["cleanable"][0]["plugin"] == "One.esp"
        assert data["unsafe"][0]["missing_masters"] == [MISSING, "Gone.esp"]
        assert data["failed"][0]["error"].startswith("Failed to parse plugin 'Broken.esp'")
