"""Tests for the record dump loader and dummy master writer."""

import json
from pathlib import Path

import pytest
from builders import MISSING, write_dump

from mastercleaner.foundation.errors import CleanerError, ErrorCode
from mastercleaner.model.identity import CollectionIdentity, FormKey, FormLink, TypedFormLink
from mastercleaner.model.records import FieldGroup, MajorRecord
from mastercleaner.storage.dump import load_plugin, read_header, write_dummy_master

YAML_DUMP = """\
plugin: Foo.esp
masters: [Skyrim.esm, Missing.esp]
records:
  - $record: Worldspace
    form_key: Foo.esp:000700
    editor_id: FooWorld
    fields:
      top_cell:
        $record: Cell
        form_key: Foo.esp:000701
        fields:
          persistent:
            - $record: PlacedObject
              form_key: Missing.esp:000802
              fields:
                base: {$link: Missing.esp:000D00, $type: Static}
  - $record: Npc
    form_key: Foo.esp:000801
    fields:
      name: Lydia
      race: {$formkey: Skyrim.esm:013746}
      voice: {$link: Missing.esp:000010}
      stats: {health: 50, tags: [a, b]}
"""


class TestLoadPlugin:
    """Tests for load_plugin."""

    def test_yaml_dump(self, tmp_path: Path) -> None:
        """Tagged values decode to the record model."""
        path = tmp_path / "Foo.esp.yaml"
        path.write_text(YAML_DUMP, encoding="utf-8")

        plugin = load_plugin(path)

        assert plugin.identity == CollectionIdentity("Foo.esp")
        assert plugin.masters == (CollectionIdentity("Skyrim.esm"), CollectionIdentity(MISSING))
        npc = plugin.records[1]
        assert npc.category == "Npc"
        assert npc.editor_id is None
        assert npc.get_field("name") == "Lydia"
        assert npc.get_field("race") == FormKey.parse("Skyrim.esm:013746")
        assert npc.get_field("voice") == FormLink(FormKey.parse(f"{MISSING}:000010"))
        assert npc.get_field("stats") == FieldGroup({"health": 50, "tags": ["a", "b"]})

    def test_major_records_include_nested(self, tmp_path: Path) -> None:
        """Nested cells and placed references are major records too."""
        path = tmp_path / "Foo.esp.yaml"
        path.write_text(YAML_DUMP, encoding="utf-8")

        records = list(load_plugin(path).major_records())

        assert [r.category for r in records] == ["Worldspace", "Cell", "PlacedObject", "Npc"]
        placed = records[2]
        assert isinstance(placed, MajorRecord)
        assert placed.get_field("base") == TypedFormLink(FormKey.parse(f"{MISSING}:000D00"), "Static")

    def test_plugin_named_json(self, tmp_path: Path) -> None:
        """A dump under the plugin's own name is sniffed as JSON."""
        path = write_dump(tmp_path, "Bar.esp", ["Skyrim.esm"])
        plugin = load_plugin(path)
        assert plugin.identity.name == "Bar.esp"
        assert plugin.records == ()

    def test_plugin_named_yaml(self, tmp_path: Path) -> None:
        """A plugin-named file without a leading brace is read as YAML."""
        path = tmp_path / "Baz.esp"
        path.write_text("masters: [Skyrim.esm]\n", encoding="utf-8")
        assert read_header(path).identity.name == "Baz.esp"

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing dump is a file-not-found error."""
        with pytest.raises(CleanerError) as exc_info:
            load_plugin(tmp_path / "Nope.esp")
        assert exc_info.value.code is ErrorCode.FILE_NOT_FOUND

    def test_parse_error(self, tmp_path: Path) -> None:
        """Broken syntax is a parse error."""
        path = tmp_path / "Broken.esp"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CleanerError) as exc_info:
            load_plugin(path)
        assert exc_info.value.code is ErrorCode.PLUGIN_PARSE_ERROR
        assert exc_info.value.context["plugin"] == "Broken.esp"

    def test_binary_plugin(self, tmp_path: Path) -> None:
        """A binary plugin is a parse error, not a decode crash."""
        path = tmp_path / "Real.esp"
        path.write_bytes(b"TES4\x2a\x00\x00\x00\xff\xfe\x80\x81")
        with pytest.raises(CleanerError) as exc_info:
            read_header(path)
        assert exc_info.value.code is ErrorCode.PLUGIN_PARSE_ERROR
        assert "not a text record dump" in exc_info.value.message

    @pytest.mark.parametrize(
        "document",
        [
            [1, 2],
            {"masters": "Skyrim.esm"},
            {"records": [{"form_key": "Foo.esp:000001"}]},
            {"records": [{"$record": "Npc"}]},
            {"records": [{"$record": "Npc", "form_key": "nonsense"}]},
            {"records": [{"$record": "Npc", "form_key": "Foo.esp:000001", "fields": [1]}]},
        ],
    )
    def test_schema_errors(self, tmp_path: Path, document: object) -> None:
        """Well-formed documents with the wrong layout are schema errors."""
        path = tmp_path / "Bad.esp.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        with pytest.raises(CleanerError) as exc_info:
            load_plugin(path)
        assert exc_info.value.code is ErrorCode.PLUGIN_INVALID_SCHEMA


class TestReadHeader:
    """Tests for read_header."""

    def test_name_defaults_to_file_name(self, tmp_path: Path) -> None:
        """Without a plugin key the file name (minus dump suffix) is used."""
        path = tmp_path / "Qux.esp.json"
        path.write_text(json.dumps({"masters": ["Skyrim.esm"]}), encoding="utf-8")
        header = read_header(path)
        assert header.identity.name == "Qux.esp"
        assert header.masters == (CollectionIdentity("Skyrim.esm"),)


class TestDummyMaster:
    """Tests for write_dummy_master."""

    def test_writes_empty_plugin(self, tmp_path: Path) -> None:
        """The dummy is a loadable, record-less plugin."""
        path = write_dummy_master(tmp_path, CollectionIdentity(MISSING), author="me", description="dummy")

        assert path == tmp_path / MISSING
        plugin = load_plugin(path)
        assert plugin.identity == CollectionIdentity(MISSING)
        assert plugin.masters == ()
        assert plugin.records == ()

    def test_existing_file_untouched(self, tmp_path: Path) -> None:
        """An existing file of that name is left alone."""
        existing = tmp_path / MISSING
        existing.write_text("original", encoding="utf-8")

        path = write_dummy_master(tmp_path, CollectionIdentity(MISSING), author="me", description="dummy")

        assert path == existing
        assert existing.read_text(encoding="utf-8") == "original"
