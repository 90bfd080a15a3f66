"""Pytest fixtures for mastercleaner tests."""

import logging
import os
from pathlib import Path

import pytest
from builders import MISSING, PLUGIN, fk, write_dump

from mastercleaner.foundation.config.loader import reset_config
from mastercleaner.model.identity import CollectionIdentity, FormLink
from mastercleaner.model.records import MajorRecord


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from global config state and MASTERCLEANER_* env vars."""
    for key in list(os.environ):
        if key.startswith("MASTERCLEANER_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Undo configure_logging calls made by a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def target() -> CollectionIdentity:
    """The missing master every scenario cleans against."""
    return CollectionIdentity(MISSING)


@pytest.fixture
def placed_owned() -> MajorRecord:
    """A placed reference owned by the missing master."""
    return MajorRecord(
        fk(f"{MISSING}:000802"),
        "PlacedObject",
        editor_id="MissingRef",
        fields={"base": FormLink(fk(f"{MISSING}:000D00"))},
    )


@pytest.fixture
def cell_with_refs(placed_owned: MajorRecord) -> MajorRecord:
    """A foreign cell whose Persistent[2] is owned by the missing master.

    Persistent[5] is a foreign placed reference whose base lives in the
    missing master.
    """
    persistent = [
        MajorRecord(fk(f"{PLUGIN}:00090{i}"), "PlacedObject", fields={"base": FormLink(fk("Skyrim.esm:000007"))})
        for i in range(6)
    ]
    persistent[2] = placed_owned
    persistent[5] = MajorRecord(
        fk(f"{PLUGIN}:000905"),
        "PlacedObject",
        fields={"base": FormLink(fk(f"{MISSING}:000E00"))},
    )
    return MajorRecord(
        fk(f"{PLUGIN}:000801"),
        "Cell",
        editor_id="FooCell",
        fields={"persistent": persistent, "temporary": []},
    )


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A Data directory with the base game master and a few plugins.

    - Clean.esp: all masters present
    - One.esp: misses Missing.esp (cleanable)
    - Two.esp: misses Missing.esp and Gone.esp (unsafe)
    - Broken.esp: not a readable dump
    - Real.esp: a binary plugin, not a text dump
    """
    directory = tmp_path / "Data"
    directory.mkdir()
    write_dump(directory, "Skyrim.esm", [])
    write_dump(directory, "Update.esm", ["Skyrim.esm"])
    write_dump(directory, "Clean.esp", ["Skyrim.esm"])
    write_dump(
        directory,
        "One.esp",
        ["Skyrim.esm", MISSING],
        records=[
            {
                "$record": "FormList",
                "form_key": "One.esp:000801",
                "editor_id": "OneList",
                "fields": {"items": [{"$link": f"{MISSING}:000D00"}]},
            },
        ],
    )
    write_dump(directory, "Two.esp", ["Skyrim.esm", MISSING, "Gone.esp"])
    (directory / "Broken.esp").write_text("{not json", encoding="utf-8")
    (directory / "Real.esp").write_bytes(b"TES4\x2a\x00\x00\x00\x00\x00\xff\xfe\x80\x81")
    (directory / "readme.txt").write_text("not a plugin", encoding="utf-8")
    return directory
