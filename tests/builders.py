"""Record and dump builders shared by the tests."""

import json
from pathlib import Path

from mastercleaner.model.identity import FormKey

MISSING = "Missing.esp"
PLUGIN = "Foo.esp"


def fk(text: str) -> FormKey:
    """Shorthand for FormKey.parse."""
    return FormKey.parse(text)


def write_dump(directory: Path, name: str, masters: list[str], records: list | None = None) -> Path:
    """Write a record dump under the plugin's own file name."""
    path = directory / name
    document = {"plugin": name, "masters": masters, "records": records or []}
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return path
