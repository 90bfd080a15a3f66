"""Record dump loader and dummy master writer.

Plugins are read from record dumps: JSON or YAML documents describing a
plugin's header and its record object model. A dump file carries the
plugin's own file name (``Foo.esp``) or a ``.json``/``.yaml``/``.yml``
name; content is sniffed when the extension does not say.

Document layout::

    plugin: Foo.esp
    masters: [Skyrim.esm, Bar.esp]
    records:
      - $record: Cell
        form_key: Foo.esp:000801
        editor_id: FooCell
        fields:
          name: Foo Cell
          persistent:
            - $record: PlacedObject
              form_key: Bar.esp:000802
              fields:
                base: {$link: Bar.esp:000D00}

Tagged values inside ``fields``:

- ``{$formkey: KEY}`` - a bare form key
- ``{$link: KEY}`` - a link slot
- ``{$link: KEY, $type: Npc}`` - a typed link slot
- ``{$record: CATEGORY, form_key: KEY, ...}`` - a nested major record
- any other mapping is a field group; lists stay lists
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from mastercleaner.foundation.errors import ErrorCode, io_error, plugin_error
from mastercleaner.model.identity import CollectionIdentity, FormKey, FormLink, TypedFormLink
from mastercleaner.model.plugin import Plugin, PluginHeader
from mastercleaner.model.records import FieldGroup, MajorRecord

logger = logging.getLogger(__name__)

DUMP_SUFFIXES = (".json", ".yaml", ".yml")


class _SchemaError(ValueError):
    """Raised while decoding a document that parsed but is malformed."""


def _read_document(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise io_error(ErrorCode.FILE_NOT_FOUND, str(path), cause=e) from e
    except PermissionError as e:
        raise io_error(ErrorCode.FILE_PERMISSION_DENIED, str(path), cause=e) from e
    except UnicodeDecodeError as e:
        raise plugin_error(
            ErrorCode.PLUGIN_PARSE_ERROR,
            plugin=path.name,
            detail="not a text record dump",
            path=str(path),
            cause=e,
        ) from e

    suffix = path.suffix.lower()
    try:
        if suffix == ".json" or (suffix not in (".yaml", ".yml") and text.lstrip().startswith("{")):
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise plugin_error(
            ErrorCode.PLUGIN_PARSE_ERROR, plugin=path.name, detail=str(e), path=str(path), cause=e
        ) from e

    if not isinstance(document, dict):
        raise plugin_error(
            ErrorCode.PLUGIN_INVALID_SCHEMA,
            plugin=path.name,
            detail=f"expected a mapping, got {type(document).__name__}",
            path=str(path),
        )
    return document


def _plugin_name(document: dict[str, Any], path: Path) -> str:
    name = document.get("plugin")
    if name is None:
        return path.stem if path.suffix.lower() in DUMP_SUFFIXES else path.name
    if not isinstance(name, str) or not name.strip():
        raise _SchemaError("'plugin' must be a non-empty string")
    return name


def _decode_header(document: dict[str, Any], path: Path) -> PluginHeader:
    masters = document.get("masters") or []
    if not isinstance(masters, list) or not all(isinstance(m, str) for m in masters):
        raise _SchemaError("'masters' must be a list of file names")
    return PluginHeader(
        identity=CollectionIdentity(_plugin_name(document, path)),
        masters=tuple(CollectionIdentity(m) for m in masters),
    )


def _decode_key(value: Any) -> FormKey:
    if not isinstance(value, str):
        raise _SchemaError(f"form key must be a string, got {value!r}")
    try:
        return FormKey.parse(value)
    except ValueError as e:
        raise _SchemaError(str(e)) from e


def _decode_record(data: dict[str, Any]) -> MajorRecord:
    category = data["$record"]
    if not isinstance(category, str) or not category:
        raise _SchemaError("'$record' must name a record category")
    if "form_key" not in data:
        raise _SchemaError(f"{category} record without form_key")
    fields = data.get("fields") or {}
    if not isinstance(fields, dict):
        raise _SchemaError(f"fields of {category} {data['form_key']} must be a mapping")
    return MajorRecord(
        form_key=_decode_key(data["form_key"]),
        category=category,
        editor_id=data.get("editor_id"),
        fields={str(k): _decode_value(v) for k, v in fields.items()},
    )


def _decode_value(value: Any) -> Any:
    if isinstance(value, list):
        return [_decode_value(item) for item in value]
    if not isinstance(value, dict):
        return value
    if "$record" in value:
        return _decode_record(value)
    if "$formkey" in value:
        return _decode_key(value["$formkey"])
    if "$link" in value:
        key = _decode_key(value["$link"])
        if "$type" in value:
            return TypedFormLink(key, str(value["$type"]))
        return FormLink(key)
    return FieldGroup({str(k): _decode_value(v) for k, v in value.items()})


def read_header(path: str | Path) -> PluginHeader:
    """Read a plugin's name and masters.

    Raises:
        CleanerError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    document = _read_document(path)
    try:
        return _decode_header(document, path)
    except _SchemaError as e:
        raise plugin_error(
            ErrorCode.PLUGIN_INVALID_SCHEMA, plugin=path.name, detail=str(e), path=str(path)
        ) from e


def load_plugin(path: str | Path) -> Plugin:
    """Load a plugin and its full record model.

    Raises:
        CleanerError: If the file is missing, unreadable or malformed.
    """
    path = Path(path)
    document = _read_document(path)
    try:
        header = _decode_header(document, path)
        raw_records = document.get("records") or []
        if not isinstance(raw_records, list):
            raise _SchemaError("'records' must be a list")
        records = []
        for raw in raw_records:
            if not isinstance(raw, dict) or "$record" not in raw:
                raise _SchemaError(f"top-level entry is not a record: {raw!r}")
            records.append(_decode_record(raw))
    except _SchemaError as e:
        raise plugin_error(
            ErrorCode.PLUGIN_INVALID_SCHEMA, plugin=path.name, detail=str(e), path=str(path)
        ) from e

    logger.debug("Loaded %s: %d top-level record(s)", header.identity, len(records))
    return Plugin(header=header, records=tuple(records))


def write_dummy_master(
    data_dir: str | Path,
    collection: CollectionIdentity,
    *,
    author: str,
    description: str,
) -> Path:
    """Write an empty plugin named after ``collection`` into ``data_dir``.

    An existing file of that name is left untouched.

    Returns:
        Path of the dummy master (written or pre-existing).
    """
    dummy_path = Path(data_dir) / collection.name
    if dummy_path.exists():
        logger.info("Dummy master target already exists: %s", dummy_path)
        return dummy_path

    document = {
        "plugin": collection.name,
        "author": author,
        "description": description,
        "masters": [],
        "records": [],
    }
    try:
        dummy_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    except OSError as e:
        raise io_error(ErrorCode.FILE_WRITE_FAILED, str(dummy_path), cause=e) from e

    logger.info("Wrote dummy master %s", dummy_path)
    return dummy_path
