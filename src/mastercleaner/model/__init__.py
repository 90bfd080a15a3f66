"""Record object model: identities, links, records and plugins."""

from mastercleaner.model.identity import (
    CollectionIdentity,
    FormKey,
    FormLink,
    TypedFormLink,
)
from mastercleaner.model.plugin import Plugin, PluginHeader
from mastercleaner.model.records import (
    DISPLAY_NAME_FIELDS,
    FieldAccess,
    FieldGroup,
    MajorRecord,
    RecordLike,
)

__all__ = [
    "CollectionIdentity",
    "DISPLAY_NAME_FIELDS",
    "FieldAccess",
    "FieldGroup",
    "FormKey",
    "FormLink",
    "MajorRecord",
    "Plugin",
    "PluginHeader",
    "RecordLike",
    "TypedFormLink",
]
