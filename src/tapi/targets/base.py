from __future__ import annotations

import json
from typing import Optional

from tapi.errors import MalformedSchemaError, UnsupportedEncodingError
from tapi.schema.kind import Enum, Field, InternalTag, Struct, TupleVariant, Untagged
from tapi.schema.node import SchemaNode


def quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def transparent_field(ty: SchemaNode, s: Struct) -> Optional[Field]:
    """The aliased field of a transparent struct, or None for a regular struct."""
    if not s.attr.transparent:
        return None
    fields = s.serialized_fields()
    if len(fields) != 1:
        raise MalformedSchemaError(
            f"transparent struct needs exactly one serialized field, found {len(fields)}",
            ty,
        )
    return fields[0]


def check_enum(ty: SchemaNode, e: Enum) -> None:
    """Reject tag encodings no dialect can express."""
    tag = e.attr.tag
    if isinstance(tag, Untagged):
        raise UnsupportedEncodingError("untagged enums are not supported", ty)
    if isinstance(tag, InternalTag):
        for v in e.variants:
            if isinstance(v, TupleVariant):
                raise UnsupportedEncodingError(
                    f"variant {v.name!r} is a tuple variant, which internal tagging "
                    f"({tag.tag!r}) cannot encode",
                    ty,
                )
