"""Decoders for the text GDB prints in reply to each query."""

from __future__ import annotations

from elfvars.core.decoder.arrays import MAX_ARRAY_ELEMENTS, expand_arrays, expand_group
from elfvars.core.decoder.classifier import (
    classify,
    classify_reply,
    extract_address,
    format_address,
    parse_address,
    reply_value,
)
from elfvars.core.decoder.declarations import (
    build_identifier_list,
    extract_identifier,
    parse_variables_listing,
)
from elfvars.core.decoder.inheritance import parse_base_classes
from elfvars.core.decoder.resolver import decode_type_reply, resolve_type
from elfvars.core.decoder.text import (
    find_matching_brace,
    strip_access_labels,
    strip_storage_qualifiers,
)

__all__ = [
    "MAX_ARRAY_ELEMENTS",
    "build_identifier_list",
    "classify",
    "classify_reply",
    "decode_type_reply",
    "expand_arrays",
    "expand_group",
    "extract_address",
    "extract_identifier",
    "find_matching_brace",
    "format_address",
    "parse_address",
    "parse_base_classes",
    "parse_variables_listing",
    "reply_value",
    "resolve_type",
    "strip_access_labels",
    "strip_storage_qualifiers",
]
