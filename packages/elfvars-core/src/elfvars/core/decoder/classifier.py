"""Primitive type classification and value extraction from GDB replies."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Union

from elfvars.core.decoder.text import strip_storage_qualifiers
from elfvars.core.types.variables import StorageKind

logger = logging.getLogger(__name__)

VALUE_MARKER = "= "

_HEX_NUMBER = re.compile(r"0[xX][0-9a-fA-F]+")
_DEC_NUMBER = re.compile(r"\d+")

_SPELLINGS: Dict[str, StorageKind] = {}


def _register(kind: StorageKind, *spellings: str) -> None:
    for spelling in spellings:
        _SPELLINGS[spelling] = kind


_register(StorageKind.UNSIGNED_8, "unsigned char", "_Bool", "bool")
_register(StorageKind.SIGNED_8, "char", "signed char")
_register(
    StorageKind.UNSIGNED_16,
    "unsigned short",
    "unsigned short int",
    "short unsigned int",
)
_register(
    StorageKind.SIGNED_16,
    "short",
    "short int",
    "signed short",
    "signed short int",
    "short signed int",
)
_register(StorageKind.UNSIGNED_32, "unsigned int", "unsigned long", "unsigned long int", "long unsigned int")
_register(
    StorageKind.SIGNED_32,
    "int",
    "signed int",
    "long",
    "long int",
    "signed long",
    "signed long int",
    "long signed int",
)
_register(
    StorageKind.UNSIGNED_64,
    "unsigned long long",
    "unsigned long long int",
    "long long unsigned int",
)
_register(
    StorageKind.SIGNED_64,
    "long long",
    "long long int",
    "signed long long",
    "signed long long int",
    "long long signed int",
)
_register(StorageKind.FLOAT, "float")
_register(StorageKind.DOUBLE, "double", "long double")

# "int" is 16 bits wide on some targets
_NARROW_INT = {
    "unsigned int": StorageKind.UNSIGNED_16,
    "int": StorageKind.SIGNED_16,
    "signed int": StorageKind.SIGNED_16,
}


def reply_value(reply: str) -> Optional[str]:
    """Return the text after ``= `` in a ``print`` reply, or ``None``."""
    pos = reply.find(VALUE_MARKER)
    if pos == -1:
        return None
    return reply[pos + len(VALUE_MARKER):].strip()


def classify(type_text: str, size: Union[int, str, None]) -> StorageKind:
    """Map a leaf type and its measured size to a :class:`StorageKind`.

    *size* is the byte count, either as a number or as the text GDB
    printed for it.  Unknown spellings return ``StorageKind.UNRECOGNIZED``.

    >>> classify("int", 2)
    <StorageKind.SIGNED_16: 4>
    """
    text = strip_storage_qualifiers(type_text)
    measured = "" if size is None else str(size).strip()

    if "*" in text:
        if measured == "1":
            return StorageKind.UNSIGNED_8
        if measured == "4":
            return StorageKind.UNSIGNED_32
        return StorageKind.UNSIGNED_16

    if text.startswith("enum"):
        if measured == "1":
            return StorageKind.SIGNED_8
        return StorageKind.SIGNED_16

    if measured == "2" and text in _NARROW_INT:
        return _NARROW_INT[text]

    kind = _SPELLINGS.get(text)
    if kind is None:
        logger.error("Unrecognized primitive type: %r", text)
        return StorageKind.UNRECOGNIZED
    return kind


def classify_reply(type_text: str, reply: str) -> StorageKind:
    """Classify *type_text* using a ``p sizeof`` reply such as ``$3 = 4``."""
    return classify(type_text, reply_value(reply))


def extract_address(reply: str) -> Optional[str]:
    """Return the address text of a ``print /x &(...)`` reply, or ``None``."""
    value = reply_value(reply)
    if value is None:
        logger.warning("No address in reply: %r", reply)
    return value


def parse_address(text: Optional[str]) -> Optional[int]:
    """Parse the address of a reply value.

    A hexadecimal number wins over decimal digits appearing earlier, as in
    ``(uint8_t *) 0x20000000``.
    """
    if not text:
        return None
    match = _HEX_NUMBER.search(text)
    if match is not None:
        return int(match.group(0), 16)
    match = _DEC_NUMBER.search(text)
    if match is None:
        logger.warning("Unparsable address: %r", text)
        return None
    return int(match.group(0))


def format_address(address: int) -> str:
    """Format *address* as ``0x`` followed by at least 8 lowercase hex digits."""
    return f"0x{address:08x}"
