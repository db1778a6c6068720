"""Variable collection models shared by the decoders and the session."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class StorageKind(IntEnum):
    """Primitive storage class reported for each variable."""

    UNRECOGNIZED = -1
    UNSIGNED_8 = 1
    SIGNED_8 = 2
    UNSIGNED_16 = 3
    SIGNED_16 = 4
    UNSIGNED_32 = 5
    SIGNED_32 = 6
    UNSIGNED_64 = 7
    SIGNED_64 = 8
    FLOAT = 9
    DOUBLE = 10


class ResolvedType(BaseModel):
    """A leaf type: the declaration text that will not be expanded further."""

    model_config = ConfigDict(frozen=True)

    text: str


class BaseClassQuery(BaseModel):
    """A base class whose members still have to be discovered."""

    model_config = ConfigDict(frozen=True)

    class_name: str


EntryType = Union[ResolvedType, BaseClassQuery]


class VariableEntry(BaseModel):
    """One identifier path and everything learned about it so far.

    ``type`` is ``None`` until GDB has described it.  ``expanded`` marks an
    aggregate whose members were staged for merging; such an entry is
    dropped at the end of the type pass.
    """

    identifier: str
    type: Optional[EntryType] = None
    kind: Optional[StorageKind] = None
    address: Optional[int] = None
    address_text: Optional[str] = None
    class_hierarchy: str = ""
    expanded: bool = False

    @property
    def resolved_type(self) -> Optional[str]:
        """Return the leaf type text, or ``None`` if not resolved."""
        if isinstance(self.type, ResolvedType):
            return self.type.text
        return None

    @property
    def type_expression(self) -> str:
        """Return the expression to pass to ``ptype`` for this entry."""
        if isinstance(self.type, BaseClassQuery):
            return self.type.class_name
        return self.identifier


class FileGroup(BaseModel):
    """The variables declared in one source file."""

    filename: str
    entries: List[VariableEntry] = Field(default_factory=list)


class ResumeCursor(BaseModel):
    """Position of the next entry to scan when a reply frame arrives."""

    file_index: int = 0
    entry_index: int = 0

    def reset(self) -> None:
        self.file_index = 0
        self.entry_index = 0


class VariableInfo(BaseModel):
    """One variable as delivered to callers."""

    name: str
    address: str
    type: int


class PendingExpansion:
    """Member entries discovered during one type pass, keyed by file name.

    Entries are only merged into the variable collection once the whole
    pass has been answered, so the collection is never grown while the
    session is still correlating replies with it.
    """

    def __init__(self) -> None:
        self._staged: Dict[str, List[VariableEntry]] = {}

    def stage(self, filename: str, entries: List[VariableEntry]) -> None:
        self._staged.setdefault(filename, []).extend(entries)

    def entries_for(self, filename: str) -> List[VariableEntry]:
        return list(self._staged.get(filename, []))

    def merge_into(self, groups: List[FileGroup]) -> int:
        """Append the staged entries to their file groups and clear the stage.

        Returns the number of merged entries.
        """
        merged = 0
        by_name = {}
        for group in groups:
            by_name.setdefault(group.filename, group)
        for filename, entries in self._staged.items():
            group = by_name.get(filename)
            if group is None:
                group = FileGroup(filename=filename)
                groups.append(group)
                by_name[filename] = group
            group.entries.extend(entries)
            merged += len(entries)
        self.clear()
        return merged

    def clear(self) -> None:
        self._staged.clear()

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._staged.values())

    def __bool__(self) -> bool:
        return len(self) > 0
