"""GDB command templates.

Every command is a single text line; :func:`format_command` adds the line
terminator expected on the debugger's standard input.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from .types import QueryKind

SET_PRINT_METHODS_OFF = "set print type methods off"
SET_PRINT_TYPEDEFS_OFF = "set print type typedefs off"
INFO_VARIABLES = "info variables"
QUIT = "quit"

# Unknown commands: GDB answers them with an error and a prompt, which
# flushes the end of a query batch.
BATCH_TERMINATORS: Dict[QueryKind, str] = {
    QueryKind.TYPE: "StopRequestType",
    QueryKind.SIZE: "StopRequestSize",
    QueryKind.ADDRESS: "StopRequestAddress",
}


def describe_type(expression: str) -> str:
    """Return the command printing the type declaration of *expression*."""
    return f"ptype {expression}"


def size_of(expression: str) -> str:
    """Return the command printing the byte size of *expression*."""
    return f"p sizeof {expression}"


def address_of(expression: str) -> str:
    """Return the command printing the address of *expression* in hex."""
    return f"print /x &({expression})"


_QUERY_TEMPLATES = {
    QueryKind.TYPE: describe_type,
    QueryKind.SIZE: size_of,
    QueryKind.ADDRESS: address_of,
}


def query(kind: QueryKind, expression: str) -> str:
    """Build the query command of the given *kind* for *expression*."""
    return _QUERY_TEMPLATES[kind](expression)


def format_command(command: str) -> str:
    """Terminate *command* with a newline, as written to GDB's stdin."""
    return command.rstrip("\n") + "\n"


def format_batch(kind: QueryKind, expressions: Iterable[str]) -> List[str]:
    """Build one query per expression followed by the batch terminator.

    Parameters
    ----------
    kind:
        The information requested for each expression.
    expressions:
        Identifiers (or class names) to query, in reply order.

    Returns
    -------
    list[str]
        Command lines without terminators, ready for :func:`format_command`.
    """
    commands = [query(kind, expr) for expr in expressions]
    commands.append(BATCH_TERMINATORS[kind])
    return commands
