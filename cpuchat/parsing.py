"""Token checks and operand parsing for the register machine's commands."""

from __future__ import annotations

import re

WHITESPACE = " \t\n\v\f\r"
"""Characters treated as blanks around opcodes and operands."""

_DIGITS = frozenset("0123456789")
_OPCODE = re.compile(r"[ \t\n\v\f\r]*[^ \t\n\v\f\r]*")


def is_register(r: str) -> bool:
    """Return True for the register names R0 to R6."""
    return len(r) == 2 and r[0] == "R" and "0" <= r[1] <= "6"


def is_number(val: str) -> bool:
    """Return True when the text is a non-empty run of decimal digits."""
    return bool(val) and all(ch in _DIGITS for ch in val)


def _operand_text(cmd: str) -> str:
    """Return the rest of the first line after the opcode, trimmed."""
    match = _OPCODE.match(cmd)
    rest = cmd[match.end():]
    return rest.split("\n", 1)[0].strip(WHITESPACE)


def parse_two_operands(cmd: str) -> tuple[str, str]:
    """Split ``OP a, b`` into its two operands.

    Raises ValueError when there is no comma or an operand is empty.
    """
    line = _operand_text(cmd)
    first, sep, second = line.partition(",")
    if not sep:
        raise ValueError(f"expected two comma-separated operands in {cmd!r}")
    first = first.strip(WHITESPACE)
    second = second.strip(WHITESPACE)
    if not first or not second:
        raise ValueError(f"empty operand in {cmd!r}")
    return first, second


def parse_three_operands(cmd: str) -> tuple[str, str, str]:
    """Split ``OP a, b, c`` into its three operands.

    Raises ValueError when a comma is missing or an operand is empty.
    """
    line = _operand_text(cmd)
    first, sep, rest = line.partition(",")
    if not sep:
        raise ValueError(f"expected three comma-separated operands in {cmd!r}")
    first = first.strip(WHITESPACE)
    rest = rest.strip(WHITESPACE)
    second, sep, third = rest.partition(",")
    if not sep:
        raise ValueError(f"expected three comma-separated operands in {cmd!r}")
    second = second.strip(WHITESPACE)
    third = third.strip(WHITESPACE)
    if not first or not second or not third:
        raise ValueError(f"empty operand in {cmd!r}")
    return first, second, third