"""
Text forms of half-integer quantum numbers.

Every quantum number in this package is stored as the number of half-units of
hbar, so `3/2` is held as `3` and `1` as `2`. The accepted text grammar is
`<int>` or `<int>/2`.
"""

from __future__ import annotations
from .misc import InputError

def parse_half_integer(s: str) -> int:
    """
    Parse `"<int>"` or `"<int>/2"` and return the number of halves.

    Raises `InputError` for anything else.
    """
    parts = s.strip().split("/")
    try:
        v = int(parts[0])
    except ValueError:
        raise InputError("half-integer", s, "not an integer or <int>/2")
    if len(parts) == 1:
        return 2 * v
    elif len(parts) == 2 and parts[1] == "2":
        return v
    else:
        raise InputError("half-integer", s, "not an integer or <int>/2")

def format_half_integer(halves: int) -> str:
    """
    Inverse of `parse_half_integer`.
    """
    if halves % 2 == 0:
        return str(halves // 2)
    else:
        return f"{halves}/2"

def half_integer_latex(halves: int) -> str:
    sign = "-" if halves < 0 else ""
    halves = abs(halves)
    if halves % 2 == 0:
        return sign + str(halves // 2)
    else:
        return sign + f"\\frac{{{halves}}}{{2}}"

def jm_latex(twoj: int, twom: int) -> str:
    return (
        f"\\left|{half_integer_latex(twoj)},{half_integer_latex(twom)}"
        "\\right\\rangle"
    )
