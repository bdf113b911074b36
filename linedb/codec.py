r"""
linedb/codec.py
Packs an ordered list of string fields into a single text line and back.

Line layout:
  field,field,field
  Each field is escaped so that it never contains a raw separator or
  line break:
    \     -> \\
    ,     -> \c
    "     -> \"
    (CR)  -> \r
    (LF)  -> \n
    (TAB) -> \t
  An empty field is written as the quoted-empty marker "" so it stays
  visible between separators.

Three sequences that must never alias:
  []        -> (empty line)
  [""]      -> ""
  ["", ""]  -> "",""
"""

from __future__ import annotations
from typing import Iterable

SEPARATOR = ","
EMPTY_MARKER = '""'
_ESC = "\\"

# Order matters: the escape character itself goes first.
_ESCAPES: tuple[tuple[str, str], ...] = (
    ("\\", "\\\\"),
    (",", "\\c"),
    ('"', '\\"'),
    ("\r", "\\r"),
    ("\n", "\\n"),
    ("\t", "\\t"),
)

_UNESCAPES: dict[str, str] = {
    "c": ",",
    "r": "\r",
    "n": "\n",
    "t": "\t",
}


def escape(value: str) -> str:
    """Escape a single field."""
    if not value:
        return EMPTY_MARKER
    for raw, escaped in _ESCAPES:
        value = value.replace(raw, escaped)
    return value


def unescape(value: str) -> str:
    """
    Reverse escape() for a single field.
    Unknown escape sequences yield the escaped char itself (\\x -> x);
    a dangling escape at the end of the field is dropped.
    """
    if value == EMPTY_MARKER:
        return ""
    if _ESC not in value:
        return value
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != _ESC:
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is not None:
            out.append(_UNESCAPES.get(nxt, nxt))
    return "".join(out)


def encode(fields: Iterable[str]) -> str:
    """Pack fields into one line (without the line terminator)."""
    return SEPARATOR.join(escape(f) for f in fields)


def decode(line: str) -> list[str]:
    """Unpack a line produced by encode()."""
    if not line:
        return []
    return [unescape(part) for part in line.split(SEPARATOR)]
