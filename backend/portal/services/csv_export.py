# Overview: CSV serialization for report exports.

"""
CSV export of a report's tabular projection.

Output dialect: fields joined by ",", rows by "\n", no trailing newline.
A field is wrapped in double quotes when it contains a double quote, a
comma or a newline.

Two quote styles are supported:
- "rfc4180" (default): an embedded double quote is doubled ("").
- "backslash": an embedded double quote becomes \". This is what earlier
  portal exports produced. Spreadsheet tools do not read it back
  correctly, and a quoted field that ends in a backslash is ambiguous.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence


QUOTE_STYLES = ("rfc4180", "backslash")

_NEEDS_QUOTING = ('"', ",", "\n")


class CsvExportError(Exception):
    """Raised for an unknown quote style."""
    pass


def _check_style(quote_style: str) -> None:
    if quote_style not in QUOTE_STYLES:
        raise CsvExportError(f"Unknown CSV quote style: {quote_style}")


def format_field(value: Any) -> str:
    """Stringify one cell the way exports render it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def escape_field(value: Any, quote_style: str = "rfc4180") -> str:
    text = format_field(value)
    if quote_style == "backslash":
        escaped = text.replace('"', '\\"')
    else:
        escaped = text.replace('"', '""')
    if any(ch in escaped for ch in _NEEDS_QUOTING):
        escaped = f'"{escaped}"'
    return escaped


def to_csv(
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
    quote_style: str = "rfc4180",
) -> str:
    """Serialize headers and rows. Headers are joined as-is."""
    _check_style(quote_style)
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(escape_field(field, quote_style) for field in row))
    return "\n".join(lines)


def parse_csv(text: str, quote_style: str = "rfc4180") -> list[list[str]]:
    """
    Read back a document produced by to_csv with the same quote style.

    Returns every row, headers first, as lists of strings.
    """
    _check_style(quote_style)
    if not text:
        return []

    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if in_quotes:
            if quote_style == "backslash" and ch == "\\" and i + 1 < n and text[i + 1] == '"':
                field.append('"')
                i += 2
                continue
            if ch == '"':
                if quote_style == "rfc4180" and i + 1 < n and text[i + 1] == '"':
                    field.append('"')
                    i += 2
                    continue
                in_quotes = False
                i += 1
                continue
            field.append(ch)
            i += 1
            continue

        if ch == '"' and not field:
            in_quotes = True
        elif ch == ",":
            row.append("".join(field))
            field = []
        elif ch == "\n":
            row.append("".join(field))
            rows.append(row)
            row, field = [], []
        else:
            field.append(ch)
        i += 1

    row.append("".join(field))
    rows.append(row)
    return rows
