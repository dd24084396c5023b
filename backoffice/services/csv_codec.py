"""CSV text <-> rows of string fields.

Quoting follows RFC 4180 style rules:
- a field may be wrapped in double quotes; inside quotes `""` is a literal quote
- commas and newlines inside quotes are part of the field
- every field is whitespace-trimmed

An unterminated quote is accepted: the quoted section runs to the end of input.
"""

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

_BOM = "\ufeff"


def split_records(text: str) -> list[list[str]]:
    """Split CSV text into records of trimmed fields.

    Blank lines (whitespace only) are skipped.
    """
    if text.startswith(_BOM):
        text = text[1:]

    records: list[list[str]] = []
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    has_content = False

    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            has_content = True
            if in_quotes and i + 1 < n and text[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            has_content = True
            fields.append("".join(current).strip())
            current = []
        elif ch == "\n" and not in_quotes:
            if has_content:
                fields.append("".join(current).strip())
                records.append(fields)
            fields = []
            current = []
            has_content = False
        else:
            if not ch.isspace():
                has_content = True
            current.append(ch)
        i += 1

    if has_content:
        fields.append("".join(current).strip())
        records.append(fields)

    return records


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse CSV text into row dicts keyed by the header line.

    Returns an empty list when there is no data row (empty file or header only).
    Missing trailing cells become "" and extra cells are dropped.
    """
    records = split_records(text)
    if len(records) < 2:
        return []

    headers = records[0]
    rows: list[dict[str, str]] = []
    for record in records[1:]:
        rows.append({header: (record[i] if i < len(record) else "") for i, header in enumerate(headers)})
    return rows


def format_csv_value(value: Any) -> str:
    """Render one cell, quoting strings that contain `,`, `"` or a newline."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, str):
        if "," in value or '"' in value or "\n" in value:
            return '"' + value.replace('"', '""') + '"'
        return value
    return str(value)


def serialize_csv(rows: Iterable[Mapping[str, Any]], header_order: Sequence[str]) -> str:
    """Serialize rows to CSV text; the header line comes first, lines joined by \\n."""
    lines = [",".join(format_csv_value(h) for h in header_order)]
    for row in rows:
        lines.append(",".join(format_csv_value(row.get(h)) for h in header_order))
    return "\n".join(lines)
