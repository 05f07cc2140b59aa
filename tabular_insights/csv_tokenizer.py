"""
tabular_insights/csv_tokenizer.py - Quote-aware CSV tokenizer.

Turns raw delimited text into records (column name -> raw string value).
The first non-blank line is the header row. Values are zipped to header
positions by index: short rows are padded with "", long rows lose their
extra fields.

The tokenizer never raises. An unterminated quote simply keeps the rest of
the line inside the current field.

Usage:
    records = parse_csv("region,units\\nNorth,10\\nSouth,5")
    # [{"region": "North", "units": "10"}, {"region": "South", "units": "5"}]
"""

import logging
import re
from typing import Dict, List

log = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


def parse_csv(content: str) -> List[Dict[str, str]]:
    """
    Parse CSV text into a list of records keyed by the header row.

    Blank lines are ignored anywhere in the input. Returns [] when no
    non-blank line remains.
    """
    # Excel exports lead with a byte-order mark
    content = content.lstrip("\ufeff").strip()
    lines = [line for line in _LINE_BREAK.split(content) if line.strip()]
    if not lines:
        return []

    headers = parse_csv_line(lines[0])
    rows: List[Dict[str, str]] = []

    for line in lines[1:]:
        values = parse_csv_line(line)
        if not values:
            continue
        rows.append({
            header: values[i] if i < len(values) else ""
            for i, header in enumerate(headers)
        })

    log.debug(f"Tokenized {len(rows)} data rows across {len(headers)} columns.")
    return rows


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line into trimmed fields, honouring double quotes."""
    values:  List[str] = []
    current: List[str] = []
    inside_quotes = False
    i = 0

    while i < len(line):
        char = line[i]

        if char == '"':
            if inside_quotes and line[i + 1:i + 2] == '"':
                current.append('"')
                i += 2
                continue
            inside_quotes = not inside_quotes
        elif char == "," and not inside_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    if current or line.endswith(","):
        values.append("".join(current).strip())

    return values
