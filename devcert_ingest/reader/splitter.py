from __future__ import annotations

"""Quote-aware single line splitter.

Rules:
- ``"`` toggles quoted mode
- ``""`` emits one literal quote and does not toggle
- the delimiter is literal while quoted
- unbalanced quotes never raise; accumulation runs to end of line
- each field is trimmed, then a field still wrapped in quotes loses them
"""

__all__ = [
    "split_line",
    "count_unquoted",
]


def split_line(line: str, delimiter: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"' and i + 1 < n and line[i + 1] == '"':
            current.append('"')
            i += 2
            continue
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current).strip())

    return [_strip_bounding_quotes(f) for f in fields]


def _strip_bounding_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def count_unquoted(line: str, char: str) -> int:
    """Count occurrences of ``char`` outside quoted sections of ``line``."""
    count = 0
    in_quotes = False
    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == char and not in_quotes:
            count += 1
    return count
