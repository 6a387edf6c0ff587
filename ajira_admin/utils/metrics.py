"""Pure metric math helpers shared by the analytics aggregators."""
from __future__ import annotations

import re
from collections import Counter
from typing import Any, Iterable, Mapping


def safe_div(numerator: float | int, denominator: float | int) -> float:
    if denominator in (0, 0.0):
        return 0.0
    return float(numerator) / float(denominator)


def to_number(value: Any) -> float:
    """Lenient numeric coercion for stored amounts (Decimal, str, None)."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return number


def sum_field(rows: Iterable[Mapping[str, Any]], field: str) -> float:
    return sum(to_number(row.get(field)) for row in rows)


_WORD = re.compile(r"\w\S*")


def title_case(text: str) -> str:
    """Capitalize each whitespace-delimited word, lower-casing the rest."""
    return _WORD.sub(lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


def source_label(source: str) -> str:
    """Display label for a revenue source: first underscore becomes a space, words capitalized."""
    spaced = source.replace("_", " ", 1)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


def count_by(values: Iterable[str]) -> Counter[str]:
    return Counter(values)


def top_n(counts: Mapping[str, float], n: int) -> list[dict[str, Any]]:
    """Highest counts first as ``[{"name", "value"}]`` (stable for ties)."""
    return [{"name": name, "value": value} for name, value in Counter(counts).most_common(n)]


def as_pairs(counts: Mapping[str, float]) -> list[dict[str, Any]]:
    return [{"name": name, "value": value} for name, value in counts.items()]


__all__ = [
    "safe_div",
    "to_number",
    "sum_field",
    "title_case",
    "source_label",
    "count_by",
    "top_n",
    "as_pairs",
]
