"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Multi-field, case-insensitive record filtering.

One predicate serves every list view: callers describe what to match with a
``FilterSpec`` instead of comparing fields themselves.

Example::

    spec = FilterSpec(search_text="jane", field_filters={"tier": "enterprise"})
    visible = filter_records(users, spec)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar, Union

R = TypeVar("R")

FieldAccessor = Union[str, Callable[[Any], Any]]

_MISSING = object()
_UNCONSTRAINED = "all"


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """
    Filter description supplied per call.

    Attributes:
        search_text: Substring searched (case-insensitively) across
            ``search_fields``. Blank text disables the search.
        field_filters: Field name to expected value. ``None``, ``""`` and
            ``"all"`` mean no constraint.
        search_fields: Field names or accessor callables to search. When
            empty, every string-valued field of the record is searched.
    """

    search_text: str | None = None
    field_filters: Mapping[str, Any] = field(default_factory=dict)
    search_fields: Sequence[FieldAccessor] = ()


def _read(record: Any, accessor: FieldAccessor) -> Any:
    if callable(accessor):
        return accessor(record)
    if isinstance(record, Mapping):
        return record.get(accessor, _MISSING)
    return getattr(record, accessor, _MISSING)


def _string_values(record: Any) -> Iterable[Any]:
    if isinstance(record, Mapping):
        values: Iterable[Any] = record.values()
    else:
        values = vars(record).values() if hasattr(record, "__dict__") else ()
        if not values and hasattr(record, "__slots__"):
            values = [getattr(record, name, None) for name in record.__slots__]
    return [value for value in values if isinstance(value, str)]


def _fold(value: Any) -> str:
    if value is None or value is _MISSING:
        return ""
    return str(value).casefold()


def _is_unconstrained(expected: Any) -> bool:
    if expected is None:
        return True
    if isinstance(expected, str):
        stripped = expected.strip()
        return not stripped or stripped.casefold() == _UNCONSTRAINED
    return False


def _equals(actual: Any, expected: Any) -> bool:
    if actual is None or actual is _MISSING:
        return False
    if isinstance(actual, str) and isinstance(expected, str):
        return actual.casefold() == expected.strip().casefold()
    return actual == expected


def matches(record: Any, spec: FilterSpec) -> bool:
    """Return whether one record satisfies every constraint in ``spec``."""
    for name, expected in spec.field_filters.items():
        if _is_unconstrained(expected):
            continue
        if not _equals(_read(record, name), expected):
            return False

    needle = (spec.search_text or "").strip().casefold()
    if not needle:
        return True
    if spec.search_fields:
        haystack = [_read(record, accessor) for accessor in spec.search_fields]
    else:
        haystack = list(_string_values(record))
    return any(needle in _fold(value) for value in haystack)


def filter_records(records: Iterable[R], spec: FilterSpec | None = None) -> list[R]:
    """Return the records matching ``spec`` in their original order."""
    if spec is None:
        return list(records)
    return [record for record in records if matches(record, spec)]
