"""
Base domain model with JSON record serialization.

Provides snake_case -> camelCase conversion for report consumers
(CLI, log sinks, dashboards). All domain dataclasses inherit from
BaseDomainModel.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict


def to_camel_case(snake_str: str) -> str:
    """
    Convert snake_case to camelCase.

    Examples:
        >>> to_camel_case("exit_code")
        'exitCode'
        >>> to_camel_case("not_executed")
        'notExecuted'
    """
    components = snake_str.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


def _serialize(value: Any) -> Any:
    if isinstance(value, BaseDomainModel):
        return value.to_json()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, Mapping):
        return {k: _serialize(v) for k, v in value.items()}
    return value


class BaseDomainModel:
    """
    Mixin for dataclass domain models.

    - to_json() serializes to camelCase keys
    - Enum values are serialized as their value
    - Dates are serialized as ISO 8601 strings
    - Tuples and lists become JSON arrays

    Kept as a plain class so both frozen and mutable dataclasses can use it.
    """

    def to_json(self) -> Dict[str, Any]:
        """
        Serialize to a JSON-compatible dict (camelCase).

        Fields declared with ``repr=False`` are treated as sensitive and
        left out of the record.
        """
        if not is_dataclass(self):
            raise TypeError(f"{type(self).__name__} is not a dataclass")

        result: Dict[str, Any] = {}
        for field in fields(self):
            if not field.repr:
                continue
            result[to_camel_case(field.name)] = _serialize(getattr(self, field.name))
        return result
