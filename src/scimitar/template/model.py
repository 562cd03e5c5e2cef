"""Dynamic models and the view bag.

Templates rendered without a declared model type receive mappings wrapped in
``DynamicModel`` so ``Model.Name`` and ``Model["Name"]`` both work.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


def wrap_model(value: Any) -> Any:
    """Wrap mappings (and lists/tuples of them) for attribute access."""
    if isinstance(value, DynamicModel):
        return value
    if isinstance(value, Mapping):
        return DynamicModel(value)
    if isinstance(value, (list, tuple)):
        return [wrap_model(item) for item in value]
    return value


class DynamicModel:
    """Read-only attribute view over a mapping.

    Example:
        >>> m = DynamicModel({"Name": "World", "Owner": {"Name": "Ada"}})
        >>> m.Name, m["Name"], m.Owner.Name
        ('World', 'World', 'Ada')
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]):
        self._data = data

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        try:
            return wrap_model(self._data[name])
        except KeyError:
            raise AttributeError(f"Model has no member {name!r}") from None

    def __getitem__(self, key: str) -> Any:
        return wrap_model(self._data[key])

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DynamicModel):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def get(self, key: str, default: Any = None) -> Any:
        return wrap_model(self._data.get(key, default))

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"DynamicModel({self._data!r})"


class ViewBag:
    """Loosely typed values shared by a template, its layouts and its includes.

    Missing names read as ``None`` instead of raising.

    Example:
        >>> bag = ViewBag({"Title": "Home"})
        >>> bag.Title, bag.Missing
        ('Home', None)
        >>> bag.Count = 3
        >>> bag["Count"]
        3
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Any] | None = None):
        object.__setattr__(self, "_values", dict(values or {}))

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return self._values.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        self._values[name] = value

    def __delattr__(self, name: str) -> None:
        self._values.pop(name, None)

    def __getitem__(self, name: str) -> Any:
        return self._values.get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self._values[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"ViewBag({self._values!r})"
