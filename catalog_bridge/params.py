from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [_to_str(v) for v in value]
    return [_to_str(value)]


class ParamBag:
    """Ordered request parameters, each name holding one or more values.

    ``set`` always replaces every earlier value for the name, so flags such
    as ``wt`` can never end up with two conflicting values.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._params: dict[str, list[str]] = {}
        for name, value in (initial or {}).items():
            self.set(name, value)

    def set(self, name: str, value: Any) -> None:
        self._params[name] = _to_list(value)

    def add(self, name: str, value: Any) -> None:
        self._params.setdefault(name, []).extend(_to_list(value))

    def get(self, name: str) -> list[str] | None:
        values = self._params.get(name)
        return list(values) if values is not None else None

    def get_first(self, name: str, default: str | None = None) -> str | None:
        values = self._params.get(name)
        return values[0] if values else default

    def has(self, name: str) -> bool:
        return name in self._params

    def remove(self, name: str) -> None:
        self._params.pop(name, None)

    def merge_with(self, other: "ParamBag") -> None:
        for name, values in other.items():
            self.add(name, values)

    def copy(self) -> "ParamBag":
        clone = ParamBag()
        for name, values in self.items():
            clone.set(name, values)
        return clone

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for name, values in self._params.items():
            yield name, list(values)

    def to_query_params(self) -> list[tuple[str, str]]:
        return [(name, value) for name, values in self._params.items() for value in values]

    def __contains__(self, name: object) -> bool:
        return name in self._params

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParamBag):
            return NotImplemented
        return self._params == other._params

    def __repr__(self) -> str:
        return f"ParamBag({self._params!r})"


@dataclass(frozen=True)
class Query:
    """A single search request: raw query string plus operation parameters."""

    string: str = ""
    handler: str | None = None
    params: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def all(cls) -> "Query":
        return cls("*:*")

    def to_param_bag(self) -> ParamBag:
        return ParamBag(self.params)

    @property
    def solr_query(self) -> str:
        return self.string.strip() or "*:*"

