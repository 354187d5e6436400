"""Schema model for the supported JSON Schema subset."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from confedit.core import constants as app_constants
from confedit.core.domain_impl.json.json_value_core import JSONValue


@dataclass(frozen=True, slots=True)
class Schema:
    """One schema node. Facets left as None are not constrained."""

    types: tuple[str, ...] = ()
    properties: dict[str, Schema] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    additional_properties: Union[None, bool, Schema] = None
    items: Optional[Schema] = None
    pattern: Optional[str] = None
    format: Optional[str] = None
    enum_values: Optional[tuple[JSONValue, ...]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    deprecated: bool = False
    default_value: Optional[JSONValue] = None
    title: Optional[str] = None
    description: Optional[str] = None
    schema_uri: Optional[str] = None

    def schema_at(self, path: Iterable[str]) -> Schema | None:
        """Walk ``properties`` by path; segments not declared there fall through to ``items``."""
        current = self
        for segment in path:
            child = current.properties.get(str(segment))
            if child is None:
                child = current.items
            if child is None:
                return None
            current = child
        return current

    def is_required(self, name: str, path: Iterable[str] = ()) -> bool:
        target = self.schema_at(path)
        return target is not None and name in target.required

    @property
    def property_names(self) -> list[str]:
        return sorted(self.properties)


@dataclass(frozen=True, slots=True)
class PropertyInfo:
    """Flattened constraints of a single property, keyed by its dotted path."""

    path: tuple[str, ...]
    types: tuple[str, ...] = ()
    description: Optional[str] = None
    title: Optional[str] = None
    format: Optional[str] = None
    pattern: Optional[str] = None
    enum_values: Optional[tuple[JSONValue, ...]] = None
    is_required: bool = False
    deprecated: bool = False
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    default_value: Optional[JSONValue] = None

    @property
    def path_string(self) -> str:
        return app_constants.PATH_SEPARATOR.join(self.path)

    @property
    def type_string(self) -> str | None:
        if not self.types:
            return None
        return " | ".join(self.types)
