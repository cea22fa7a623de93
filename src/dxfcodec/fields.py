from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Callable, Iterator, Union

from . import stream
from .chain import Chain
from .entity import Entity, as_point
from .revision import Revision, in_range


class FieldType(Enum):
    INT32 = "int32"
    INT16 = "int16"
    DOUBLE = "double"
    HANDLE = "handle"
    FLAG = "flag"
    STRING = "string"
    POINT = "point"
    CHAIN = "chain"
    # Chain items that keep their own group code (proprietary data lines).
    TAG = "tag"


_INT16_RANGE = (-32768, 32767)
_INT32_RANGE = (-(2**31), 2**31 - 1)


def _parse_int16(raw: str) -> int:
    value = stream.as_int(raw)
    if not _INT16_RANGE[0] <= value <= _INT16_RANGE[1]:
        raise ValueError(f"out of 16-bit range: {value}")
    return value


def _parse_int32(raw: str) -> int:
    value = stream.as_int(raw)
    if not _INT32_RANGE[0] <= value <= _INT32_RANGE[1]:
        raise ValueError(f"out of 32-bit range: {value}")
    return value


def _parse_flag(raw: str) -> int:
    value = stream.as_int(raw)
    if value not in (0, 1):
        raise ValueError(f"flag must be 0 or 1, got {value}")
    return value


_PARSERS: dict[FieldType, Callable[[str], Any]] = {
    FieldType.INT16: _parse_int16,
    FieldType.INT32: _parse_int32,
    FieldType.FLAG: _parse_flag,
    FieldType.DOUBLE: stream.as_float,
    FieldType.HANDLE: stream.as_hex,
    FieldType.STRING: stream.as_str,
    FieldType.POINT: stream.as_float,
}

_FORMATTERS: dict[FieldType, Callable[[Any], str]] = {
    FieldType.INT16: stream.format_int,
    FieldType.INT32: stream.format_int,
    FieldType.FLAG: stream.format_int,
    FieldType.DOUBLE: stream.format_float,
    FieldType.HANDLE: stream.format_hex,
    FieldType.STRING: stream.format_str,
    FieldType.POINT: stream.format_float,
}


def parse_value(type_: FieldType, raw: str) -> Any:
    return _PARSERS[type_](raw)


def _coerce_scalar(type_: FieldType, value: Any) -> Any:
    if type_ is FieldType.POINT:
        return as_point(value)
    if type_ is FieldType.DOUBLE:
        return float(value)
    if type_ is FieldType.TAG:
        return stream.Tag(int(value[0]), str(value[1]))
    if type_ is FieldType.STRING:
        return str(value)
    return int(value)


def format_value(type_: FieldType, value: Any) -> str:
    return _FORMATTERS[type_](value)


def omit_default(value: Any, default: Any) -> bool:
    return value == default


def omit_empty(value: Any, default: Any) -> bool:
    return not value


def between(low: float, high: float) -> Callable[[Any], bool]:
    return lambda value: low <= value <= high


def one_of(*allowed: Any) -> Callable[[Any], bool]:
    return lambda value: value in allowed


def non_negative(value: Any) -> bool:
    return value >= 0


@dataclass(frozen=True)
class Field:
    name: str
    code: int
    type: FieldType
    default: Any = None
    min_revision: Revision | None = None
    max_revision: Revision | None = None
    valid: Callable[[Any], bool] | None = None
    omit: Callable[[Any, Any], bool] | None = None
    fallback: str | None = None
    item: FieldType | None = None
    aliases: tuple[int, ...] = ()
    dims: int = 3
    limit: int | None = None
    present_if: Callable[[dict[str, Any]], bool] | None = None
    counts: str | None = None

    @property
    def value_type(self) -> FieldType:
        if self.type is FieldType.CHAIN:
            assert self.item is not None
            return self.item
        return self.type

    @property
    def is_point(self) -> bool:
        return self.value_type is FieldType.POINT

    @property
    def codes(self) -> tuple[int, ...]:
        if self.is_point:
            return tuple(self.code + 10 * axis for axis in range(self.dims))
        return (self.code, *self.aliases)

    def applies(self, revision: Revision | None) -> bool:
        return in_range(revision, self.min_revision, self.max_revision)

    def new_default(self) -> Any:
        if self.type is FieldType.CHAIN:
            return Chain(self.default or ())
        return self.default

    def coerce(self, value: Any) -> Any:
        if self.type is FieldType.CHAIN:
            return Chain(_coerce_scalar(self.value_type, item) for item in value)
        return _coerce_scalar(self.type, value)


@dataclass(frozen=True)
class Marker:
    name: str
    min_revision: Revision | None = Revision.R13
    max_revision: Revision | None = None

    def applies(self, revision: Revision | None) -> bool:
        return in_range(revision, self.min_revision, self.max_revision)


@dataclass(frozen=True)
class Fence:
    app: str
    fields: tuple[Field, ...]
    min_revision: Revision | None = Revision.R14

    def applies(self, revision: Revision | None) -> bool:
        return in_range(revision, self.min_revision, None)


@dataclass(frozen=True)
class Check:
    name: str
    predicate: Callable[[Entity], bool]
    message: str


Element = Union[Field, Marker, Fence]


@dataclass(frozen=True)
class Slot:
    field: Field
    axis: int
    fence: str | None


@dataclass(frozen=True)
class EntityTable:
    dxftype: str
    layout: tuple[Element, ...]
    checks: tuple[Check, ...] = ()
    min_revision: Revision | None = None
    renamed: tuple[tuple[Revision, str], ...] = ()

    def name_for(self, revision: Revision | None) -> str:
        name = self.dxftype
        if revision is None:
            return name
        for since, new_name in self.renamed:
            if revision >= since:
                name = new_name
        return name

    def iter_fields(self) -> Iterator[tuple[Field, str | None]]:
        for element in self.layout:
            if isinstance(element, Field):
                yield element, None
            elif isinstance(element, Fence):
                for inner in element.fields:
                    yield inner, element.app

    @cached_property
    def fields(self) -> dict[str, Field]:
        return {item.name: item for item, _ in self.iter_fields()}

    @cached_property
    def stored_fields(self) -> dict[str, Field]:
        return {name: item for name, item in self.fields.items() if item.counts is None}

    @cached_property
    def markers(self) -> frozenset[str]:
        return frozenset(element.name for element in self.layout if isinstance(element, Marker))

    @cached_property
    def fences(self) -> frozenset[str]:
        return frozenset(element.app for element in self.layout if isinstance(element, Fence))

    @cached_property
    def slots(self) -> dict[int, tuple[Slot, ...]]:
        index: dict[int, list[Slot]] = {}
        for item, fence in self.iter_fields():
            for axis, code in enumerate(item.codes):
                index.setdefault(code, []).append(Slot(item, axis if item.is_point else 0, fence))
        return {code: tuple(slots) for code, slots in index.items()}

    def defaults(self) -> dict[str, Any]:
        return {name: item.new_default() for name, item in self.stored_fields.items()}

    def new(self, **attrs: Any) -> Entity:
        entity = Entity(dxftype=self.dxftype, dxf=self.defaults())
        for name, value in attrs.items():
            if name not in self.stored_fields:
                raise KeyError(f"{self.dxftype} has no field {name!r}")
            entity.set(name, self.stored_fields[name].coerce(value))
        return entity
