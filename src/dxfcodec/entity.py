from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .chain import Chain

Point3D = tuple[float, float, float]


def as_point(value: Any) -> Point3D:
    coords = tuple(float(coord) for coord in value)
    if len(coords) == 2:
        return (coords[0], coords[1], 0.0)
    if len(coords) != 3:
        raise ValueError(f"invalid point value: {value!r}")
    return (coords[0], coords[1], coords[2])


def _owned(value: Any) -> Any:
    if isinstance(value, Chain):
        return value.copy()
    if isinstance(value, list):
        return Chain(value)
    return value


@dataclass
class Entity:
    dxftype: str
    dxf: dict[str, Any] = field(default_factory=dict)

    @property
    def handle(self) -> int:
        return int(self.dxf.get("handle", 0))

    def set(self, name: str, value: Any) -> None:
        self.dxf[name] = _owned(value)

    def copy(self) -> "Entity":
        return Entity(self.dxftype, {name: _owned(value) for name, value in self.dxf.items()})

    def to_points(self) -> list[Point3D]:
        if self.dxftype in {"LINE", "3DLINE"}:
            return [self.dxf["start"], self.dxf["end"]]
        if self.dxftype == "POINT":
            return [self.dxf["location"]]
        if self.dxftype in {"CIRCLE", "ARC"}:
            return [self.dxf["center"]]
        if self.dxftype == "SOLID":
            return [self.dxf["p0"], self.dxf["p1"], self.dxf["p2"], self.dxf["p3"]]
        if self.dxftype == "SPATIAL_FILTER":
            return list(self.dxf.get("boundary", []))
        raise NotImplementedError(f"to_points is not supported for {self.dxftype}")
