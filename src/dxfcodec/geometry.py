from __future__ import annotations

import math
from enum import IntEnum
from typing import Any

from .entity import Entity, Point3D, as_point
from .errors import GeometryError
from .tables import table_for


class Inherit(IntEnum):
    NONE = 0
    FIRST = 1
    SECOND = 2


# Copied from the source entity when a derived entity inherits.
INHERITED_ATTRIBUTES = (
    "linetype",
    "layer",
    "thickness",
    "linetype_scale",
    "visibility",
    "color",
    "paperspace",
    "dictionary_owner_soft",
    "dictionary_owner_hard",
)

_TWO_POINT_TYPES = {"LINE", "3DLINE"}


def _endpoints(entity: Entity) -> tuple[Point3D, Point3D]:
    if entity.dxftype not in _TWO_POINT_TYPES:
        raise GeometryError(f"{entity.dxftype} has no start and end point")
    return entity.dxf["start"], entity.dxf["end"]


def _distinct_endpoints(entity: Entity) -> tuple[Point3D, Point3D]:
    start, end = _endpoints(entity)
    if start == end:
        raise GeometryError(
            f"{entity.dxftype} {entity.handle:x}: degenerate geometry, start and end point are identical"
        )
    return start, end


def midpoint(entity: Entity) -> Point3D:
    start, end = _distinct_endpoints(entity)
    return (
        (start[0] + end[0]) / 2.0,
        (start[1] + end[1]) / 2.0,
        (start[2] + end[2]) / 2.0,
    )


def length(entity: Entity) -> float:
    start, end = _distinct_endpoints(entity)
    return math.dist(start, end)


def _inherit(target: Entity, source: Entity) -> None:
    for name in INHERITED_ATTRIBUTES:
        if name in source.dxf and name in target.dxf:
            target.set(name, source.dxf[name])


def point_at_midpoint(line: Entity, handle: int = 0, inherit: Inherit | int = Inherit.NONE) -> Entity:
    inherit = Inherit(inherit)
    point = table_for("POINT").new(handle=handle, location=midpoint(line))
    if inherit is not Inherit.NONE:
        _inherit(point, line)
    return point


def _location(value: Any) -> tuple[Point3D, Entity | None]:
    if isinstance(value, Entity):
        if value.dxftype != "POINT":
            raise GeometryError(f"expected a POINT entity, got {value.dxftype}")
        return value.dxf["location"], value
    return as_point(value), None


def line_from_points(
    first: Entity | tuple[float, ...],
    second: Entity | tuple[float, ...],
    handle: int = 0,
    inherit: Inherit | int = Inherit.NONE,
    dxftype: str = "LINE",
) -> Entity:
    """Build a two-point line between two POINT entities or coordinates.

    ``inherit`` picks which POINT donates layer, linetype, color and the
    other shared attributes. Coincident points raise ``GeometryError``.
    """
    inherit = Inherit(inherit)
    if dxftype not in _TWO_POINT_TYPES:
        raise ValueError(f"unsupported line type: {dxftype!r}")
    start, first_entity = _location(first)
    end, second_entity = _location(second)
    if start == end:
        raise GeometryError("degenerate geometry: start and end point are identical")

    line = table_for(dxftype).new(handle=handle, start=start, end=end)
    donor = {Inherit.FIRST: first_entity, Inherit.SECOND: second_entity}.get(inherit)
    if inherit is not Inherit.NONE:
        if donor is None:
            raise ValueError(f"cannot inherit from point {int(inherit)}: it is not an entity")
        _inherit(line, donor)
    return line
