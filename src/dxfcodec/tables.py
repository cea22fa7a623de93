from __future__ import annotations

from typing import Any

from .constants import (
    BYLAYER,
    COLOR_BYLAYER,
    COLOR_WHITE,
    CONTINUOUS,
    DEFAULT_EXTRUSION,
    DEFAULT_LAYER,
    DEFAULT_LINETYPE_SCALE,
    IDENTITY_4X3,
    LINEWEIGHT_BYLAYER,
    MAX_PROPRIETARY_LINE_LENGTH,
    MODELER_FORMAT_CURRENT_VERSION,
    MODELSPACE,
    ORIGIN,
    VISIBLE,
)
from .entity import Entity
from .fields import (
    Check,
    Element,
    EntityTable,
    Fence,
    Field,
    FieldType,
    Marker,
    between,
    non_negative,
    omit_default,
    omit_empty,
    one_of,
)
from .revision import Revision

R = Revision
F = FieldType


def _handle() -> Field:
    return Field("handle", 5, F.HANDLE, 0)


def _owner_fences() -> tuple[Element, ...]:
    return (
        Fence("ACAD_REACTORS", (Field("dictionary_owner_soft", 330, F.STRING, "", omit=omit_empty),)),
        Fence("ACAD_XDICTIONARY", (Field("dictionary_owner_hard", 360, F.STRING, "", omit=omit_empty),)),
    )


COMMON_ENTITY: tuple[Element, ...] = (
    _handle(),
    *_owner_fences(),
    Marker("AcDbEntity"),
    Field("paperspace", 67, F.FLAG, MODELSPACE, min_revision=R.R13, omit=omit_default),
    Field("layer", 8, F.STRING, DEFAULT_LAYER, fallback=DEFAULT_LAYER),
    Field("linetype", 6, F.STRING, BYLAYER, omit=omit_default, fallback=BYLAYER),
    Field("elevation", 38, F.DOUBLE, 0.0, max_revision=R.R11, omit=omit_default),
    Field("material", 347, F.STRING, "", min_revision=R.R2008, omit=omit_empty),
    Field("color", 62, F.INT16, COLOR_BYLAYER, valid=between(-257, 257), omit=omit_default),
    Field("lineweight", 370, F.INT16, LINEWEIGHT_BYLAYER, min_revision=R.R2002, valid=between(-3, 211)),
    Field(
        "linetype_scale",
        48,
        F.DOUBLE,
        DEFAULT_LINETYPE_SCALE,
        min_revision=R.R13,
        valid=non_negative,
        omit=omit_default,
    ),
    Field("visibility", 60, F.INT16, VISIBLE, min_revision=R.R13, valid=one_of(0, 1), omit=omit_default),
    Field(
        "graphics_data_size",
        92,
        F.INT32,
        0,
        min_revision=R.R2000,
        aliases=(160,),
        valid=non_negative,
        omit=omit_default,
    ),
    Field("binary_graphics_data", 310, F.CHAIN, item=F.STRING, min_revision=R.R2000),
    Field("color_value", 420, F.INT32, 0, min_revision=R.R2004, valid=between(0, 0xFFFFFF), omit=omit_default),
    Field("color_name", 430, F.STRING, "", min_revision=R.R2004, omit=omit_empty),
    Field("transparency", 440, F.INT32, 0, min_revision=R.R2004, omit=omit_default),
    Field("plot_style_name", 390, F.STRING, "", min_revision=R.R2009, omit=omit_empty),
    Field("shadow_mode", 284, F.INT16, 0, min_revision=R.R2009, valid=between(0, 3), omit=omit_default),
)

COMMON_TABLE_RECORD: tuple[Element, ...] = (
    _handle(),
    *_owner_fences(),
    Marker("AcDbSymbolTableRecord"),
)

COMMON_OBJECT: tuple[Element, ...] = (
    _handle(),
    *_owner_fences(),
)


def _thickness() -> Field:
    return Field("thickness", 39, F.DOUBLE, 0.0, valid=non_negative, omit=omit_default)


def _extrusion() -> Field:
    return Field("extrusion", 210, F.POINT, DEFAULT_EXTRUSION, min_revision=R.R12, omit=omit_default)


def _distinct(*names: str):
    return lambda entity: len({entity.dxf[name] for name in names}) == len(names)


def _positive(name: str):
    return lambda entity: entity.dxf[name] > 0


def _non_empty(name: str):
    return lambda entity: isinstance(entity.dxf[name], str) and bool(entity.dxf[name].strip())


def _angles_in_range(entity: Entity) -> bool:
    return all(0.0 <= entity.dxf[name] <= 360.0 for name in ("start_angle", "end_angle"))


def _short_lines(entity: Entity) -> bool:
    return all(len(text) <= MAX_PROPRIETARY_LINE_LENGTH for _, text in entity.dxf["proprietary_data"])


def _chain_length(name: str, minimum: int, maximum: int | None = None):
    def check(entity: Entity) -> bool:
        count = len(entity.dxf[name])
        return count >= minimum and (maximum is None or count <= maximum)

    return check


RADIUS_CHECK = Check("radius", _positive("radius"), "radius must be greater than zero")


def _line(dxftype: str, renamed: tuple[tuple[Revision, str], ...] = ()) -> EntityTable:
    return EntityTable(
        dxftype,
        (
            *COMMON_ENTITY,
            Marker("AcDbLine"),
            _thickness(),
            Field("start", 10, F.POINT, ORIGIN),
            Field("end", 11, F.POINT, ORIGIN),
            _extrusion(),
        ),
        checks=(Check("degenerate-geometry", _distinct("start", "end"), "start point and end point are identical"),),
        renamed=renamed,
    )


LINE = _line("LINE")
LINE3D = _line("3DLINE", renamed=((R.R12, "LINE"),))

POINT = EntityTable(
    "POINT",
    (
        *COMMON_ENTITY,
        Marker("AcDbPoint"),
        Field("location", 10, F.POINT, ORIGIN),
        _thickness(),
        _extrusion(),
        Field("angle", 50, F.DOUBLE, 0.0, min_revision=R.R13, omit=omit_default),
    ),
)

_CIRCLE_FIELDS: tuple[Element, ...] = (
    *COMMON_ENTITY,
    Marker("AcDbCircle"),
    _thickness(),
    Field("center", 10, F.POINT, ORIGIN),
    Field("radius", 40, F.DOUBLE, 0.0),
    _extrusion(),
)

CIRCLE = EntityTable("CIRCLE", _CIRCLE_FIELDS, checks=(RADIUS_CHECK,))

ARC = EntityTable(
    "ARC",
    (
        *_CIRCLE_FIELDS,
        Marker("AcDbArc"),
        Field("start_angle", 50, F.DOUBLE, 0.0),
        Field("end_angle", 51, F.DOUBLE, 0.0),
    ),
    checks=(
        RADIUS_CHECK,
        Check("angle-range", _angles_in_range, "start and end angle must lie within [0, 360]"),
        Check("identical-angles", _distinct("start_angle", "end_angle"), "start angle and end angle are identical"),
    ),
)

SOLID = EntityTable(
    "SOLID",
    (
        *COMMON_ENTITY,
        Marker("AcDbTrace"),
        Field("p0", 10, F.POINT, ORIGIN),
        Field("p1", 11, F.POINT, ORIGIN),
        Field("p2", 12, F.POINT, ORIGIN),
        Field("p3", 13, F.POINT, ORIGIN),
        _thickness(),
        _extrusion(),
    ),
)


def _modeler_fields() -> tuple[Element, ...]:
    return (
        Marker("AcDbModelerGeometry"),
        Field(
            "modeler_format_version",
            70,
            F.INT16,
            MODELER_FORMAT_CURRENT_VERSION,
            min_revision=R.R13,
            valid=between(0, 1),
        ),
        # Codes 1 and 3 interleave; each line keeps the code it came with.
        Field("proprietary_data", 1, F.CHAIN, item=F.TAG, aliases=(3,)),
    )


LINE_LENGTH_CHECK = Check(
    "line-length",
    _short_lines,
    f"proprietary data lines must not exceed {MAX_PROPRIETARY_LINE_LENGTH} characters",
)

SOLID3D = EntityTable(
    "3DSOLID",
    (
        *COMMON_ENTITY,
        *_modeler_fields(),
        Marker("AcDb3dSolid", min_revision=R.R2008),
        Field("history", 350, F.STRING, "", min_revision=R.R2008, omit=omit_empty),
    ),
    checks=(LINE_LENGTH_CHECK,),
)

REGION = EntityTable(
    "REGION",
    (*COMMON_ENTITY, *_modeler_fields()),
    checks=(LINE_LENGTH_CHECK,),
)

ENDBLK = EntityTable(
    "ENDBLK",
    (
        Field("handle", 5, F.HANDLE, 0, min_revision=R.R13),
        Field("dictionary_owner_soft", 330, F.STRING, "", min_revision=R.R13, omit=omit_empty),
        Marker("AcDbEntity"),
        Field("layer", 8, F.STRING, DEFAULT_LAYER, min_revision=R.R13, fallback=DEFAULT_LAYER),
        Marker("AcDbBlockEnd"),
    ),
)

# APPID and LAYER share the 70 standard flag bits.
XREF_DEPENDENT = 16
XREF_RESOLVED = 32
REFERENCED = 64
NO_SAVE_XDATA = 1

APPID = EntityTable(
    "APPID",
    (
        *COMMON_TABLE_RECORD,
        Marker("AcDbRegAppTableRecord"),
        Field("application_name", 2, F.STRING, ""),
        Field("flag", 70, F.INT16, 0),
    ),
    checks=(Check("name", _non_empty("application_name"), "application name is empty"),),
)

LAYER = EntityTable(
    "LAYER",
    (
        *COMMON_TABLE_RECORD,
        Marker("AcDbLayerTableRecord"),
        Field("name", 2, F.STRING, ""),
        Field("flag", 70, F.INT16, 0),
        Field("color", 62, F.INT16, COLOR_WHITE, valid=between(-255, 255)),
        Field("linetype", 6, F.STRING, CONTINUOUS, fallback=CONTINUOUS),
        Field("plotting_flag", 290, F.FLAG, 1, min_revision=R.R2000, omit=omit_default),
        Field("lineweight", 370, F.INT16, LINEWEIGHT_BYLAYER, min_revision=R.R2000, valid=between(-3, 211)),
        Field("plot_style_name", 390, F.STRING, "", min_revision=R.R2000, omit=omit_empty),
        Field("material", 347, F.STRING, "", min_revision=R.R2008, omit=omit_empty),
    ),
    checks=(Check("name", _non_empty("name"), "layer name is empty"),),
)

SPATIAL_INDEX = EntityTable(
    "SPATIAL_INDEX",
    (
        *COMMON_OBJECT,
        Marker("AcDbIndex"),
        Field("timestamp", 40, F.DOUBLE, 0.0),
        Marker("AcDbSpatialIndex"),
    ),
    min_revision=R.R13,
)


def _flag_set(name: str):
    return lambda dxf: dxf.get(name) == 1


SPATIAL_FILTER = EntityTable(
    "SPATIAL_FILTER",
    (
        *COMMON_OBJECT,
        Marker("AcDbFilter"),
        Marker("AcDbSpatialFilter"),
        Field("number_of_points", 70, F.INT16, counts="boundary"),
        Field("boundary", 10, F.CHAIN, item=F.POINT, dims=2),
        Field("extrusion", 210, F.POINT, DEFAULT_EXTRUSION),
        Field("origin", 11, F.POINT, ORIGIN),
        Field("clip_boundary_display", 71, F.FLAG, 1),
        Field("front_clipping", 72, F.FLAG, 0),
        Field("front_clipping_distance", 40, F.DOUBLE, 0.0, present_if=_flag_set("front_clipping")),
        Field("back_clipping", 73, F.FLAG, 0),
        Field("back_clipping_distance", 41, F.DOUBLE, 0.0, present_if=_flag_set("back_clipping")),
        Field("inverse_block_transformation", 40, F.CHAIN, IDENTITY_4X3, item=F.DOUBLE, limit=12),
        Field("block_transformation", 40, F.CHAIN, IDENTITY_4X3, item=F.DOUBLE, limit=12),
    ),
    checks=(
        Check("boundary", _chain_length("boundary", 2), "clip boundary needs at least two points"),
        Check(
            "transformation",
            lambda entity: all(
                len(entity.dxf[name]) == 12 for name in ("inverse_block_transformation", "block_transformation")
            ),
            "transformation matrices need exactly 12 values",
        ),
    ),
    min_revision=R.R14,
)

IMAGEDEF = EntityTable(
    "IMAGEDEF",
    (
        _handle(),
        Fence(
            "ACAD_REACTORS",
            (
                Field("dictionary_owner_soft", 330, F.STRING, "", omit=omit_empty),
                Field("imagedef_reactor_soft", 330, F.CHAIN, item=F.STRING),
            ),
        ),
        Fence("ACAD_XDICTIONARY", (Field("dictionary_owner_hard", 360, F.STRING, "", omit=omit_empty),)),
        Field("acad_image_dict_soft", 330, F.STRING, "", omit=omit_empty),
        Marker("AcDbRasterImageDef"),
        Field("class_version", 90, F.INT32, 0),
        Field("file_name", 1, F.STRING, ""),
        Field("image_size", 10, F.POINT, ORIGIN, dims=2),
        Field("pixel_size", 11, F.POINT, (1.0, 1.0, 0.0), dims=2),
        Field("image_is_loaded", 280, F.FLAG, 0),
        Field("resolution_units", 281, F.INT16, 0, valid=one_of(0, 2, 5)),
    ),
    checks=(Check("file-name", _non_empty("file_name"), "image file name is empty"),),
    min_revision=R.R14,
)

TABLES: dict[str, EntityTable] = {
    table.dxftype: table
    for table in (
        LINE,
        LINE3D,
        POINT,
        CIRCLE,
        ARC,
        SOLID,
        SOLID3D,
        REGION,
        ENDBLK,
        APPID,
        LAYER,
        SPATIAL_INDEX,
        SPATIAL_FILTER,
        IMAGEDEF,
    )
}


def table_for(dxftype: str) -> EntityTable:
    try:
        return TABLES[dxftype.strip().upper()]
    except KeyError:
        raise KeyError(f"no field table for entity type {dxftype!r}") from None


def new(dxftype: str, **attrs: Any) -> Entity:
    return table_for(dxftype).new(**attrs)


def has_flag(entity: Entity, bit: int) -> bool:
    return bool(entity.dxf["flag"] & bit)


def set_flag(entity: Entity, bit: int, on: bool = True) -> None:
    flag = entity.dxf["flag"]
    entity.dxf["flag"] = flag | bit if on else flag & ~bit
