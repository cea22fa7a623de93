from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .codec import encode_tags
from .constants import BYLAYER, COLOR_BYLAYER, DEFAULT_EXTRUSION, DEFAULT_LAYER
from .document import Document, WriteFailure, count_by_type, failure_summary, read
from .entity import Entity, as_point
from .errors import EncodeError
from .revision import LATEST, Revision

logger = logging.getLogger(__name__)

EXPORTED_TYPES = ("LINE", "3DLINE", "POINT", "CIRCLE", "ARC", "SOLID")


@dataclass(frozen=True)
class ConvertResult:
    source_path: str
    output_path: str
    total_entities: int
    written_entities: int
    failures: tuple[WriteFailure, ...] = ()

    @property
    def skipped_entities(self) -> int:
        return len(self.failures)

    @property
    def skipped_by_type(self) -> dict[str, int]:
        return count_by_type(self.failures)


def to_dxf(
    source: str | Document | Iterable[Entity],
    output_path: str,
    *,
    types: str | Iterable[str] | None = None,
    dxf_version: str = "R2010",
    strict: bool = False,
) -> ConvertResult:
    """Export entities into a complete drawing built by ezdxf.

    Every entity first passes the same checks as ``encode`` for the target
    release; the ones that fail, or that ezdxf refuses, are reported in
    ``ConvertResult.failures`` by type, handle and check name.
    """
    ezdxf = _require_ezdxf()
    source_path, entities = _resolve_entities(source, types)
    revision = _check_revision(dxf_version)

    dxf_doc = ezdxf.new(dxfversion=dxf_version)
    modelspace = dxf_doc.modelspace()

    written = 0
    failures: list[WriteFailure] = []
    for entity in entities:
        failure = _export_entity(dxf_doc, modelspace, entity, revision)
        if failure is None:
            written += 1
        else:
            failures.append(failure)

    if strict and failures:
        raise ValueError(f"failed to convert {len(failures)} entities ({failure_summary(failures)})")

    out_path = Path(output_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    dxf_doc.saveas(str(out_path))

    return ConvertResult(
        source_path=source_path,
        output_path=str(out_path),
        total_entities=written + len(failures),
        written_entities=written,
        failures=tuple(failures),
    )


def _require_ezdxf():
    try:
        import ezdxf
    except ImportError as exc:
        raise ImportError(
            "ezdxf is required for DXF export. "
            'Install it with `pip install "dxfcodec[dxf]"`.'
        ) from exc
    return ezdxf


def _check_revision(dxf_version: str) -> Revision:
    # ezdxf knows releases newer than the field tables; check those against the newest table.
    try:
        return min(Revision.parse(dxf_version), LATEST)
    except ValueError:
        return LATEST


def _resolve_entities(
    source: str | Document | Iterable[Entity],
    types: str | Iterable[str] | None,
) -> tuple[str, list[Entity]]:
    if isinstance(source, str):
        source = read(source)
    if isinstance(source, Document):
        return source.path, list(source.query(types))
    entities = list(source)
    if types is not None:
        entities = list(Document(path="<entities>", revision=None, entities=tuple(entities)).query(types))
    return "<entities>", entities


def _export_entity(dxf_doc: Any, modelspace: Any, entity: Entity, revision: Revision) -> WriteFailure | None:
    from ezdxf.lldxf.const import DXFError

    handle = entity.dxf.get("handle")
    if entity.dxftype not in EXPORTED_TYPES:
        return WriteFailure(entity.dxftype, handle, "unsupported-type")
    try:
        encode_tags(entity, revision=revision)
        _add_to_modelspace(dxf_doc, modelspace, entity)
    except EncodeError as exc:
        logger.debug("not exported: %s", exc)
        return WriteFailure(exc.dxftype, exc.handle, exc.check)
    except (DXFError, KeyError, TypeError, ValueError) as exc:
        logger.debug("%s %s not exported: %s", entity.dxftype, handle, exc)
        return WriteFailure(entity.dxftype, handle, "export")
    return None


def _add_to_modelspace(dxf_doc: Any, modelspace: Any, entity: Entity) -> None:
    dxftype = entity.dxftype
    dxf = entity.dxf
    dxfattribs = _entity_dxfattribs(dxf_doc, dxf)

    if dxftype in {"LINE", "3DLINE"}:
        modelspace.add_line(as_point(dxf["start"]), as_point(dxf["end"]), dxfattribs=dxfattribs)
    elif dxftype == "POINT":
        if dxf.get("angle"):
            dxfattribs["angle"] = float(dxf["angle"])
        modelspace.add_point(as_point(dxf["location"]), dxfattribs=dxfattribs)
    elif dxftype == "CIRCLE":
        modelspace.add_circle(as_point(dxf["center"]), float(dxf["radius"]), dxfattribs=dxfattribs)
    elif dxftype == "ARC":
        modelspace.add_arc(
            as_point(dxf["center"]),
            float(dxf["radius"]),
            float(dxf["start_angle"]),
            float(dxf["end_angle"]),
            dxfattribs=dxfattribs,
        )
    elif dxftype == "SOLID":
        corners = [as_point(dxf[name]) for name in ("p0", "p1", "p2", "p3")]
        modelspace.add_solid(corners, dxfattribs=dxfattribs)


def _entity_dxfattribs(dxf_doc: Any, dxf: dict[str, Any]) -> dict[str, Any]:
    attribs: dict[str, Any] = {}
    layer = str(dxf.get("layer") or DEFAULT_LAYER)
    if layer not in dxf_doc.layers:
        dxf_doc.layers.add(layer)
    attribs["layer"] = layer

    linetype = str(dxf.get("linetype") or BYLAYER)
    if linetype != BYLAYER and linetype in dxf_doc.linetypes:
        attribs["linetype"] = linetype

    color = _to_valid_aci(dxf.get("color"))
    if color is not None:
        attribs["color"] = color
    true_color = dxf.get("color_value")
    if true_color:
        attribs["true_color"] = int(true_color) & 0xFFFFFF

    if dxf.get("thickness"):
        attribs["thickness"] = float(dxf["thickness"])
    extrusion = dxf.get("extrusion")
    if extrusion is not None and as_point(extrusion) != DEFAULT_EXTRUSION:
        attribs["extrusion"] = as_point(extrusion)
    if dxf.get("linetype_scale", 1.0) != 1.0:
        attribs["ltscale"] = float(dxf["linetype_scale"])
    if dxf.get("visibility"):
        attribs["invisible"] = 1
    return attribs


def _to_valid_aci(value: Any) -> int | None:
    if value is None:
        return None
    aci = int(value)
    if aci == COLOR_BYLAYER:
        return None
    if 0 <= aci <= 255:
        return aci
    return None
