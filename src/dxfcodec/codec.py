from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator

from . import stream
from .chain import Chain
from .constants import APP_GROUP_CODE, COMMENT_CODE, ENTITY_TERMINATOR, SUBCLASS_MARKER_CODE
from .entity import Entity, as_point
from .errors import DecodeError, DxfStreamError, EncodeError
from .fields import EntityTable, Fence, Field, FieldType, Marker, Slot, format_value, parse_value
from .revision import LATEST, Revision
from .stream import Tag, TagReader, TagWriter
from .tables import table_for

logger = logging.getLogger(__name__)

UNKNOWN_CODE = "unknown-code"
INVALID_VALUE = "invalid-value"
SUBCLASS_MARKER = "subclass-marker"
COUNT_MISMATCH = "count-mismatch"
COMMENT = "comment"


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    dxftype: str
    code: int
    value: str
    source: str
    line_number: int
    message: str


class _Decoder:
    def __init__(
        self,
        reader: TagReader,
        table: EntityTable,
        revision: Revision | None,
        diagnostics: list[Diagnostic] | None,
    ) -> None:
        self.reader = reader
        self.table = table
        self.revision = revision
        self.diagnostics = diagnostics
        self.entity = table.new()
        self.fence: str | None = None
        self._hits: dict[tuple[str, int], int] = {}
        self._started: set[str] = set()
        self._counted: dict[str, tuple[int, Tag, int]] = {}

    def run(self) -> Entity:
        tag = self.reader.read()
        if tag.code == ENTITY_TERMINATOR:
            name = tag.value.strip()
            accepted = {self.table.dxftype, *(renamed for _, renamed in self.table.renamed)}
            if name not in accepted:
                raise DecodeError(
                    f"expected a {self.table.dxftype} entity, found {name!r}",
                    source=self.reader.name,
                    line_number=self.reader.line_number,
                    entity=self.entity,
                )
            tag = self.reader.read()
        while tag.code != ENTITY_TERMINATOR:
            self._apply(tag)
            tag = self.reader.read()
        self.reader.unread(tag)
        self._finish()
        return self.entity

    def _apply(self, tag: Tag) -> None:
        code, raw = tag
        if code == COMMENT_CODE:
            self._note(COMMENT, tag, f"comment: {raw.strip()}", level=logging.INFO)
            return
        if code == APP_GROUP_CODE and self.table.fences:
            self._switch_fence(raw.strip())
            return
        if code == SUBCLASS_MARKER_CODE and self.table.markers and self._markers_expected():
            marker = raw.strip()
            if marker not in self.table.markers:
                self._note(SUBCLASS_MARKER, tag, f"unexpected subclass marker {marker!r}")
            return

        slot = self._route(code)
        if slot is None:
            self._note(UNKNOWN_CODE, tag, f"unknown group code {code}")
            return
        self._store(slot, tag)

    def _markers_expected(self) -> bool:
        return self.revision is None or self.revision >= Revision.R13

    def _switch_fence(self, value: str) -> None:
        if value.startswith("{"):
            self.fence = value[1:]
        elif value == "}":
            self.fence = None

    def _route(self, code: int) -> Slot | None:
        candidates = [slot for slot in self.table.slots.get(code, ()) if slot.field.applies(self.revision)]
        if not candidates:
            return None
        scoped = [slot for slot in candidates if slot.fence == self.fence]
        if scoped:
            candidates = scoped
        eligible = [
            slot
            for slot in candidates
            if slot.field.present_if is None or slot.field.present_if(self.entity.dxf)
        ]
        if eligible:
            candidates = eligible
        for slot in candidates:
            if not self._is_full(slot):
                return slot
        return candidates[-1]

    def _is_full(self, slot: Slot) -> bool:
        hits = self._hits.get((slot.field.name, slot.axis), 0)
        if slot.field.type is FieldType.CHAIN:
            return slot.field.limit is not None and hits >= slot.field.limit
        return hits >= 1

    def _hit(self, slot: Slot) -> None:
        key = (slot.field.name, slot.axis)
        self._hits[key] = self._hits.get(key, 0) + 1

    def _store(self, slot: Slot, tag: Tag) -> None:
        field = slot.field
        try:
            if field.value_type is FieldType.TAG:
                value: Any = Tag(tag.code, stream.as_str(tag.value))
            else:
                value = parse_value(field.value_type, tag.value)
        except ValueError as exc:
            self._hit(slot)
            self._note(INVALID_VALUE, tag, f"{field.name}: {exc}")
            return
        if field.valid is not None and not field.is_point and not field.valid(value):
            self._hit(slot)
            self._note(INVALID_VALUE, tag, f"{field.name}: value {value!r} out of range")
            return

        if field.counts is not None:
            self._counted[field.name] = (value, tag, self.reader.line_number)
        elif field.type is FieldType.CHAIN:
            self._store_item(slot, value)
        elif field.is_point:
            point = list(self.entity.dxf[field.name])
            point[slot.axis] = value
            self.entity.dxf[field.name] = tuple(point)
        else:
            self.entity.dxf[field.name] = value
        self._hit(slot)

    def _store_item(self, slot: Slot, value: Any) -> None:
        field = slot.field
        if field.name not in self._started:
            # First occurrence replaces the default content.
            self._started.add(field.name)
            self.entity.dxf[field.name] = Chain()
        chain = self.entity.dxf[field.name]
        if not field.is_point:
            chain.append(value)
            return
        if slot.axis == 0 or not chain:
            point = [0.0, 0.0, 0.0]
            point[slot.axis] = value
            chain.append(tuple(point))
            return
        point = list(chain[-1])
        point[slot.axis] = value
        chain[-1] = tuple(point)

    def _finish(self) -> None:
        for name, (value, tag, line_number) in self._counted.items():
            target = self.table.fields[name].counts
            actual = len(self.entity.dxf[target])
            if value != actual:
                self._note(
                    COUNT_MISMATCH,
                    tag,
                    f"{name} says {value} but {actual} {target} values were read",
                    line_number=line_number,
                )
        for name, field in self.table.stored_fields.items():
            if field.fallback is not None and not self.entity.dxf[name]:
                self.entity.dxf[name] = field.fallback

    def _note(
        self,
        kind: str,
        tag: Tag,
        message: str,
        *,
        level: int = logging.WARNING,
        line_number: int | None = None,
    ) -> None:
        if line_number is None:
            line_number = self.reader.line_number
        diagnostic = Diagnostic(
            kind=kind,
            dxftype=self.table.dxftype,
            code=tag.code,
            value=tag.value,
            source=self.reader.name,
            line_number=line_number,
            message=message,
        )
        if self.diagnostics is not None:
            self.diagnostics.append(diagnostic)
        logger.log(level, "%s: %s (%s, line %d)", self.table.dxftype, message, self.reader.name, line_number)


def resolve_table(table: EntityTable | str) -> EntityTable:
    if isinstance(table, EntityTable):
        return table
    return table_for(table)


def decode(
    reader: TagReader | None,
    table: EntityTable | str,
    revision: Revision | str | int | None = None,
    *,
    diagnostics: list[Diagnostic] | None = None,
) -> Entity:
    """Decode one entity record, stopping before the next code-0 tag.

    The leading ``0 <NAME>`` tag is optional. Unknown codes and bad values
    only add diagnostics; a broken stream raises ``DecodeError`` carrying
    the partially decoded entity.
    """
    table = resolve_table(table)
    if reader is None:
        raise DecodeError(f"no input stream for {table.dxftype}", entity=None)
    if revision is None:
        revision = reader.revision
    else:
        revision = Revision.parse(revision)

    decoder = _Decoder(reader, table, revision, diagnostics)
    try:
        return decoder.run()
    except DecodeError:
        raise
    except DxfStreamError as exc:
        raise DecodeError(
            f"{table.dxftype}: {exc.reason}",
            source=exc.source,
            line_number=exc.line_number,
            entity=decoder.entity,
        ) from exc


def _check(entity: Entity, table: EntityTable, revision: Revision) -> None:
    handle = entity.dxf.get("handle")
    if entity.dxftype != table.dxftype:
        raise EncodeError(
            f"table is for {table.dxftype}",
            check="entity-type",
            dxftype=entity.dxftype,
            handle=handle,
        )
    if table.min_revision is not None and revision < table.min_revision:
        raise EncodeError(
            f"not available before {table.min_revision.name}, target is {revision.name}",
            check="unsupported-revision",
            dxftype=entity.dxftype,
            handle=handle,
        )
    for check in table.checks:
        try:
            ok = check.predicate(entity)
        except (AttributeError, KeyError, TypeError, ValueError):
            ok = False
        if not ok:
            raise EncodeError(check.message, check=check.name, dxftype=entity.dxftype, handle=handle)


def _value_tags(field: Field, value: Any) -> Iterator[Tag]:
    value_type = field.value_type
    if value_type is FieldType.POINT:
        point = as_point(value)
        for axis in range(field.dims):
            yield Tag(field.code + 10 * axis, stream.format_float(point[axis]))
    elif value_type is FieldType.TAG:
        code, text = value
        if code not in field.codes:
            raise ValueError(f"{field.name}: group code {code} is not allowed")
        yield Tag(code, stream.format_str(text))
    else:
        yield Tag(field.code, format_value(value_type, value))


def _validate(field: Field, value: Any) -> None:
    # Same rule as decode: a value the reader would refuse is never written.
    if field.valid is None or field.is_point:
        return
    items = value if field.type is FieldType.CHAIN else (value,)
    for item in items:
        if not field.valid(item):
            raise ValueError(f"{field.name}: value {item!r} out of range")


def _field_tags(entity: Entity, field: Field, revision: Revision) -> Iterator[Tag]:
    if not field.applies(revision):
        return
    if field.present_if is not None and not field.present_if(entity.dxf):
        return
    if field.counts is not None:
        value: Any = len(entity.dxf.get(field.counts, ()))
    else:
        value = entity.dxf.get(field.name, field.new_default())
        if field.fallback is not None and not value:
            logger.warning(
                "%s %x: empty %s written as %r",
                entity.dxftype,
                entity.handle,
                field.name,
                field.fallback,
            )
            value = field.fallback
        _validate(field, value)
    if field.omit is not None and field.omit(value, field.default):
        return
    if field.type is FieldType.CHAIN:
        for item in value:
            yield from _value_tags(field, item)
    else:
        yield from _value_tags(field, value)


def _iter_tags(entity: Entity, table: EntityTable, revision: Revision) -> Iterator[Tag]:
    yield Tag(ENTITY_TERMINATOR, table.name_for(revision))
    for element in table.layout:
        if isinstance(element, Marker):
            if element.applies(revision):
                yield Tag(SUBCLASS_MARKER_CODE, element.name)
        elif isinstance(element, Fence):
            if not element.applies(revision):
                continue
            inner = [tag for field in element.fields for tag in _field_tags(entity, field, revision)]
            if inner:
                yield Tag(APP_GROUP_CODE, "{" + element.app)
                yield from inner
                yield Tag(APP_GROUP_CODE, "}")
        else:
            yield from _field_tags(entity, element, revision)


def encode_tags(
    entity: Entity,
    table: EntityTable | str | None = None,
    revision: Revision | str | int = LATEST,
) -> list[Tag]:
    table = resolve_table(entity.dxftype if table is None else table)
    revision = Revision.parse(revision)
    _check(entity, table, revision)
    try:
        return list(_iter_tags(entity, table, revision))
    except (TypeError, ValueError) as exc:
        raise EncodeError(
            str(exc),
            check="invalid-value",
            dxftype=entity.dxftype,
            handle=entity.dxf.get("handle"),
        ) from exc


def encode(
    entity: Entity,
    table: EntityTable | str | None = None,
    revision: Revision | str | int = LATEST,
) -> str:
    """Render one entity as group-code text for ``revision``.

    Nothing is produced when a precondition fails; ``EncodeError`` names the
    failed check.
    """
    return "".join(stream.format_tag(code, value) for code, value in encode_tags(entity, table, revision))


def write(
    writer: TagWriter | None,
    entity: Entity,
    table: EntityTable | str | None = None,
    revision: Revision | str | int | None = None,
) -> int:
    if writer is None:
        raise DxfStreamError(f"no output stream for {entity.dxftype}")
    if revision is None:
        revision = writer.revision
    text = encode(entity, table, revision)
    return writer.write_text(text)
