from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass, field
from typing import IO, Iterable, Iterator, NamedTuple

from .chain import Chain
from .codec import Diagnostic, decode, encode
from .entity import Entity
from .errors import EncodeError
from .revision import ACAD_VERSIONS, LATEST, Revision
from .stream import Tag, TagReader, TagWriter
from .tables import TABLES

logger = logging.getLogger(__name__)

DECODED_SECTIONS = {"TABLES", "BLOCKS", "ENTITIES", "OBJECTS"}
# Structure records of a DXF file; never counted as skipped.
_STRUCTURE = {"SECTION", "ENDSEC", "EOF", "TABLE", "ENDTAB"}


def read(path: str, revision: Revision | str | int | None = None, *, encoding: str = "utf-8") -> "Document":
    with open(path, encoding=encoding, errors="replace") as stream:
        return read_stream(stream, name=path, revision=revision)


def read_stream(
    stream: IO[str] | Iterable[str],
    *,
    name: str = "<stream>",
    revision: Revision | str | int | None = None,
) -> "Document":
    forced = Revision.parse(revision) if revision is not None else None
    reader = TagReader(stream, name=name, revision=forced)
    entities: list[Entity] = []
    diagnostics: list[Diagnostic] = []
    skipped: dict[str, int] = {}
    section: str | None = None

    while True:
        tag = reader.read_or_none()
        if tag is None:
            break
        code, value = tag.code, tag.value.strip()
        if code == 0 and value == "EOF":
            break
        if code == 0 and value == "SECTION":
            name_tag = reader.read()
            section = name_tag.value.strip()
            continue
        if code == 0 and value == "ENDSEC":
            section = None
            continue
        if section == "HEADER":
            if code == 9 and value == "$ACADVER":
                detected = _detect_revision(reader.read(), reader)
                if forced is None:
                    reader.revision = detected
            continue
        if code != 0 or section not in DECODED_SECTIONS or value in _STRUCTURE:
            continue

        table = TABLES.get(value)
        if table is None:
            skipped[value] = skipped.get(value, 0) + 1
            continue
        reader.unread(tag)
        entities.append(decode(reader, table, diagnostics=diagnostics))

    if skipped:
        logger.info("%s: skipped unsupported records %s", name, skipped)
    return Document(
        path=name,
        revision=reader.revision,
        entities=tuple(entities),
        diagnostics=tuple(diagnostics),
        skipped=skipped,
    )


def _detect_revision(tag: Tag, reader: TagReader) -> Revision | None:
    acad_version = tag.value.strip().upper()
    detected = ACAD_VERSIONS.get(acad_version)
    if detected is None:
        logger.warning(
            "%s: unknown $ACADVER %r at line %d, decoding without revision gating",
            reader.name,
            acad_version,
            reader.line_number,
        )
    return detected


@dataclass(frozen=True)
class Document:
    path: str
    revision: Revision | None
    entities: tuple[Entity, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    skipped: dict[str, int] = field(default_factory=dict)

    def query(self, types: str | Iterable[str] | None = None) -> Iterator[Entity]:
        type_set = _normalize_types(types)
        for entity in self.entities:
            if type_set is None or entity.dxftype in type_set:
                yield entity

    def chain(self, dxftype: str) -> Chain[Entity]:
        return Chain(self.query(dxftype))

    def entity_types(self) -> list[str]:
        seen: dict[str, None] = {}
        for entity in self.entities:
            seen.setdefault(entity.dxftype, None)
        return list(seen)

    def export_dxf(self, output_path: str, **kwargs):
        from .convert import to_dxf

        return to_dxf(self, output_path, **kwargs)


def _normalize_types(types: str | Iterable[str] | None) -> set[str] | None:
    if types is None:
        return None
    if isinstance(types, str):
        tokens = re.split(r"[,\s]+", types.strip())
    else:
        tokens = list(types)

    normalized = [token.strip().upper() for token in tokens if token and token.strip()]
    if not normalized or any(token in {"*", "ALL"} for token in normalized):
        return None

    selected: set[str] = set()
    for token in normalized:
        if any(ch in token for ch in "*?[]"):
            selected.update(name for name in TABLES if fnmatch.fnmatchcase(name, token))
        elif token in TABLES:
            selected.add(token)
    return selected


class WriteFailure(NamedTuple):
    dxftype: str
    handle: int | None
    check: str


def count_by_type(failures: Iterable[WriteFailure]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for failure in failures:
        counts[failure.dxftype] = counts.get(failure.dxftype, 0) + 1
    return dict(sorted(counts.items()))


def failure_summary(failures: Iterable[WriteFailure]) -> str:
    return ", ".join(f"{dxftype}:{count}" for dxftype, count in count_by_type(failures).items())


@dataclass(frozen=True)
class WriteResult:
    output: str
    revision: Revision
    written: int
    failures: tuple[WriteFailure, ...] = ()

    @property
    def skipped(self) -> int:
        return len(self.failures)

    @property
    def skipped_by_type(self) -> dict[str, int]:
        return count_by_type(self.failures)


def write_entities(
    stream: IO[str] | TagWriter,
    entities: Iterable[Entity],
    revision: Revision | str | int = LATEST,
    *,
    strict: bool = False,
) -> WriteResult:
    revision = Revision.parse(revision)
    if isinstance(stream, TagWriter):
        writer = stream
    else:
        writer = TagWriter(stream, name=getattr(stream, "name", "<stream>"), revision=revision)

    written = 0
    failures: list[WriteFailure] = []
    writer.write_tags([Tag(0, "SECTION"), Tag(2, "ENTITIES")])
    for entity in entities:
        try:
            if entity.dxftype not in TABLES:
                raise EncodeError(
                    "no field table for this type",
                    check="unsupported-type",
                    dxftype=entity.dxftype,
                    handle=entity.dxf.get("handle"),
                )
            text = encode(entity, TABLES[entity.dxftype], revision)
        except EncodeError as exc:
            if strict:
                raise
            logger.warning("not written: %s", exc)
            failures.append(WriteFailure(exc.dxftype, exc.handle, exc.check))
            continue
        writer.write_text(text)
        written += 1
    writer.write_tags([Tag(0, "ENDSEC"), Tag(0, "EOF")])
    return WriteResult(output=writer.name, revision=revision, written=written, failures=tuple(failures))


def save(
    path: str,
    entities: Iterable[Entity],
    revision: Revision | str | int = LATEST,
    *,
    strict: bool = False,
) -> WriteResult:
    with open(path, "w", encoding="utf-8", newline="\n") as stream:
        writer = TagWriter(stream, name=path, revision=Revision.parse(revision))
        return write_entities(writer, entities, revision, strict=strict)
