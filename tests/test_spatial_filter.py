from __future__ import annotations

import pytest

from dxfcodec.codec import decode, encode
from dxfcodec.errors import EncodeError
from dxfcodec.revision import Revision
from dxfcodec.stream import TagReader
from dxfcodec.tables import new
from tests._dxf_helpers import codes, group_values, tag_text

INVERSE = [float(value) for value in range(1, 13)]
FORWARD = [float(value) for value in range(13, 25)]


def _filter_text(count: int = 2, front: int = 1) -> str:
    pairs: list[tuple[int, object]] = [
        (0, "SPATIAL_FILTER"),
        (5, "1f"),
        (100, "AcDbFilter"),
        (100, "AcDbSpatialFilter"),
        (70, count),
        (10, "0.0"),
        (20, "0.0"),
        (10, "5.0"),
        (20, "5.0"),
        (210, "0.0"),
        (220, "0.0"),
        (230, "1.0"),
        (11, "0.0"),
        (21, "0.0"),
        (31, "0.0"),
        (71, 1),
        (72, front),
    ]
    if front:
        pairs.append((40, "2.5"))
    pairs.append((73, 0))
    pairs.extend((40, value) for value in INVERSE + FORWARD)
    pairs.append((0, "EOF"))
    return tag_text(pairs)


def test_repeated_code_40_is_routed_by_position() -> None:
    diagnostics: list = []

    spatial = decode(TagReader.from_text(_filter_text()), "SPATIAL_FILTER", Revision.R2010, diagnostics=diagnostics)

    assert diagnostics == []
    assert spatial.handle == 0x1F
    assert spatial.dxf["boundary"] == [(0.0, 0.0, 0.0), (5.0, 5.0, 0.0)]
    assert spatial.dxf["front_clipping"] == 1
    assert spatial.dxf["front_clipping_distance"] == 2.5
    assert spatial.dxf["back_clipping_distance"] == 0.0
    assert spatial.dxf["inverse_block_transformation"] == INVERSE
    assert spatial.dxf["block_transformation"] == FORWARD


def test_front_distance_slot_is_skipped_when_clipping_is_off() -> None:
    spatial = decode(TagReader.from_text(_filter_text(front=0)), "SPATIAL_FILTER", Revision.R2010)

    assert spatial.dxf["front_clipping_distance"] == 0.0
    assert spatial.dxf["inverse_block_transformation"] == INVERSE
    assert spatial.dxf["block_transformation"] == FORWARD


def test_point_count_mismatch_is_reported() -> None:
    diagnostics: list = []

    spatial = decode(TagReader.from_text(_filter_text(count=3)), "SPATIAL_FILTER", diagnostics=diagnostics)

    assert len(spatial.dxf["boundary"]) == 2
    assert [item.kind for item in diagnostics] == ["count-mismatch"]
    assert diagnostics[0].code == 70


def test_encode_derives_point_count_and_writes_two_dimensional_boundary() -> None:
    spatial = new(
        "SPATIAL_FILTER",
        handle=0x1F,
        boundary=[(0.0, 0.0), (5.0, 0.0), (5.0, 5.0)],
        back_clipping=1,
        back_clipping_distance=-1.5,
    )

    text = encode(spatial, "SPATIAL_FILTER", Revision.R2010)

    assert group_values(text, 70) == ["3"]
    assert group_values(text, 10) == ["0.000000", "5.000000", "5.000000"]
    assert 30 not in codes(text)
    assert group_values(text, 41) == ["-1.500000"]
    assert len(group_values(text, 40)) == 24
    decoded = decode(TagReader.from_text(text + "  0\nEOF\n"), "SPATIAL_FILTER")
    assert decoded == spatial


def test_encode_checks_boundary_and_matrices() -> None:
    with pytest.raises(EncodeError) as exc_info:
        encode(new("SPATIAL_FILTER", boundary=[(0.0, 0.0)]), "SPATIAL_FILTER", Revision.R2010)
    assert exc_info.value.check == "boundary"

    spatial = new("SPATIAL_FILTER", boundary=[(0.0, 0.0), (1.0, 1.0)], block_transformation=[1.0, 0.0])
    with pytest.raises(EncodeError) as exc_info:
        encode(spatial, "SPATIAL_FILTER", Revision.R2010)
    assert exc_info.value.check == "transformation"

    with pytest.raises(EncodeError, match="unsupported-revision"):
        encode(new("SPATIAL_FILTER", boundary=[(0.0, 0.0), (1.0, 1.0)]), "SPATIAL_FILTER", Revision.R13)
