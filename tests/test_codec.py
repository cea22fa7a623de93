from __future__ import annotations

import io
import logging

import pytest

from dxfcodec.codec import decode, encode, write
from dxfcodec.errors import DecodeError, DxfStreamError, EncodeError
from dxfcodec.revision import Revision
from dxfcodec.stream import TagReader, TagWriter
from dxfcodec.tables import new
from tests._dxf_helpers import codes, group_values, tag_pairs, tag_text


def _arc():
    return new("ARC", handle=0x2A, center=(1.0, 2.0), radius=3.5, start_angle=0.0, end_angle=90.0)


def _reader(text: str, revision: Revision | None = None) -> TagReader:
    return TagReader.from_text(text + "  0\nEOF\n", revision=revision)


def test_encode_arc_for_r2010() -> None:
    expected = tag_text(
        [
            (0, "ARC"),
            (5, "2a"),
            (100, "AcDbEntity"),
            (8, "0"),
            (370, "-1"),
            (100, "AcDbCircle"),
            (10, "1.000000"),
            (20, "2.000000"),
            (30, "0.000000"),
            (40, "3.500000"),
            (100, "AcDbArc"),
            (50, "0.000000"),
            (51, "90.000000"),
        ]
    )
    assert encode(_arc(), "ARC", Revision.R2010) == expected


def test_encode_arc_for_r12_drops_subclass_markers() -> None:
    assert codes(encode(_arc(), "ARC", "R12")) == [0, 5, 8, 10, 20, 30, 40, 50, 51]


def test_decode_fills_defaults_and_stops_at_next_record() -> None:
    reader = _reader("  0\nCIRCLE\n 40\n2.0\n", Revision.R2010)

    circle = decode(reader, "CIRCLE")

    assert circle.dxftype == "CIRCLE"
    assert circle.dxf["radius"] == 2.0
    assert circle.dxf["layer"] == "0"
    assert circle.dxf["linetype"] == "BYLAYER"
    assert circle.dxf["color"] == 256
    assert circle.dxf["center"] == (0.0, 0.0, 0.0)
    assert circle.dxf["extrusion"] == (0.0, 0.0, 1.0)
    assert circle.dxf["binary_graphics_data"] == []
    assert reader.read().value == "EOF"


def test_decode_round_trips_encoded_line() -> None:
    line = new("LINE", handle=0x10, layer="WALLS", start=(0.0, 0.0, 0.0), end=(3.0, 4.0, 0.0))

    decoded = decode(_reader(encode(line, "LINE", Revision.R2010)), "LINE")

    assert decoded == line


def test_unknown_code_is_dropped_with_one_diagnostic() -> None:
    line = new("LINE", handle=0x10, layer="WALLS", end=(3.0, 4.0, 0.0))
    pairs = tag_pairs(encode(line, "LINE", Revision.R2010))
    noisy_pairs = pairs[:3] + [(1071, "7")] + pairs[3:]

    clean_diagnostics: list = []
    noisy_diagnostics: list = []
    clean = decode(_reader(tag_text(pairs)), "LINE", diagnostics=clean_diagnostics)
    noisy = decode(_reader(tag_text(noisy_pairs)), "LINE", diagnostics=noisy_diagnostics)

    assert noisy.dxf == clean.dxf
    assert clean_diagnostics == []
    assert len(noisy_diagnostics) == 1
    assert noisy_diagnostics[0].kind == "unknown-code"
    assert noisy_diagnostics[0].code == 1071
    assert noisy_diagnostics[0].line_number == 8


def test_out_of_range_visibility_keeps_default() -> None:
    diagnostics: list = []

    line = decode(
        _reader("  0\nLINE\n 60\n5\n 11\n1.0\n", Revision.R2010),
        "LINE",
        diagnostics=diagnostics,
    )

    assert line.dxf["visibility"] == 0
    assert line.dxf["end"] == (1.0, 0.0, 0.0)
    assert [item.kind for item in diagnostics] == ["invalid-value"]
    assert diagnostics[0].code == 60


def test_unparsable_value_keeps_default() -> None:
    diagnostics: list = []

    circle = decode(_reader("  0\nCIRCLE\n 40\nwide\n 62\n1\n"), "CIRCLE", diagnostics=diagnostics)

    assert circle.dxf["radius"] == 0.0
    assert circle.dxf["color"] == 1
    assert [item.kind for item in diagnostics] == ["invalid-value"]


def test_comment_is_reported_not_stored(caplog) -> None:
    caplog.set_level(logging.INFO, logger="dxfcodec.codec")
    diagnostics: list = []

    line = decode(_reader("  0\nLINE\n999\nmade by hand\n 11\n1.0\n"), "LINE", diagnostics=diagnostics)

    assert "made by hand" not in line.dxf.values()
    assert [item.kind for item in diagnostics] == ["comment"]
    assert "made by hand" in caplog.text


def test_subclass_marker_mismatch_is_not_fatal() -> None:
    diagnostics: list = []
    text = "  0\nLINE\n100\nAcDbCircle\n 11\n1.0\n"

    line = decode(_reader(text, Revision.R2010), "LINE", diagnostics=diagnostics)
    assert line.dxf["end"] == (1.0, 0.0, 0.0)
    assert [item.kind for item in diagnostics] == ["subclass-marker"]

    diagnostics.clear()
    decode(_reader(text, Revision.R12), "LINE", diagnostics=diagnostics)
    assert [item.kind for item in diagnostics] == ["unknown-code"]


def test_diagnostics_are_logged_as_warnings(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="dxfcodec.codec")

    decode(_reader("  0\nLINE\n1071\n7\n"), "LINE")

    assert "unknown group code 1071" in caplog.text


def test_fields_are_gated_by_revision() -> None:
    line = new("LINE", end=(1.0, 0.0, 0.0), color_value=0xFF0000, elevation=5.0)

    assert 420 not in codes(encode(line, "LINE", Revision.R2002))
    assert group_values(encode(line, "LINE", Revision.R2004), 420) == ["16711680"]
    assert group_values(encode(line, "LINE", Revision.R11), 38) == ["5.000000"]
    assert 38 not in codes(encode(line, "LINE", Revision.R12))


def test_gated_field_is_not_decoded_for_older_revision() -> None:
    diagnostics: list = []

    line = decode(_reader("  0\nLINE\n420\n255\n", Revision.R12), "LINE", diagnostics=diagnostics)

    assert line.dxf["color_value"] == 0
    assert [item.kind for item in diagnostics] == ["unknown-code"]


def test_3dline_is_written_as_line_after_r11() -> None:
    line = new("3DLINE", end=(1.0, 1.0, 1.0))

    assert tag_pairs(encode(line, "3DLINE", Revision.R11))[0] == (0, "3DLINE")
    assert tag_pairs(encode(line, "3DLINE", Revision.R12))[0] == (0, "LINE")

    decoded = decode(_reader(encode(line, "3DLINE", Revision.R2010)), "3DLINE")
    assert decoded.dxftype == "3DLINE"
    assert decoded.dxf["end"] == (1.0, 1.0, 1.0)


def test_encode_is_idempotent_through_decode() -> None:
    line = new(
        "LINE",
        handle=0xBEEF,
        layer="WALLS",
        linetype="DASHED",
        color=1,
        linetype_scale=2.0,
        thickness=0.5,
        dictionary_owner_soft="1F",
        graphics_data_size=3,
        binary_graphics_data=["00FF", "AB"],
        start=(1.25, 2.5, 0.0),
        end=(4.0, 8.0, 0.0),
        extrusion=(0.0, 0.0, -1.0),
    )
    text = encode(line, "LINE", Revision.R2010)

    again = encode(decode(_reader(text), "LINE"), "LINE", Revision.R2010)

    assert again == text
    assert tag_pairs(text)[2:5] == [(102, "{ACAD_REACTORS"), (330, "1F"), (102, "}")]
    assert group_values(text, 310) == ["00FF", "AB"]


def test_graphics_data_size_alias_is_accepted() -> None:
    line = decode(_reader("  0\nLINE\n160\n12\n 11\n1.0\n"), "LINE")

    assert line.dxf["graphics_data_size"] == 12
    assert group_values(encode(line, "LINE", Revision.R2010), 92) == ["12"]


def test_empty_layer_and_linetype_fall_back() -> None:
    line = decode(_reader("  0\nLINE\n  8\n\n  6\n\n 11\n1.0\n"), "LINE")

    assert line.dxf["layer"] == "0"
    assert line.dxf["linetype"] == "BYLAYER"


def test_encode_substitutes_empty_layer_with_warning(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="dxfcodec.codec")
    line = new("LINE", end=(1.0, 0.0, 0.0))
    line.dxf["layer"] = ""

    assert group_values(encode(line, "LINE", Revision.R2010), 8) == ["0"]
    assert "empty layer" in caplog.text


def test_truncated_stream_raises_with_partial_entity() -> None:
    reader = TagReader.from_text("  0\nLINE\n  5\n2a\n  8\n", name="cut.dxf")

    with pytest.raises(DecodeError) as exc_info:
        decode(reader, "LINE")

    error = exc_info.value
    assert error.line_number == 5
    assert error.source == "cut.dxf"
    assert error.entity.handle == 0x2A
    assert "missing value" in str(error)


def test_missing_terminator_raises() -> None:
    with pytest.raises(DecodeError, match="unexpected end of stream"):
        decode(TagReader.from_text("  0\nLINE\n 11\n1.0\n"), "LINE")


def test_decode_rejects_other_entity_type_and_null_stream() -> None:
    with pytest.raises(DecodeError, match="expected a LINE entity"):
        decode(_reader("  0\nCIRCLE\n 40\n1.0\n"), "LINE")
    with pytest.raises(DecodeError, match="no input stream"):
        decode(None, "LINE")


def test_encode_rejects_bad_values_without_output() -> None:
    line = new("LINE", handle=7, end=(1.0, 0.0, 0.0))
    line.dxf["color"] = "red"

    with pytest.raises(EncodeError) as exc_info:
        encode(line, "LINE", Revision.R2010)
    assert exc_info.value.check == "invalid-value"
    assert exc_info.value.handle == 7


def test_encode_rejects_entity_of_other_type() -> None:
    with pytest.raises(EncodeError) as exc_info:
        encode(new("LINE", end=(1.0, 0.0, 0.0)), "ARC", Revision.R2010)
    assert exc_info.value.check == "entity-type"


def test_write_uses_writer_revision() -> None:
    out = io.StringIO()
    writer = TagWriter(out, revision=Revision.R12)

    written = write(writer, _arc())

    assert written == len(out.getvalue())
    assert codes(out.getvalue()) == [0, 5, 8, 10, 20, 30, 40, 50, 51]


def test_write_is_all_or_nothing() -> None:
    out = io.StringIO()
    arc = _arc()
    arc.dxf["end_angle"] = arc.dxf["start_angle"]

    with pytest.raises(EncodeError):
        write(TagWriter(out), arc)
    assert out.getvalue() == ""

    with pytest.raises(DxfStreamError):
        write(None, _arc())


def test_bare_record_decodes_to_table_defaults() -> None:
    assert decode(_reader("  0\nLINE\n"), "LINE") == new("LINE")
    assert decode(_reader("  0\nLAYER\n"), "LAYER").dxf["linetype"] == "CONTINUOUS"


def test_round_trip_resets_fields_unsupported_at_revision() -> None:
    line = new("LINE", handle=5, end=(1.0, 0.0, 0.0), color_value=0x00FF00, visibility=1)

    decoded = decode(_reader(encode(line, "LINE", Revision.R12), Revision.R12), "LINE")

    assert decoded.dxf["color_value"] == 0
    assert decoded.dxf["visibility"] == 0
    expected = line.copy()
    expected.dxf["color_value"] = 0
    expected.dxf["visibility"] = 0
    assert decoded == expected


def test_encode_refuses_values_the_reader_would_reject() -> None:
    line = new("LINE", handle=0x11, end=(1.0, 0.0, 0.0), visibility=5)

    with pytest.raises(EncodeError) as exc_info:
        encode(line, "LINE", Revision.R2010)
    assert exc_info.value.check == "invalid-value"
    assert exc_info.value.handle == 0x11
    assert "visibility" in str(exc_info.value)


def test_negative_thickness_is_refused_both_ways() -> None:
    diagnostics: list = []

    line = decode(_reader("  0\nLINE\n 39\n-5.0\n 11\n1.0\n"), "LINE", diagnostics=diagnostics)

    assert line.dxf["thickness"] == 0.0
    assert [item.kind for item in diagnostics] == ["invalid-value"]
    assert diagnostics[0].code == 39

    line.dxf["thickness"] = -5.0
    with pytest.raises(EncodeError) as exc_info:
        encode(line, "LINE", Revision.R2010)
    assert exc_info.value.check == "invalid-value"


def test_string_padding_survives_round_trip() -> None:
    line = new("LINE", handle=0x12, layer=" PADDED ", end=(1.0, 0.0, 0.0))

    text = encode(line, "LINE", Revision.R2010)

    assert (8, " PADDED ") in tag_pairs(text)
    assert decode(_reader(text), "LINE") == line
