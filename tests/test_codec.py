import json

import pytest

from resource_harvester.core.errors import DecodeError
from resource_harvester.core.keys import ResourceKey
from resource_harvester.core.taxonomy import PNG_IMAGE_TYPE, SIMDATA_TYPE, STRING_TABLE_TYPE
from resource_harvester.parsers.codec import (
    BinaryBlob, RawFallback, decode_entry, decode_typed, encode,
)
from resource_harvester.parsers.image_parser import ImageInfo
from resource_harvester.parsers.simdata_parser import (
    SimDataDocument, parse_simdata_xml, rename_simdata_instance,
)
from resource_harvester.parsers.stbl_parser import (
    STBLParser, StringTable, locale_for_instance, string_table_from_json,
)
from resource_harvester.parsers.tuning_parser import TuningDocument

from resource_builders import BUFF_SIMDATA_GROUP, BUFF_TYPE, png_bytes, simdata_xml, stbl_bytes, tuning_xml

STBL_KEY = ResourceKey(STRING_TABLE_TYPE, 0, 0x00ABCDEF01234567)


def test_stbl_decodes_entries_in_order():
    table = decode_typed(STBL_KEY, stbl_bytes([(0x1, "Hello"), (0xDEADBEEF, "Wörld")]))
    assert isinstance(table, StringTable)
    assert table.entries == [(0x1, "Hello"), (0xDEADBEEF, "Wörld")]
    assert table.get(0xDEADBEEF) == "Wörld"
    assert table.get(0x2) is None
    assert len(table) == 2


def test_stbl_json_form():
    table = StringTable(entries=[(0x1, "Hello")])
    document = json.loads(table.to_json(STBL_KEY))
    assert document == {
        "locale": "English",
        "group": "0x00000000",
        "instanceBase": "0xABCDEF01234567",
        "entries": [{"key": "0x00000001", "value": "Hello"}],
    }

    restored, locale = string_table_from_json(table.to_json(STBL_KEY))
    assert restored.entries == table.entries
    assert locale == "English"


def test_stbl_locale_names():
    assert locale_for_instance(0x07AB000000000001) == "French"
    assert locale_for_instance(0xEE00000000000001) == "LocaleEE"


def test_stbl_writer_matches_builder():
    entries = [(0x10, "a"), (0x20, "bc")]
    assert STBLParser().write(StringTable(entries=entries)) == stbl_bytes(entries)


def test_corrupt_stbl_becomes_raw_fallback():
    data = stbl_bytes([(0x1, "Hello")])
    for broken in (data[:-2], data + b"\x00", b"NOPE" + data[4:]):
        decoded = decode_entry(STBL_KEY, broken)
        assert isinstance(decoded, RawFallback)
        assert decoded.payload == broken


def test_png_image_info():
    decoded = decode_typed(ResourceKey(PNG_IMAGE_TYPE, 0, 1), png_bytes(4, 2))
    assert isinstance(decoded, ImageInfo)
    assert (decoded.width, decoded.height, decoded.format) == (4, 2, "PNG")
    assert decoded.dimensions == "4x2"


def test_unreadable_image_is_raw_fallback():
    decoded = decode_entry(ResourceKey(PNG_IMAGE_TYPE, 0, 1), b"not an image")
    assert decoded.kind == "RawFallback"
    assert "unreadable image" in decoded.error


def test_tuning_and_simdata_dispatch():
    tuning = decode_typed(ResourceKey(BUFF_TYPE, 0, 1), tuning_xml("creator:buff_Fun").encode("utf-8"))
    assert isinstance(tuning, TuningDocument)
    assert tuning.metadata.declared_name == "creator:buff_Fun"

    simdata = decode_typed(ResourceKey(SIMDATA_TYPE, BUFF_SIMDATA_GROUP, 1),
                           simdata_xml("creator:buff_Fun").encode("utf-8"))
    assert isinstance(simdata, SimDataDocument)
    assert simdata.name == "creator:buff_Fun"
    assert not simdata.is_binary


def test_simdata_rename_keeps_rest_of_document():
    text = simdata_xml("old")
    renamed = rename_simdata_instance(text, 'new "one"')
    assert parse_simdata_xml(renamed).name == 'new "one"'
    assert renamed.replace('new &quot;one&quot;', "old") == text


def test_simdata_instance_name_may_contain_angle_bracket():
    text = simdata_xml("creator:a>b")
    assert parse_simdata_xml(text).name == "creator:a>b"

    renamed = rename_simdata_instance(text, "creator:c")
    assert parse_simdata_xml(renamed).name == "creator:c"
    assert 'schema="Buff"' in renamed


def test_simdata_rename_needs_instances():
    with pytest.raises(DecodeError):
        rename_simdata_instance('<SimData version="1"></SimData>', "x")
    with pytest.raises(DecodeError):
        parse_simdata_xml("<NotSimData/>")


def test_unknown_type_is_binary():
    decoded = decode_entry(ResourceKey(0x12345678, 0, 1), b"\x01\x02")
    assert decoded == BinaryBlob(b"\x01\x02")


def test_encode():
    assert encode(BinaryBlob(b"abc")) == b"abc"
    table = StringTable(entries=[(0x1, "x")])
    assert encode(table) == stbl_bytes([(0x1, "x")])
    with pytest.raises(DecodeError):
        encode(ImageInfo(1, 1, "PNG"))
    with pytest.raises(DecodeError):
        encode(SimDataDocument(instance_names=["a"], is_binary=True))
