import struct

import pytest

from resource_harvester.core.errors import DecodeError
from resource_harvester.core.keys import ResourceKey
from resource_harvester.extractors import (
    DBPFExtractor, DBPFWriter, ExtractorRegistry, LooseFileExtractor, extract, read_index,
)
from resource_harvester.extractors.compression import (
    COMPRESSION_REFPACK, COMPRESSION_ZLIB, decompress, refpack_decompress,
)
from resource_harvester.parsers.codec import BinaryBlob, RawFallback
from resource_harvester.parsers.tuning_parser import TuningDocument

from resource_builders import BUFF_TYPE, tuning_xml

UNKNOWN_TYPE = 0x12345678


def test_writer_output_reads_back(tmp_path):
    tuning = tuning_xml("creator:buff_Fun").encode("utf-8")
    writer = DBPFWriter()
    writer.add(ResourceKey(BUFF_TYPE, 0, 1), tuning)
    writer.add(ResourceKey(UNKNOWN_TYPE, 2, 0x1122334455667788), b"\x00\x01\x02", compress=False)
    assert len(writer) == 2

    entries = extract(writer.to_bytes())
    assert [e.key for e in entries] == [
        ResourceKey(BUFF_TYPE, 0, 1),
        ResourceKey(UNKNOWN_TYPE, 2, 0x1122334455667788),
    ]
    assert entries[0].payload == tuning
    assert isinstance(entries[0].decoded, TuningDocument)
    assert entries[1].decoded == BinaryBlob(b"\x00\x01\x02")


def test_index_records_compression():
    data = (DBPFWriter()
            .add(ResourceKey(BUFF_TYPE, 0, 1), b"x" * 100)
            .add(ResourceKey(BUFF_TYPE, 0, 2), b"y", compress=False)
            .to_bytes())
    index = read_index(data)
    assert index[0].compression == COMPRESSION_ZLIB
    assert index[0].decompressed_size == 100
    assert index[1].compression == 0
    assert index[1].size == 1


def test_extract_filter():
    data = (DBPFWriter()
            .add(ResourceKey(BUFF_TYPE, 0, 1), tuning_xml("a").encode("utf-8"))
            .add(ResourceKey(UNKNOWN_TYPE, 0, 2), b"raw")
            .to_bytes())
    only_unknown = extract(data, lambda t, g, i: t == UNKNOWN_TYPE)
    assert [e.key.instance for e in only_unknown] == [2]


def test_bad_signature_raises():
    with pytest.raises(DecodeError):
        read_index(b"NOPE" + b"\x00" * 100)
    with pytest.raises(DecodeError):
        extract(b"DBPF")


def test_constant_type_index():
    # Hand-built index with a constant type field
    payload = b"hello"
    header = bytearray(96)
    header[0:4] = b"DBPF"
    struct.pack_into("<II", header, 4, 2, 1)
    struct.pack_into("<I", header, 0x24, 1)
    index_position = 96 + len(payload)
    struct.pack_into("<I", header, 0x40, index_position)
    index = struct.pack("<II", 0x1, UNKNOWN_TYPE)
    index += struct.pack("<IIIIII", 7, 0, 9, 96, len(payload), len(payload))

    entries = extract(bytes(header) + payload + index)
    assert entries[0].key == ResourceKey(UNKNOWN_TYPE, 7, 9)
    assert entries[0].payload == b"hello"


def test_unknown_compression_becomes_raw_fallback():
    data = (DBPFWriter()
            .add_raw(ResourceKey(UNKNOWN_TYPE, 0, 1), b"\xde\xad", 10, 0x1234)
            .to_bytes())
    entry = extract(data)[0]
    assert entry.is_raw_fallback
    assert entry.decoded.payload == b"\xde\xad"
    assert "unsupported compression" in entry.decoded.error


def test_refpack_literals_and_copy():
    assert refpack_decompress(bytes.fromhex("10FB000004E061626364FC")) == b"abcd"
    assert refpack_decompress(bytes.fromhex("10FB000008E0616263640403FC")) == b"abcdabcd"
    assert decompress(bytes.fromhex("10FB000004E061626364FC"), COMPRESSION_REFPACK, 4) == b"abcd"


def test_refpack_rejects_bad_streams():
    with pytest.raises(DecodeError):
        refpack_decompress(b"\x00\x00\x00\x00\x00")
    with pytest.raises(DecodeError):
        # Declares 5 bytes, produces 4
        refpack_decompress(bytes.fromhex("10FB000005E061626364FC"))
    with pytest.raises(DecodeError):
        decompress(b"not zlib", COMPRESSION_ZLIB)


def test_registry_picks_extractor_by_file(tmp_path):
    package = tmp_path / "Mod.package"
    DBPFWriter().add(ResourceKey(UNKNOWN_TYPE, 0, 1), b"x").save(str(package))
    loose = tmp_path / "12345678-00000000-0000000000000001.binary"
    loose.write_bytes(b"loose")
    other = tmp_path / "readme.txt"
    other.write_text("hi")

    with ExtractorRegistry.get_extractor_for_file(str(package)) as extractor:
        assert isinstance(extractor, DBPFExtractor)
        assert extractor.get_entry_count() == 1

    with ExtractorRegistry.get_extractor_for_file(str(loose)) as extractor:
        assert isinstance(extractor, LooseFileExtractor)
        entry = extractor.extract_entries()[0]
        assert entry.key == ResourceKey(UNKNOWN_TYPE, 0, 1)
        assert entry.payload == b"loose"

    assert ExtractorRegistry.get_extractor_for_file(str(other)) is None


def test_corrupt_package_raises_on_open(tmp_path):
    package = tmp_path / "Broken.package"
    package.write_bytes(b"garbage")
    with pytest.raises(DecodeError):
        ExtractorRegistry.get_extractor_for_file(str(package))
