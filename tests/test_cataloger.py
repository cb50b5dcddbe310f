import csv
import json

import pytest

from resource_harvester.core.cataloger import PackageCataloger, summarize
from resource_harvester.core.keys import ResourceKey
from resource_harvester.core.taxonomy import GENERIC_TUNING_TYPE, PNG_IMAGE_TYPE, SIMDATA_TYPE, STRING_TABLE_TYPE
from resource_harvester.extractors import DBPFExtractor, DBPFWriter, extract

from resource_builders import BUFF_SIMDATA_GROUP, png_bytes, simdata_xml, tuning_xml


def _index(path):
    return PackageCataloger().index_package(str(path))


def test_buff_package_groups(buff_package):
    index = _index(buff_package)

    assert index.size == 3
    assert [group.category for group in index.groups] == ["SimData", "Tuning", "String Tables"]
    details = [entry.detail_text for _, entry in index.iter_entries()]
    assert details == [
        "Buff SimData (creator:buff_Fun)",
        "Buff Tuning (creator:buff_Fun)",
        "English String Table (Strings: 2)",
    ]
    assert all(entry.warnings is None for _, entry in index.iter_entries())


def test_details_for_other_kinds():
    data = (DBPFWriter()
            .add(ResourceKey(GENERIC_TUNING_TYPE, 0, 1), b'<?xml version="1.0"?>\n<I c="Thing" s="1"/>')
            .add(ResourceKey(PNG_IMAGE_TYPE, 0, 2), png_bytes(4, 2))
            .add(ResourceKey(0x12345678, 0, 3), b"???")
            .to_bytes())
    groups = summarize(extract(data))

    assert [(g.category, g.entries[0].detail_text) for g in groups] == [
        ("Tuning", "Generic Tuning (Unnamed)"),
        ("PngImage", "PngImage (4x2 PNG)"),
        ("Unknown", "Unknown"),
    ]
    assert [e.id for g in groups for e in g.entries] == [0, 1, 2]


def test_corrupt_entries_get_warnings():
    data = (DBPFWriter()
            .add(ResourceKey(STRING_TABLE_TYPE, 0, 1), b"STBL broken")
            .add(ResourceKey(SIMDATA_TYPE, BUFF_SIMDATA_GROUP, 2), b"\xff\xfe nonsense")
            .to_bytes())
    groups = summarize(extract(data))

    assert groups[0].entries[0].warnings == ["Not a valid string table (it may be corrupt)"]
    assert groups[0].entries[0].detail_text == "English String Table (Strings: 0)"
    assert groups[1].entries[0].warnings == ["Not a valid SimData (it may be corrupt)"]
    assert groups[1].entries[0].detail_text == "Buff SimData (Unnamed)"


def test_unpaired_simdata_group_name():
    data = (DBPFWriter()
            .add(ResourceKey(SIMDATA_TYPE, 0x00ABCDEF, 1), simdata_xml("mystery").encode("utf-8"))
            .to_bytes())
    assert summarize(extract(data))[0].entries[0].detail_text == "Unknown SimData (mystery)"


def test_save_index_formats(tmp_path, buff_package):
    cataloger = PackageCataloger()
    index = _index(buff_package)

    cataloger.save_index(index, str(tmp_path / "index.json"), format="json")
    document = json.loads((tmp_path / "index.json").read_text(encoding="utf-8"))
    assert document["size"] == 3
    assert document["groups"][1]["entries"][0]["details"] == "Buff Tuning (creator:buff_Fun)"

    cataloger.save_index(index, str(tmp_path / "index.csv"), format="csv")
    with open(tmp_path / "index.csv", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["id", "group", "key", "details", "size", "warnings"]
    assert rows[1][1] == "SimData"
    assert len(rows) == 4

    cataloger.save_index(index, str(tmp_path / "index.txt"))
    report = (tmp_path / "index.txt").read_text(encoding="utf-8")
    assert "Total entries: 3" in report
    assert "TUNING (1)" in report

    with pytest.raises(ValueError):
        cataloger.save_index(index, str(tmp_path / "index.xml"), format="xml")


def test_statistics(buff_package):
    cataloger = PackageCataloger()
    stats = cataloger.get_statistics(_index(buff_package))

    assert stats["total_count"] == 3
    assert stats["warnings"] == 0
    assert set(stats["by_group"]) == {"SimData", "Tuning", "String Tables"}
    assert stats["by_group"]["Tuning"]["size"] == len(tuning_xml("creator:buff_Fun").encode("utf-8"))


def test_index_matches_extractor_order(buff_package):
    with DBPFExtractor(str(buff_package)) as package:
        keys = [entry.key for entry in package.list_entries()]
    index = _index(buff_package)
    assert [entry.key_string for _, entry in index.iter_entries()] == [
        f"{k.type:08X}-{k.group:08X}-{k.instance:016X}" for k in keys
    ]
