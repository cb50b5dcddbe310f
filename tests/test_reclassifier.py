import json
import os

from resource_harvester.core.config import Config
from resource_harvester.core.hasher import fnv64
from resource_harvester.core.keys import ResourceKey
from resource_harvester.core.prompts import AutoPrompter
from resource_harvester.core.reclassifier import FolderReclassifier, materialize_folder
from resource_harvester.core.session import HarvestSession
from resource_harvester.core.taxonomy import DDS_IMAGE_TYPE, PNG_IMAGE_TYPE, SIMDATA_TYPE, STRING_TABLE_TYPE
from resource_harvester.extractors.dbpf_writer import DBPFWriter
from resource_harvester.parsers.simdata_parser import parse_simdata_xml

from resource_builders import BUFF_SIMDATA_GROUP, BUFF_TYPE, png_bytes, simdata_xml, stbl_bytes, tuning_xml

OBJECT_DEFINITION_TYPE = 0xC0DB5AE7
UNKNOWN_TYPE = 0x12345678


def _package(folder, name, *resources):
    folder.mkdir(parents=True, exist_ok=True)
    writer = DBPFWriter()
    for key, data in resources:
        writer.add(key, data)
    path = folder / name
    writer.save(str(path))
    return path


def _read(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


def test_buff_package_layout(tmp_path, session, buff_package):
    out = tmp_path / "Project"
    report = FolderReclassifier(session).materialize(str(buff_package.parent), str(out))

    package_folder = out / "Packages" / "FunMod"
    tuning = package_folder / "Buff" / "buff_Fun.xml"
    companion = package_folder / "Buff" / "buff_Fun.SimData.xml"
    strings = package_folder / "StringTable" / "English.stbl.json"

    assert _read(tuning) == tuning_xml("creator:buff_Fun")
    assert parse_simdata_xml(_read(companion)).name == "creator:buff_Fun_SimData"
    assert json.loads(_read(strings))["entries"] == [
        {"key": "0x1234ABCD", "value": "Fun Buff"},
        {"key": "0x0000BEEF", "value": "Having fun"},
    ]

    assert report.sources == [str(buff_package)]
    assert report.warnings == []
    assert not report.cancelled
    assert [item.category for item in report.written] == ["Tuning", "SimData", "String Tables"]
    assert report.written[1].destination == str(companion)


def test_group_mismatch_writes_override(tmp_path, session):
    name = "creator:buff_Grouped"
    source = _package(tmp_path / "Mods", "Grouped.package",
                      (ResourceKey(BUFF_TYPE, 0x80000000, fnv64(name)), tuning_xml(name).encode("utf-8")))

    FolderReclassifier(session).materialize(str(source.parent), str(tmp_path / "out"))

    text = _read(tmp_path / "out" / "Packages" / "Grouped" / "Buff" / "buff_Grouped.xml")
    assert "<!-- TGI Override: Group=80000000 -->\n<I " in text
    assert "Type=" not in text


def test_unpaired_simdata_goes_to_group_folder(tmp_path, session):
    key = ResourceKey(SIMDATA_TYPE, BUFF_SIMDATA_GROUP, 0x42)
    source = _package(tmp_path / "Mods", "Lonely.package", (key, simdata_xml("other").encode("utf-8")))

    FolderReclassifier(session).materialize(str(source.parent), str(tmp_path / "out"))

    expected = (tmp_path / "out" / "Packages" / "Lonely" / "Buff"
                / "545AC67A_0017E8F6_0000000000000042.SimData.xml")
    assert parse_simdata_xml(_read(expected)).name == "other"


def test_images_binaries_and_unsupported(tmp_path, session):
    source = _package(
        tmp_path / "Mods", "Mixed.package",
        (ResourceKey(PNG_IMAGE_TYPE, 0, 1), png_bytes()),
        (ResourceKey(DDS_IMAGE_TYPE, 0, 2), b"DDS data"),
        (ResourceKey(OBJECT_DEFINITION_TYPE, 0, 3), b"object"),
        (ResourceKey(UNKNOWN_TYPE, 7, 4), b"mystery"),
    )

    report = FolderReclassifier(session).materialize(str(source.parent), str(tmp_path / "out"))

    folder = tmp_path / "out" / "Packages" / "Mixed"
    assert (folder / "PngImage" / "2F7D0004_00000000_0000000000000001.png").read_bytes() == png_bytes()
    assert (folder / "DdsImage" / "00B2D882_00000000_0000000000000002.dds").read_bytes() == b"DDS data"
    assert (folder / "ObjectDefinition" / "C0DB5AE7_00000000_0000000000000003.binary").read_bytes() == b"object"
    assert (folder / "Unsupported" / "12345678"
            / "12345678_00000007_0000000000000004.binary").read_bytes() == b"mystery"
    assert [item.category for item in report.written] == ["PngImage", "DdsImage", "ObjectDefinition", "Unknown"]


def test_loose_files(tmp_path, session):
    mods = tmp_path / "Mods"
    mods.mkdir()
    name = "creator:buff_Loose"
    (mods / f"6017E896-00000000-{fnv64(name):016X}.xml").write_text(tuning_xml(name), encoding="utf-8")
    (mods / "6017E896-00000000.xml").write_text("not a tgi name")

    report = FolderReclassifier(session).materialize(str(mods), str(tmp_path / "out"))

    assert (tmp_path / "out" / "Loose Files" / "Buff" / "buff_Loose.xml").is_file()
    assert report.skipped == [str(mods / "6017E896-00000000.xml")]
    assert report.warnings == []


def test_corrupt_package_is_skipped_with_warning(tmp_path, session, buff_package):
    broken = buff_package.parent / "Broken.package"
    broken.write_bytes(b"not a package")

    report = FolderReclassifier(session).materialize(str(buff_package.parent), str(tmp_path / "out"))

    assert report.skipped == [str(broken)]
    assert report.sources == [str(buff_package)]
    assert len(report.warnings) == 1
    assert report.warnings[0].path == str(broken)
    assert report.warnings[0].message.startswith("Could not read file")


def test_corrupt_string_table(tmp_path, session):
    key = ResourceKey(STRING_TABLE_TYPE, 0, 0x1)
    source = _package(tmp_path / "Mods", "Strings.package", (key, stbl_bytes([(1, "x")])[:-1]))

    report = FolderReclassifier(session).materialize(str(source.parent), str(tmp_path / "out"))

    raw = tmp_path / "out" / "Packages" / "Strings" / "StringTable" / "220557DA_00000000_0000000000000001.stbl"
    assert raw.is_file()
    assert report.file_warnings() == {
        str(source): ["220557DA-00000000-0000000000000001: Not a valid string table (it may be corrupt)"],
    }


def test_non_empty_destination_declined(tmp_path, buff_package):
    out = tmp_path / "out"
    out.mkdir()
    (out / "existing.txt").write_text("keep me")
    session = HarvestSession(Config(overrides={}), prompter=AutoPrompter(choice=None))

    report = FolderReclassifier(session).materialize(str(buff_package.parent), str(out))

    assert report.cancelled
    assert report.written == []
    assert os.listdir(out) == ["existing.txt"]


def test_session_without_prompter_declines_non_empty_destination(tmp_path, buff_package):
    out = tmp_path / "out"
    out.mkdir()
    (out / "existing.txt").write_text("keep me")

    report = materialize_folder(str(buff_package.parent), str(out),
                                session=HarvestSession(Config(overrides={})))

    assert report.cancelled
    assert os.listdir(out) == ["existing.txt"]


def test_non_empty_destination_accepted(tmp_path, session, buff_package):
    out = tmp_path / "out"
    out.mkdir()
    (out / "existing.txt").write_text("keep me")

    report = materialize_folder(str(buff_package.parent), str(out), session=session)

    assert not report.cancelled
    assert len(report.written) == 3


def test_companion_collision_is_suffixed(tmp_path, session, buff_package):
    out = tmp_path / "out"
    FolderReclassifier(session).materialize(str(buff_package.parent), str(out))
    # Second run into the same folder: every name is taken
    report = FolderReclassifier(session).materialize(str(buff_package.parent), str(out),
                                                     confirm_non_empty=False)

    folder = out / "Packages" / "FunMod" / "Buff"
    assert (folder / "buff_Fun_0.xml").is_file()
    assert report.written[1].destination == str(folder / "buff_Fun_0.SimData.xml")


def test_history_and_report(tmp_path, buff_package):
    config = Config(overrides={
        "record_history": True,
        "database_path": str(tmp_path / "history.db"),
    })
    progress = []
    with HarvestSession(config, prompter=AutoPrompter()) as session:
        report = materialize_folder(str(buff_package.parent), str(tmp_path / "out"), session=session,
                                    progress_callback=lambda i, n, path: progress.append((i, n)))

        runs = session.database.get_recent_runs()
        assert len(runs) == 1
        assert runs[0].status == "completed"
        assert runs[0].resources_written == 3
        resources = session.database.get_run_resources(runs[0].id)
        assert [r.category for r in resources] == ["Tuning", "SimData", "String Tables"]

    assert progress == [(1, 1)]

    report.save(str(tmp_path / "report.json"))
    saved = json.loads(_read(tmp_path / "report.json"))
    assert saved["sources"] == [str(buff_package)]
    assert len(saved["writtenResources"]) == 3
