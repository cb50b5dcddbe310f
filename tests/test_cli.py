import json

from resource_harvester.cli import main
from resource_harvester.core.hasher import fnv64

from resource_builders import tuning_xml


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()


def test_convert_and_report(tmp_path, buff_package):
    out = tmp_path / "Project"
    report = tmp_path / "report.json"

    code = main(["convert", str(buff_package.parent), str(out), "--yes", "-q", "--report", str(report)])

    assert code == 0
    assert (out / "Packages" / "FunMod" / "Buff" / "buff_Fun.SimData.xml").is_file()
    assert len(json.loads(report.read_text(encoding="utf-8"))["writtenResources"]) == 3


def test_convert_with_history(tmp_path, buff_package, capsys):
    assert main(["convert", str(buff_package.parent), str(tmp_path / "out"), "-y", "-q", "--history"]) == 0
    capsys.readouterr()

    assert main(["history"]) == 0
    out = capsys.readouterr().out
    assert "completed" in out
    assert "3 written" in out


def test_list_and_index(tmp_path, buff_package, capsys):
    assert main(["list", str(buff_package), "-v"]) == 0
    assert "Entries: 3" in capsys.readouterr().out

    output = tmp_path / "index.json"
    assert main(["index", str(buff_package), "-o", str(output), "--format", "json"]) == 0
    assert json.loads(output.read_text(encoding="utf-8"))["size"] == 3

    assert main(["index", str(tmp_path / "missing.package")]) == 1


def test_rename_with_name(tmp_path):
    tuning = tmp_path / "buff_Fun.xml"
    tuning.write_text(tuning_xml("creator:buff_Fun"), encoding="utf-8")

    assert main(["rename", str(tuning), "--name", "creator:buff_Renamed"]) == 0
    renamed = tmp_path / "buff_Renamed.xml"
    assert f's="{fnv64("creator:buff_Renamed")}"' in renamed.read_text(encoding="utf-8")
    assert not tuning.exists()


def test_override(tmp_path):
    tuning = tmp_path / "buff_Fun.xml"
    tuning.write_text(tuning_xml("creator:buff_Fun"), encoding="utf-8")

    assert main(["override", str(tuning), "--group", "0x80000000"]) == 0
    assert "<!-- TGI Override: Group=80000000 -->" in tuning.read_text(encoding="utf-8")

    assert main(["override", str(tuning)]) == 1


def test_report_defaults_to_reports_folder(tmp_path, buff_package, harvester_home):
    assert main(["convert", str(buff_package.parent), str(tmp_path / "out"), "-y", "-q", "--report"]) == 0
    reports = list((harvester_home / "reports").glob("convert-*.json"))
    assert len(reports) == 1
