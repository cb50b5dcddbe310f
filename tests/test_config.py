import json

import pytest

from resource_harvester.core.config import DEFAULT_CONFIG, Config, apply_defaults
from resource_harvester.core.database import Database
from resource_harvester.core.paths import Paths


def test_apply_defaults_fills_and_filters():
    settings = apply_defaults({"debug_mode": True, "unknown": 1, "packages_folder": None})
    assert settings["debug_mode"] is True
    assert settings["packages_folder"] == "Packages"
    assert "unknown" not in settings
    assert apply_defaults(None) == DEFAULT_CONFIG


def test_apply_defaults_copies_nested_values():
    settings = apply_defaults(None)
    settings["class_bit_widths"]["Buff"] = 8
    assert DEFAULT_CONFIG["class_bit_widths"] == {}


def test_config_lives_under_harvester_home(harvester_home):
    config = Config()
    assert config.config_path == str(harvester_home / "config.json")
    assert config.database_path == str(harvester_home / "history.db")
    assert Paths.get_reports_dir() == str(harvester_home / "reports")


def test_config_save_and_load(tmp_path):
    path = tmp_path / "settings" / "config.json"
    config = Config(str(path))
    assert config.load() is False

    config.record_history = True
    config.class_bit_widths = {"Buff": 16}
    assert config.save()

    reloaded = Config(str(path))
    assert reloaded.load()
    assert reloaded.record_history is True
    assert reloaded.class_bit_widths == {"Buff": 16}
    assert reloaded.loose_files_folder == "Loose Files"


def test_config_rejects_bad_values(tmp_path):
    config = Config(str(tmp_path / "config.json"))
    with pytest.raises(ValueError):
        config.index_format = "xml"
    with pytest.raises(ValueError):
        config.class_bit_widths = {"Buff": 65}


def test_invalid_config_file_keeps_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    config = Config(str(path))
    assert config.load() is False
    assert config.packages_folder == "Packages"

    path.write_text(json.dumps(["a list"]), encoding="utf-8")
    assert config.load() is False


def test_database_runs_and_stats(tmp_path):
    db = Database(str(tmp_path / "db" / "history.db"))
    try:
        run = db.start_run("Mods/**/*", "Project")
        assert run.status == "running"

        db.add_resources_bulk(run.id, [{
            "resource_key": "6017E896-00000000-0000000000000001",
            "category": "Tuning",
            "source_path": "Mods/Fun.package",
            "destination_path": "Project/Packages/Fun/Buff/buff_Fun.xml",
            "hash_md5": "0" * 32,
            "size": 10,
        }])
        finished = db.finish_run(run.id, "completed", sources_processed=1,
                                 resources_written=1, warnings=["one", "two"])

        assert finished.warning_count == 2
        assert finished.warnings == "one\ntwo"
        assert db.get_stats() == {"runs": 1, "completed_runs": 1, "resources": 1}
        assert len(db.find_resources_by_key("6017e896-00000000-0000000000000001")) == 1
        assert db.finish_run(999, "completed") is None
    finally:
        db.close()
