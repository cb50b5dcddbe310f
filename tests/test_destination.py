import os

from resource_harvester.core.correlation import InstanceCorrelationMap
from resource_harvester.core.destination import (
    append_folder, resolve_path, sanitize_name, strip_creator_prefix,
)


def test_sanitize_name():
    assert strip_creator_prefix("frankk:buff_Happy") == "buff_Happy"
    assert sanitize_name("creator:buff_Fun") == "buff_Fun"
    assert sanitize_name('a<b>c|d?"e') == "a_b_c_d__e"
    assert sanitize_name("trailing. ") == "trailing"
    assert sanitize_name("") == "_"
    assert sanitize_name("CON") == "_CON"


def test_resolve_path_never_reuses_a_path(tmp_path):
    first = resolve_path(str(tmp_path), ["Buff"], "creator:buff_Fun", "xml")
    assert first.resolved_path == os.path.join(str(tmp_path), "Buff", "buff_Fun.xml")
    assert first.collision_suffix is None
    open(first.resolved_path, "w").close()

    second = resolve_path(str(tmp_path), ["Buff"], "creator:buff_Fun", "xml")
    assert second.resolved_path.endswith("buff_Fun_0.xml")
    assert second.collision_suffix == 0
    open(second.resolved_path, "w").close()

    third = resolve_path(str(tmp_path), "Buff", "creator:buff_Fun", "xml")
    assert third.resolved_path.endswith("buff_Fun_1.xml")


def test_resolve_path_with_dotted_extension(tmp_path):
    dest = resolve_path(str(tmp_path), [], "English", "stbl.json")
    assert dest.resolved_path == os.path.join(str(tmp_path), "English.stbl.json")
    open(dest.resolved_path, "w").close()
    assert resolve_path(str(tmp_path), [], "English", "stbl.json").resolved_path.endswith(
        "English_0.stbl.json")


def test_append_folder_is_idempotent(tmp_path):
    folder = append_folder(str(tmp_path), "Packages", "Mod")
    assert os.path.isdir(folder)
    assert append_folder(str(tmp_path), "Packages", "Mod") == folder


def test_correlation_map_first_write_wins():
    correlation = InstanceCorrelationMap()
    correlation.record(1, "first", "/a/first.xml")
    correlation.record(1, "second", "/a/second.xml")

    assert 1 in correlation
    assert len(correlation) == 1
    assert correlation.lookup(1).canonical_name == "first"
    assert correlation.lookup(2) is None

    correlation.clear()
    assert len(correlation) == 0
