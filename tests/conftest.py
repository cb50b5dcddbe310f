import pytest

from resource_harvester.core.config import Config
from resource_harvester.core.hasher import fnv64
from resource_harvester.core.keys import ResourceKey
from resource_harvester.core.prompts import AutoPrompter
from resource_harvester.core.session import HarvestSession
from resource_harvester.core.taxonomy import SIMDATA_TYPE, STRING_TABLE_TYPE
from resource_harvester.extractors.dbpf_writer import DBPFWriter

from resource_builders import (
    BUFF_SIMDATA_GROUP, BUFF_TYPE, simdata_xml, stbl_bytes, tuning_xml,
)


@pytest.fixture(autouse=True)
def harvester_home(tmp_path, monkeypatch):
    """Keep config and history out of the real user profile."""
    home = tmp_path / "_home"
    monkeypatch.setenv("RESOURCE_HARVESTER_HOME", str(home))
    return home


@pytest.fixture
def session():
    return HarvestSession(Config(overrides={}), prompter=AutoPrompter())


@pytest.fixture
def buff_package(tmp_path):
    """A package with the SimData indexed before its tuning, plus a string table."""
    name = "creator:buff_Fun"
    instance = fnv64(name)
    writer = DBPFWriter()
    writer.add(ResourceKey(SIMDATA_TYPE, BUFF_SIMDATA_GROUP, instance),
               simdata_xml(name).encode("utf-8"))
    writer.add(ResourceKey(BUFF_TYPE, 0, instance), tuning_xml(name).encode("utf-8"))
    writer.add(ResourceKey(STRING_TABLE_TYPE, 0, 0x00ABCDEF01234567),
               stbl_bytes([(0x1234ABCD, "Fun Buff"), (0x0000BEEF, "Having fun")]))

    source = tmp_path / "Mods"
    source.mkdir()
    path = source / "FunMod.package"
    writer.save(str(path))
    return path
