import pytest

from resource_harvester.core.errors import DecodeError
from resource_harvester.core.hasher import fnv64
from resource_harvester.core.keys import ResourceKey
from resource_harvester.core.taxonomy import GENERIC_TUNING_TYPE
from resource_harvester.parsers.tuning_parser import (
    KeyOverride, TuningParser, infer_key, infer_metadata, insert_override, rewrite_root_identity,
)

from resource_builders import BUFF_TYPE, tuning_xml

TRAIT_TYPE = 0xCB5FDDC7


def test_infer_metadata_reads_root_attributes():
    metadata = infer_metadata(tuning_xml("creator:buff_Fun", s=42))
    assert metadata.root_kind == "I"
    assert metadata.declared_name == "creator:buff_Fun"
    assert metadata.class_attribute == "Buff"
    assert metadata.instance_type == "buff"
    assert metadata.module == "buffs.buff"
    assert metadata.declared_instance == 42
    assert metadata.override.is_empty


def test_quoted_angle_bracket_stays_inside_root_declaration():
    text = tuning_xml("creator:a>b", s=7)
    metadata = infer_metadata(text)
    assert metadata.declared_name == "creator:a>b"
    assert metadata.declared_instance == 7
    assert metadata.class_attribute == "Buff"

    result = rewrite_root_identity(text, "creator:c", 8)
    assert 'n="creator:c" s="8">' in result
    assert "a>b" not in result


def test_infer_metadata_without_root_is_empty():
    metadata = infer_metadata("just some text")
    assert metadata.root_kind is None
    assert metadata.declared_name is None


def test_infer_key_hashes_declared_name():
    key = infer_key(infer_metadata(tuning_xml("creator:buff_Fun", s=1)))
    assert key == ResourceKey(BUFF_TYPE, 0, fnv64("creator:buff_Fun"))


def test_infer_key_narrows_restricted_classes():
    text = tuning_xml("creator:trait_Brave", c="Trait", i="trait")
    key = infer_key(infer_metadata(text))
    assert key.type == TRAIT_TYPE
    assert key.instance == fnv64("creator:trait_Brave") & 0xFFFFFFFF

    narrowed = infer_key(infer_metadata(text), {"Trait": 8})
    assert narrowed.instance == fnv64("creator:trait_Brave") & 0xFF


def test_infer_key_unknown_class_is_generic_tuning():
    text = tuning_xml("creator:thing", c="SomethingNew", i="something_new")
    assert infer_key(infer_metadata(text)).type == GENERIC_TUNING_TYPE


def test_explicit_override_wins_over_name_hash():
    text = insert_override(tuning_xml("creator:buff_Fun"),
                           KeyOverride(group=0x80000000, instance=0x1234))
    metadata = infer_metadata(text)
    assert metadata.explicit_group == 0x80000000
    assert metadata.explicit_instance == 0x1234
    assert infer_key(metadata) == ResourceKey(BUFF_TYPE, 0x80000000, 0x1234)


def test_insert_empty_override_is_a_no_op():
    text = tuning_xml("creator:buff_Fun")
    assert insert_override(text, KeyOverride()) is text


def test_insert_override_places_comment_before_root():
    text = tuning_xml("creator:buff_Fun")
    result = insert_override(text, KeyOverride(group=0x80000000))
    assert result == text.replace(
        '<I c=', '<!-- TGI Override: Group=80000000 -->\n<I c=', 1)


def test_insert_override_without_prolog():
    text = tuning_xml("creator:buff_Fun", prolog=False)
    result = insert_override(text, KeyOverride(type=BUFF_TYPE))
    assert result.startswith("<!-- TGI Override: Type=6017E896 -->\n<I ")


def test_insert_override_merges_existing_comment():
    text = insert_override(tuning_xml("creator:buff_Fun"), KeyOverride(group=1, instance=2))
    merged = insert_override(text, KeyOverride(instance=0xFF))

    assert merged.count("TGI Override") == 1
    assert "Group=00000001" in merged
    assert "Instance=00000000000000FF" in merged
    assert "Instance=0000000000000002" not in merged


def test_insert_override_without_root_returns_none():
    assert insert_override("not xml at all", KeyOverride(group=1)) is None


def test_insert_override_keeps_crlf_line_endings():
    text = tuning_xml("creator:buff_Fun").replace("\n", "\r\n")
    result = insert_override(text, KeyOverride(group=1))
    assert "<!-- TGI Override: Group=00000001 -->\r\n<I " in result


def test_rewrite_root_identity_only_touches_root():
    text = tuning_xml("creator:buff_Old", s=5)
    result = rewrite_root_identity(text, "creator:buff_New", 99)

    assert 'n="creator:buff_New"' in result
    assert 's="99"' in result
    assert '<T n="visible">True</T>' in result
    assert result.replace('n="creator:buff_New" s="99"', 'n="creator:buff_Old" s="5"') == text


def test_rewrite_root_identity_adds_missing_attributes():
    result = rewrite_root_identity('<M n="old.module">\n</M>', "new.module", 7)
    assert result.startswith('<M n="new.module" s="7">')


def test_rewrite_root_identity_without_root_raises():
    with pytest.raises(DecodeError):
        rewrite_root_identity("", "name", 1)


def test_parser_rejects_non_tuning_payloads():
    parser = TuningParser()
    with pytest.raises(DecodeError):
        parser.load_from_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(DecodeError):
        parser.load_from_bytes(b"plain text")

    document = parser.load_from_bytes(tuning_xml("creator:buff_Fun").encode("utf-8"))
    assert document.metadata.declared_name == "creator:buff_Fun"
