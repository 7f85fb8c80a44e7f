"""
Tests for the YAML text form.
"""

import pytest
import yaml

from kufsox.compare import diff_sox
from kufsox.constants import TROOP_NAMES, THE_END_SIZE
from kufsox.sox import SoxFormatError, TroopInfoSox, encode_sox, f32, troop_fields
from kufsox.text import sox_to_yaml, sox_from_yaml


def edited_yaml(sox, edit):
    """Dump sox to YAML, let edit() mutate the loaded document, dump it again."""
    doc = yaml.safe_load(sox_to_yaml(sox))
    edit(doc)
    return yaml.safe_dump(doc, sort_keys=False)


def test_comment_block_names_every_troop(sox):
    lines = sox_to_yaml(sox).splitlines()
    assert lines[:len(TROOP_NAMES)] == [f"# {i} -- {name}" for i, name in enumerate(TROOP_NAMES)]
    assert lines[3] == "# 3 -- Spearman"
    assert lines[43] == "version: 100"


def test_top_level_key_order(sox):
    doc = yaml.safe_load(sox_to_yaml(sox))
    assert list(doc) == ['version', 'count', 'troop_infos']


def test_every_field_is_emitted(sox):
    doc = yaml.safe_load(sox_to_yaml(sox))
    assert len(doc['troop_infos']) == 43
    for troop in doc['troop_infos']:
        assert len(troop_fields(troop)) == 37
        assert len(troop['level_up_data']) == 3


def test_trailer_is_not_emitted(sox):
    text = sox_to_yaml(sox)
    assert 'the_end' not in text
    assert 'the_end' not in yaml.safe_load(text)


def test_floats_use_shortest_representation():
    sox = TroopInfoSox.blank()
    sox.troop_infos[0]['move_speed'] = f32(0.1)
    sox.troop_infos[0]['default_unit_hp'] = 250.0
    text = sox_to_yaml(sox)
    assert "  move_speed: 0.1\n" in text
    assert "  default_unit_hp: 250.0\n" in text


def test_text_roundtrip_keeps_every_scalar(sox):
    back = sox_from_yaml(sox_to_yaml(sox))
    assert [d['path'] for d in diff_sox(sox, back)] == ['the_end']
    assert back.the_end == bytes(THE_END_SIZE)


def test_text_roundtrip_with_trailer_is_byte_exact(sox, sox_bytes):
    back = sox_from_yaml(sox_to_yaml(sox), the_end=sox.the_end)
    assert encode_sox(back) == sox_bytes


def test_blank_roundtrip():
    blank = TroopInfoSox.blank()
    assert sox_from_yaml(sox_to_yaml(blank)) == blank


def test_edits_are_applied(sox):
    def edit(doc):
        doc['troop_infos'][5]['defense'] = 99.5
        doc['troop_infos'][5]['level_up_data'][1]['skill_id'] = 7

    back = sox_from_yaml(edited_yaml(sox, edit))
    assert back.troop_infos[5]['defense'] == 99.5
    assert back.troop_infos[5]['level_up_data'][1]['skill_id'] == 7


def test_integer_accepted_for_float_field(sox):
    def edit(doc):
        doc['troop_infos'][0]['sight_range'] = 300

    back = sox_from_yaml(edited_yaml(sox, edit))
    assert back.troop_infos[0]['sight_range'] == 300.0
    assert isinstance(back.troop_infos[0]['sight_range'], float)


def test_floats_are_rounded_to_float32(sox):
    def edit(doc):
        doc['troop_infos'][0]['sight_range'] = 0.1

    back = sox_from_yaml(edited_yaml(sox, edit))
    assert back.troop_infos[0]['sight_range'] == f32(0.1)


def test_unknown_keys_are_ignored(sox):
    def edit(doc):
        doc['comment'] = 'hello'
        doc['troop_infos'][2]['nickname'] = 'spear guys'
        doc['troop_infos'][2]['level_up_data'][0]['note'] = 1

    back = sox_from_yaml(edited_yaml(sox, edit))
    assert 'nickname' not in back.troop_infos[2]
    assert [d['path'] for d in diff_sox(sox, back)] == ['the_end']


@pytest.mark.parametrize("edit,match", [
    (lambda d: d.pop('version'), "missing field 'version'"),
    (lambda d: d.pop('troop_infos'), "missing field 'troop_infos'"),
    (lambda d: d.__setitem__('version', 101), "unsupported header"),
    (lambda d: d.__setitem__('count', 42), "unsupported header"),
    (lambda d: d['troop_infos'].pop(), "expected 43 entries, got 42"),
    (lambda d: d.__setitem__('troop_infos', {}), "expected a list"),
    (lambda d: d['troop_infos'].__setitem__(4, [1, 2]), r"troop_infos\[4\]: expected a mapping"),
    (lambda d: d['troop_infos'][5].pop('defense'), r"troop_infos\[5\]: missing field 'defense'"),
    (lambda d: d['troop_infos'][5].pop('level_up_data'), "missing field 'level_up_data'"),
    (lambda d: d['troop_infos'][5]['level_up_data'].pop(), "expected 3 entries, got 2"),
    (lambda d: d['troop_infos'][5]['level_up_data'][2].pop('skill_id'), "missing field 'skill_id'"),
    (lambda d: d['troop_infos'][6].__setitem__('defense', 'high'), "expected a number"),
    (lambda d: d['troop_infos'][6].__setitem__('defense', True), "expected a number"),
    (lambda d: d['troop_infos'][6].__setitem__('job', 1.5), "expected an integer"),
    (lambda d: d['troop_infos'][6].__setitem__('job', None), "expected an integer"),
    (lambda d: d['troop_infos'][6].__setitem__('job', 2**31), "out of int32 range"),
    (lambda d: d['troop_infos'][6].__setitem__('defense', 1e300), "out of float32 range"),
])
def test_malformed_documents_are_rejected(sox, edit, match):
    with pytest.raises(SoxFormatError, match=match):
        sox_from_yaml(edited_yaml(sox, edit))


def test_invalid_yaml_is_rejected():
    with pytest.raises(SoxFormatError, match="invalid YAML"):
        sox_from_yaml("version: [100\n")


@pytest.mark.parametrize("text", ["", "- 1\n- 2\n", "just a string\n"])
def test_non_mapping_root_is_rejected(text):
    with pytest.raises(SoxFormatError, match="document: expected a mapping"):
        sox_from_yaml(text)


def blank_yaml_with(old, new):
    """Blank container as YAML with the first `old` line replaced by `new`."""
    text = sox_to_yaml(TroopInfoSox.blank())
    assert old in text
    return text.replace(old, new, 1)


@pytest.mark.parametrize("literal,expected", [
    ("1.5e3", 1500.0),
    ("1e3", 1000.0),
    ("-2.5E-1", -0.25),
    ("+7", 7.0),
    (".5", 0.5),
])
def test_float_literals_follow_yaml_1_2(literal, expected):
    text = blank_yaml_with("  defense: 0.0\n", f"  defense: {literal}\n")
    assert sox_from_yaml(text).troop_infos[0]['defense'] == expected


@pytest.mark.parametrize("literal,expected", [
    ("010", 10),
    ("0o17", 15),
    ("0x1F", 31),
    ("-12", -12),
])
def test_integer_literals_follow_yaml_1_2(literal, expected):
    text = blank_yaml_with("- job: 0\n", f"- job: {literal}\n")
    assert sox_from_yaml(text).troop_infos[0]['job'] == expected


@pytest.mark.parametrize("literal", ["1:30", "yes", "1_000"])
def test_yaml_1_1_only_integers_are_rejected(literal):
    text = blank_yaml_with("- job: 0\n", f"- job: {literal}\n")
    with pytest.raises(SoxFormatError, match=r"troop_infos\[0\].job: expected an integer"):
        sox_from_yaml(text)


def test_special_floats_load():
    text = blank_yaml_with("  defense: 0.0\n", "  defense: -.inf\n")
    assert sox_from_yaml(text).troop_infos[0]['defense'] == float('-inf')


def test_duplicate_keys_are_rejected():
    text = blank_yaml_with("  defense: 0.0\n", "  defense: 5.0\n  defense: 7.0\n")
    with pytest.raises(SoxFormatError, match="duplicate key 'defense'"):
        sox_from_yaml(text)


def test_duplicate_top_level_keys_are_rejected():
    text = sox_to_yaml(TroopInfoSox.blank()) + "count: 43\n"
    with pytest.raises(SoxFormatError, match="duplicate key 'count'"):
        sox_from_yaml(text)
