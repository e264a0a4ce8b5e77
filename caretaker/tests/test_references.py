"""Tests for reference code encoding, parsing and resolution."""

import pytest

from caretaker.constants import CaretakerConstants
from caretaker.references import (
    encode_legacy_reference,
    encode_reference,
    legacy_prefix,
    looks_like_reference,
    parse_reference,
    resolve_reference,
)


def test_encode_uses_last_six_characters_uppercased():
    assert encode_reference("cmez3mn6h0002l50405subng0") == "#SUBNG0"


def test_encode_short_id_keeps_whole_id():
    assert encode_reference("abc123") == "#ABC123"


def test_parse_new_format():
    parsed = parse_reference("#SUBNG0")
    assert parsed.valid
    assert parsed.prefix == "#"
    assert parsed.token == "SUBNG0"


def test_parse_is_case_insensitive_and_trims():
    parsed = parse_reference("  #subng0 ")
    assert parsed.valid
    assert parsed.token == "SUBNG0"


def test_parse_legacy_format():
    parsed = parse_reference("MAIN-CMEZ3M")
    assert parsed.valid
    assert parsed.prefix == "MAIN"
    assert parsed.token == "CMEZ3M"


@pytest.mark.parametrize("code", ["SUBNG0", "#AB", "#ABCDEFGHI", "M-1234", "hello world", ""])
def test_parse_rejects_malformed_codes(code):
    assert not parse_reference(code).valid
    assert not looks_like_reference(code)


@pytest.mark.parametrize(
    "category, prefix",
    [
        ("Maintenance", "MAIN"),
        ("Electrical Works", "ELEC"),
        ("Plumbing", "PLUMB"),
        ("IT Support", "TECH"),
        ("Facilities", "FACI"),
        ("Front Office", "FORO"),
        ("Art", "TASK"),
        (None, "TASK"),
    ],
)
def test_legacy_prefix(category, prefix):
    assert legacy_prefix(category) == prefix


def test_legacy_codes_are_parseable():
    code = encode_legacy_reference("cmez3mn6h0002l50405subng0", "Maintenance")
    assert code == "MAIN-CMEZ3M"
    assert parse_reference(code).valid


def test_resolve_prefers_exact_match(db, make_incident):
    """A contains-match must never shadow an exact match."""
    make_incident(id="xabc123")
    exact = make_incident(id="abc123")

    resolved = resolve_reference("#ABC123", db.incidents)

    assert resolved is not None
    assert resolved.id == exact.id


def test_resolve_full_length_record_by_suffix(db, make_incident):
    incident = make_incident(id="cmez3mn6h0002l50405subng0")

    resolved = resolve_reference("#SUBNG0", db.incidents)

    assert resolved is not None
    assert resolved.id == incident.id


def test_resolve_legacy_code_by_prefix(db, make_incident):
    incident = make_incident(id="cmez3mn6h0002l50405subng0")

    resolved = resolve_reference("MAIN-CMEZ3M", db.incidents)

    assert resolved is not None
    assert resolved.id == incident.id


def test_resolve_unknown_or_invalid_code_returns_none(db, make_incident):
    make_incident(id="cmez3mn6h0002l50405subng0")

    assert resolve_reference("#ZZZZZZ", db.incidents) is None
    assert resolve_reference("not a code", db.incidents) is None


def test_resolve_ambiguous_code_returns_oldest(db, make_incident):
    older = make_incident(id="c111111111111111111aaaaaa", minutes_ago=60)
    make_incident(id="c222222222222222222aaaaaa", minutes_ago=5)

    resolved = resolve_reference("#AAAAAA", db.incidents)

    assert resolved is not None
    assert resolved.id == older.id


def test_store_match_strategies(db, make_incident):
    make_incident(id="abc123")
    make_incident(id="xabc123")
    strategy = CaretakerConstants.MatchStrategy

    assert [i.id for i in db.incidents.find_by_id_match("abc123", strategy.EXACT)] == ["abc123"]
    assert {i.id for i in db.incidents.find_by_id_match("abc123", strategy.CONTAINS)} == {
        "abc123",
        "xabc123",
    }
