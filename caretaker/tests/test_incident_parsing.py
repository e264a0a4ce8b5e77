"""Tests for report parsing."""

import json

import pytest

from caretaker.constants import CaretakerConstants
from caretaker.incident_parsing import (
    build_parse_prompt,
    extract_location,
    keyword_parse,
    parse_model_output,
    read_parse_prompt,
    smart_subcategory,
)

CATEGORIES = [("c-disc", "Discipline"), ("c-main", "Maintenance"), ("c-sport", "Sports")]


def test_prompt_round_trip():
    prompt = build_parse_prompt('The  "big" door\nis stuck', CATEGORIES)

    assert read_parse_prompt(prompt) == ("The 'big' door is stuck", CATEGORIES)


def test_read_parse_prompt_ignores_other_prompts():
    assert read_parse_prompt("Test") is None


def test_model_output_with_surrounding_text():
    output = (
        'Sure! {"category_id": "c-sport", "subcategory": "Broken Net", '
        '"location": "Sports Hall", "notes": "Net torn"} Hope that helps.'
    )

    parsed = parse_model_output(output, CATEGORIES)

    assert parsed is not None
    assert parsed.model_dump() == {
        "category_id": "c-sport",
        "subcategory": "Broken Net",
        "location": "Sports Hall",
        "notes": "Net torn",
    }


def test_unknown_category_prefers_maintenance():
    parsed = parse_model_output(json.dumps({"category_id": "nope"}), CATEGORIES)

    assert parsed is not None
    assert parsed.category_id == "c-main"
    assert parsed.subcategory == "General Issue"
    assert parsed.location == CaretakerConstants.UNKNOWN_LOCATION


def test_unknown_category_falls_back_to_general_then_first():
    general = [("c-1", "Academic"), ("c-2", "General")]
    plain = [("c-1", "Academic"), ("c-2", "Sports")]

    assert parse_model_output('{"category_id": "x"}', general).category_id == "c-2"
    assert parse_model_output('{"category_id": "x"}', plain).category_id == "c-1"


def test_long_fields_are_truncated():
    output = json.dumps(
        {
            "category_id": "c-main",
            "subcategory": "s" * 150,
            "location": "l" * 150,
            "notes": "n" * 600,
        }
    )

    parsed = parse_model_output(output, CATEGORIES)

    assert parsed is not None
    assert (len(parsed.subcategory), len(parsed.location), len(parsed.notes)) == (100, 100, 500)


@pytest.mark.parametrize("output", ["I could not decide", "{not json}", '{"category_id": ['])
def test_unusable_output(output):
    assert parse_model_output(output, CATEGORIES) is None


@pytest.mark.parametrize(
    "message, expected",
    [
        ("please clean classroom 3", "Clean Classroom"),
        ("clean the toilets thanks", "Clean Toilet"),
        ("the door is broken", "Fix Door"),
        ("the tap needs repair", "Fix Plumbing"),
        ("install a new projector", "Installation Task"),
        ("hi", CaretakerConstants.GENERAL_SUBCATEGORY),
        ("paint hall", "Paint Hall"),
        (
            "the projector in the hall keeps flickering badly today",
            "The Projector In The Hall ...",
        ),
    ],
)
def test_smart_subcategory(message, expected):
    assert smart_subcategory(message) == expected


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Light out in Room 101", "Room 101"),
        ("Spill in classroom 4b", "Classroom 4B"),
        ("Gas smell in the lab", "Laboratory"),
        ("Mud all over the football field", "Playground"),
        ("Fight in the hallway", "Corridor"),
        ("Printer jammed in the office", "Office"),
        ("Something is wrong", CaretakerConstants.UNKNOWN_LOCATION),
    ],
)
def test_extract_location(message, expected):
    assert extract_location(message) == expected


def test_keyword_parse_maintenance():
    parsed = keyword_parse("The window is broken in room 5", CATEGORIES)

    assert parsed.category_id == "c-main"
    assert parsed.subcategory == "Fix Window"
    assert parsed.location == "Room 5"
    assert parsed.notes == "Fallback parsing: The window is broken in room 5"


def test_keyword_parse_tags_furniture():
    parsed = keyword_parse("Please repair the chair", CATEGORIES)

    assert parsed.category_id == "c-main"
    assert parsed.subcategory == "Repair Task (Furniture)"


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Two boys had a fight at lunch", "c-disc"),
        ("Football match moved to Friday", "c-sport"),
        ("Parents evening reminder", "c-disc"),
    ],
)
def test_keyword_parse_categories(message, expected):
    assert keyword_parse(message, CATEGORIES).category_id == expected
