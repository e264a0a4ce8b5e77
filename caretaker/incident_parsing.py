"""Turning a free-text report into category, subcategory, location and notes.

The generative backend is asked for a JSON object; when that is unavailable or
unusable, ``keyword_parse`` produces the same shape from simple keyword rules.
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import BaseModel, ValidationError

from caretaker.constants import CaretakerConstants

logger = logging.getLogger(__name__)

PARSE_PROMPT = """You are an expert school incident parser.
Categorize the message and extract its details.

Categories:
- Maintenance: something broken, leaking, damaged or needing repair or installation
- Discipline: student conduct such as fighting, bullying or misbehaviour
- Academic: lessons, exams, assignments
- Administrative: meetings, paperwork, registration
- Sports: games, matches, training, physical education

Location: prefer specific places ("Room 101", "Classroom A", "Main Office"), then common
areas (playground, laboratory, library). Use "General Area" only if truly unclear.

Message: "{message}"
Available categories: {categories}

Return ONLY valid JSON with the keys category_id, subcategory, location and notes."""

_MESSAGE_LINE = re.compile(r'^Message: "(?P<message>.*)"$', re.MULTILINE)
_CATEGORIES_LINE = re.compile(r"^Available categories: (?P<categories>.*)$", re.MULTILINE)
_CATEGORY_ENTRY = re.compile(r"(?P<id>[^\s,()]+) \((?P<name>[^)]*)\)")
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

_MAINTENANCE_KEYWORDS = ("broken", "repair", "fix", "maintenance", "leak", "damage", "install")
_DISCIPLINE_KEYWORDS = ("misbehav", "fight", "bullying", "discipline", "behavior")
_SPORTS_KEYWORDS = ("sport", "game", "match", "tournament", "training")

_FILLER_PREFIXES = (
    "please ", "can you ", "need to ", "help with ", "urgent ", "asap ",
    "hello ", "hi ", "hey ", "excuse me ", "sorry ", "thanks ",
)  # fmt: skip
_FILLER_SUFFIXES = (" please", " thanks", " thank you", " asap", " urgently", " now")

CategoryChoice = tuple[str, str]  # (id, name)


class ParsedIncident(BaseModel):
    """Structured fields extracted from a report."""

    category_id: str
    subcategory: str
    location: str
    notes: str


def build_parse_prompt(message: str, categories: list[CategoryChoice]) -> str:
    """Prompt asking a backend to classify ``message`` into one of ``categories``."""
    categories_text = ", ".join(f"{category_id} ({name})" for category_id, name in categories)
    one_line = " ".join(message.split()).replace('"', "'")
    return PARSE_PROMPT.format(message=one_line, categories=categories_text)


def read_parse_prompt(prompt: str) -> tuple[str, list[CategoryChoice]] | None:
    """Recover the message and categories from a prompt built by ``build_parse_prompt``."""
    message_match = _MESSAGE_LINE.search(prompt)
    categories_match = _CATEGORIES_LINE.search(prompt)
    if not message_match or not categories_match:
        return None
    categories = [
        (entry.group("id"), entry.group("name"))
        for entry in _CATEGORY_ENTRY.finditer(categories_match.group("categories"))
    ]
    return message_match.group("message"), categories


def parse_model_output(text: str, categories: list[CategoryChoice]) -> ParsedIncident | None:
    """Validate a backend's JSON answer. Returns None if it is not usable."""
    match = _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
        parsed = ParsedIncident.model_validate(
            {
                "category_id": str(data.get("category_id") or ""),
                "subcategory": data.get("subcategory") or "General Issue",
                "location": data.get("location") or CaretakerConstants.UNKNOWN_LOCATION,
                "notes": data.get("notes") or "No additional details provided",
            }
        )
    except (json.JSONDecodeError, ValidationError, AttributeError) as e:
        logger.warning("Unusable incident JSON from backend: %s", e)
        return None

    valid_ids = {category_id for category_id, _ in categories}
    if parsed.category_id not in valid_ids:
        logger.warning("Backend chose unknown category %r, substituting", parsed.category_id)
        parsed.category_id = _default_category(categories)

    parsed.subcategory = parsed.subcategory.strip()[:100]
    parsed.location = parsed.location.strip()[:100]
    parsed.notes = parsed.notes.strip()[:500]
    return parsed


def _default_category(categories: list[CategoryChoice]) -> str:
    for names in (("maintenance", "repair"), ("general", "other")):
        found = _find_category(categories, names)
        if found:
            return found
    return categories[0][0]


def _find_category(categories: list[CategoryChoice], names: tuple[str, ...]) -> str | None:
    for category_id, name in categories:
        if any(part in name.lower() for part in names):
            return category_id
    return None


def smart_subcategory(message: str) -> str:
    """Short title-cased task name, e.g. "clean classroom please" -> "Clean Classroom"."""
    cleaned = message.strip()
    for prefix in _FILLER_PREFIXES:
        if cleaned.lower().startswith(prefix):
            cleaned = cleaned[len(prefix) :].strip()
    for suffix in _FILLER_SUFFIXES:
        if cleaned.lower().endswith(suffix):
            cleaned = cleaned[: -len(suffix)].strip()

    lowered = cleaned.lower()
    if "clean" in lowered or "washing" in lowered:
        for words, title in (
            (("toilet", "bathroom"), "Clean Toilet"),
            (("classroom", "class"), "Clean Classroom"),
            (("window",), "Clean Windows"),
            (("floor",), "Clean Floor"),
        ):
            if any(word in lowered for word in words):
                return title
        return "Cleaning Task"

    if any(word in lowered for word in ("broken", "fix", "repair")):
        for words, title in (
            (("door",), "Fix Door"),
            (("window",), "Fix Window"),
            (("desk", "table"), "Fix Furniture"),
            (("light", "bulb"), "Fix Lighting"),
            (("tap", "water", "leak"), "Fix Plumbing"),
        ):
            if any(word in lowered for word in words):
                return title
        return "Repair Task"

    if any(word in lowered for word in ("install", "setup", "mount")):
        return "Installation Task"

    words = cleaned.split()
    if len(cleaned) > 35 and len(words) > 5:
        words = words[:5] + ["..."]
    title = " ".join(word[:1].upper() + word[1:].lower() for word in words)
    return title if len(title) > 3 else CaretakerConstants.GENERAL_SUBCATEGORY


def extract_location(message: str) -> str:
    """Best-effort location from well-known place words."""
    lowered = message.lower()
    if "classroom" in lowered:
        match = re.search(r"classroom\s*([a-z0-9]+)", lowered)
        return f"Classroom {match.group(1).upper()}" if match else "Classroom"
    if "room" in lowered:
        match = re.search(r"room\s*([a-z0-9]+)", lowered)
        return f"Room {match.group(1).upper()}" if match else "Room"
    if "lab" in lowered:
        return "Laboratory"
    if "playground" in lowered or "field" in lowered:
        return "Playground"
    if "office" in lowered:
        return "Office"
    if "corridor" in lowered or "hallway" in lowered:
        return "Corridor"
    return CaretakerConstants.UNKNOWN_LOCATION


def keyword_parse(message: str, categories: list[CategoryChoice]) -> ParsedIncident:
    """Deterministic parse used when no backend gives a usable answer."""
    lowered = message.lower()
    category_id = categories[0][0]
    subcategory = smart_subcategory(message)

    if any(keyword in lowered for keyword in _MAINTENANCE_KEYWORDS):
        found = _find_category(categories, ("maintenance", "repair"))
        if found:
            category_id = found
            for words, marks, label in (
                (("desk", "chair"), ("Desk", "Chair"), "Furniture"),
                (("window", "door"), ("Window", "Door"), "Building"),
                (("light", "electrical"), ("Light", "Electric"), "Electrical"),
            ):
                if any(word in lowered for word in words):
                    if not any(mark in subcategory for mark in marks):
                        subcategory = f"{subcategory} ({label})"
                    break
    elif any(keyword in lowered for keyword in _DISCIPLINE_KEYWORDS):
        category_id = _find_category(categories, ("discipline", "behavior")) or category_id
    elif any(keyword in lowered for keyword in _SPORTS_KEYWORDS):
        category_id = _find_category(categories, ("sport", "athletic")) or category_id

    return ParsedIncident(
        category_id=category_id,
        subcategory=subcategory,
        location=extract_location(message),
        notes=f"Fallback parsing: {message}",
    )
