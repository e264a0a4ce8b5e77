"""Short, human-typeable reference codes for incidents.

Current codes look like ``#SUBNG0``: a hash followed by the last six characters
of the record ID. Older messages used ``MAIN-CMEZ3M`` style codes with a
category prefix; those are still understood but no longer handed out.

Codes are truncations of the ID, so two records can share one. Resolution is
therefore an ordered search (exact, starts-with, ends-with, contains) that stops
at the first strategy with any hit, so an exact match always wins.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from pydantic import BaseModel

from caretaker.constants import CaretakerConstants
from caretaker.database.models import Incident

logger = logging.getLogger(__name__)

_SHORT_CODE_PATTERN = re.compile(r"^#[A-Z0-9]{4,8}$")
_LEGACY_CODE_PATTERN = re.compile(r"^[A-Z]{3,5}-[A-Z0-9]{4,6}$")

_RESOLUTION_ORDER = (
    CaretakerConstants.MatchStrategy.EXACT,
    CaretakerConstants.MatchStrategy.STARTS_WITH,
    CaretakerConstants.MatchStrategy.ENDS_WITH,
    CaretakerConstants.MatchStrategy.CONTAINS,
)


class ParsedReference(BaseModel):
    """A reference code split into its prefix and ID token."""

    valid: bool
    prefix: str = ""
    token: str = ""


class IncidentLookup(Protocol):
    """The slice of the incident store that resolution needs."""

    def find_by_id_match(
        self, term: str, strategy: CaretakerConstants.MatchStrategy
    ) -> list[Incident]: ...


def encode_reference(record_id: str) -> str:
    """Build the ``#XXXXXX`` code shown to users for a record ID."""
    short = record_id
    if len(record_id) > CaretakerConstants.REFERENCE_FULL_ID_THRESHOLD:
        short = record_id[-CaretakerConstants.REFERENCE_SHORT_LENGTH :]
    return f"{CaretakerConstants.REFERENCE_PREFIX}{short.upper()}"


def legacy_prefix(category_name: str | None) -> str:
    """Derive the 3-5 letter legacy prefix for a category name."""
    if not category_name:
        return CaretakerConstants.LEGACY_DEFAULT_PREFIX

    name = category_name.lower().strip()
    for keyword, prefix in CaretakerConstants.LEGACY_CATEGORY_PREFIXES.items():
        # Keywords must start a word so "it" doesn't fire inside "facilities"
        if re.search(rf"\b{re.escape(keyword)}", name):
            return prefix

    words = ["".join(ch for ch in word if ch.isalpha()) for word in name.split()]
    words = [word for word in words if word]
    if len(words) >= 2 and len(words[0]) >= 3:
        return (words[0][0] + words[1][0] + words[0][1:3]).upper()
    if len(words) == 1 and len(words[0]) >= 4:
        return words[0][:4].upper()
    return CaretakerConstants.LEGACY_DEFAULT_PREFIX


def encode_legacy_reference(record_id: str, category_name: str | None = None) -> str:
    """Build an old-style ``PREFIX-XXXXXX`` code. Kept for display of historic codes."""
    return f"{legacy_prefix(category_name)}-{record_id[:6].upper()}"


def parse_reference(code: str) -> ParsedReference:
    """Validate a code and split it into prefix and ID token."""
    cleaned = code.strip().upper()

    if _SHORT_CODE_PATTERN.match(cleaned):
        return ParsedReference(
            valid=True, prefix=CaretakerConstants.REFERENCE_PREFIX, token=cleaned[1:]
        )

    if _LEGACY_CODE_PATTERN.match(cleaned):
        prefix, token = cleaned.split("-")
        return ParsedReference(valid=True, prefix=prefix, token=token)

    return ParsedReference(valid=False)


def looks_like_reference(text: str) -> bool:
    """True if the whole text is a reference code in either format."""
    return parse_reference(text).valid


def resolve_reference(code: str, store: IncidentLookup) -> Incident | None:
    """Find the incident a code points to, or None.

    Tries each match strategy in order and returns the first record of the
    first strategy that finds anything.
    """
    parsed = parse_reference(code)
    if not parsed.valid:
        return None

    term = parsed.token.lower()
    for strategy in _RESOLUTION_ORDER:
        matches = store.find_by_id_match(term, strategy)
        if matches:
            if len(matches) > 1:
                logger.info(
                    "Reference %s is ambiguous under %s (%d matches), using first",
                    code,
                    strategy,
                    len(matches),
                )
            return matches[0]
    return None
