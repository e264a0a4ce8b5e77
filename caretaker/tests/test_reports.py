"""Tests for turning free text into incidents."""

import json

import pytest

from caretaker.constants import CaretakerConstants
from caretaker.providers import ProviderError, ProviderSelector
from caretaker.references import encode_reference
from caretaker.reports import IncidentReporter
from caretaker.responses import CaretakerResponse
from caretaker.tests.conftest import REPORTER_SENDER, STRANGER_SENDER, ScriptedBackend

FallbackReason = CaretakerConstants.FallbackReason

MESSAGE = "The tap in the staff room is leaking"


@pytest.fixture
def backends():
    return {}


@pytest.fixture
def reporter(db, backends) -> IncidentReporter:
    selector = ProviderSelector(
        db.providers, None, backend_factory=lambda config, api_key: backends[config.provider]
    )
    return IncidentReporter(db, selector)


def model_answer(category_id: str) -> str:
    return json.dumps(
        {
            "category_id": category_id,
            "subcategory": "Leaking Tap",
            "location": "Staff Room",
            "notes": "Dripping since morning",
        }
    )


@pytest.mark.asyncio
async def test_report_uses_model_answer(db, reporter, backends, categories, reporter_user):
    db.providers.add("claude")
    backends["claude"] = ScriptedBackend("claude", ["ok", model_answer(categories["Sports"].id)])

    success, reply = await reporter.report(REPORTER_SENDER, "", MESSAGE)

    assert success
    [incident] = db.incidents.list_reported(reporter_user.id, limit=5)
    assert (incident.subcategory, incident.location) == ("Leaking Tap", "Staff Room")
    assert incident.category_id == categories["Sports"].id
    assert incident.status == CaretakerConstants.IncidentStatus.OPEN
    assert encode_reference(incident.id) in reply
    assert "Sports" in reply
    assert "Thanks Rita Reporter!" in reply
    assert backends["claude"].closed


@pytest.mark.asyncio
async def test_display_name_is_preferred_in_reply(db, reporter, categories, reporter_user):
    success, reply = await reporter.report(REPORTER_SENDER, "Rita", MESSAGE)

    assert success
    assert "Thanks Rita!" in reply


@pytest.mark.asyncio
async def test_eligible_failure_retries_on_fallback(db, reporter, backends, categories):
    db.providers.add("claude", is_default=True)
    db.providers.add("gemini")
    rate_limited = ProviderError("claude", "slow down", 429, FallbackReason.RATE_LIMIT)
    backends["claude"] = ScriptedBackend("claude", ["ok", rate_limited])
    backends["gemini"] = ScriptedBackend("gemini", ["ok", model_answer(categories["Sports"].id)])

    parsed = await reporter.parse(MESSAGE, [(c.id, c.name) for c in categories.values()])

    assert parsed.subcategory == "Leaking Tap"
    assert backends["claude"].closed
    assert backends["gemini"].closed
    assert reporter._selector.stats.rate_limit_fallbacks == 1


@pytest.mark.asyncio
async def test_failed_retry_uses_keyword_rules(db, reporter, backends, categories):
    db.providers.add("claude", is_default=True)
    db.providers.add("gemini")
    backends["claude"] = ScriptedBackend("claude", ["ok", TimeoutError()])
    backends["gemini"] = ScriptedBackend(
        "gemini", ["ok", ProviderError("gemini", "down", 503, FallbackReason.SERVER_ERROR)]
    )

    parsed = await reporter.parse(MESSAGE, [(c.id, c.name) for c in categories.values()])

    assert parsed.category_id == categories["Maintenance"].id
    assert parsed.notes.startswith("Fallback parsing:")


@pytest.mark.asyncio
async def test_non_eligible_failure_uses_keyword_rules(db, reporter, backends, categories):
    db.providers.add("claude")
    db.providers.add("gemini")
    backends["claude"] = ScriptedBackend("claude", ["ok", ProviderError("claude", "bad", 400)])
    backends["gemini"] = ScriptedBackend("gemini")

    parsed = await reporter.parse(MESSAGE, [(c.id, c.name) for c in categories.values()])

    assert parsed.notes.startswith("Fallback parsing:")
    assert backends["gemini"].prompts == []


@pytest.mark.asyncio
async def test_unusable_answer_uses_keyword_rules(db, reporter, backends, categories):
    db.providers.add("claude")
    backends["claude"] = ScriptedBackend("claude", ["ok", "I am not sure what you mean"])

    parsed = await reporter.parse(MESSAGE, [(c.id, c.name) for c in categories.values()])

    assert parsed.category_id == categories["Maintenance"].id
    assert parsed.notes == f"Fallback parsing: {MESSAGE}"


@pytest.mark.asyncio
async def test_stranger_cannot_report(reporter, categories):
    assert await reporter.report(STRANGER_SENDER, "", MESSAGE) == (
        False,
        CaretakerResponse.NO_ACCOUNT,
    )


@pytest.mark.asyncio
async def test_no_categories(reporter, reporter_user):
    assert await reporter.report(REPORTER_SENDER, "", MESSAGE) == (
        False,
        CaretakerResponse.NO_CATEGORIES,
    )
