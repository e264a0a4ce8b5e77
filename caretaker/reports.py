"""Free-text incident reports."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from caretaker.constants import CaretakerConstants
from caretaker.database import Database
from caretaker.database.models import Category
from caretaker.incident_parsing import (
    CategoryChoice,
    ParsedIncident,
    build_parse_prompt,
    keyword_parse,
    parse_model_output,
)
from caretaker.providers import GenerativeBackend, ProviderSelector
from caretaker.references import encode_reference
from caretaker.responses import CaretakerResponse

logger = logging.getLogger(__name__)


class IncidentReporter:
    """Turns a plain-text message into an Open incident.

    The working backend is asked to classify the message. A fallback-eligible
    failure gets one retry on the selector's replacement backend; anything
    else, or unusable output, falls back to keyword parsing.
    """

    def __init__(self, db: Database, selector: ProviderSelector):
        self._db = db
        self._selector = selector

    async def report(self, sender: str, display_name: str, text: str) -> tuple[bool, str]:
        """Create an incident from ``text``. Returns (success, reply)."""
        user = self._db.users.get_by_phone(sender)
        if user is None:
            return False, CaretakerResponse.NO_ACCOUNT

        categories = self._db.incidents.list_categories()
        if not categories:
            logger.error("No categories configured, cannot log report")
            return False, CaretakerResponse.NO_CATEGORIES

        choices = [(category.id, category.name) for category in categories]
        parsed = await self.parse(text, choices)

        try:
            incident = self._db.incidents.create(
                category_id=parsed.category_id,
                subcategory=parsed.subcategory,
                location=parsed.location,
                notes=parsed.notes,
                reporter_id=user.id,
            )
        except SQLAlchemyError:
            logger.exception("Failed to create incident")
            return False, CaretakerResponse.REPORT_FAILED

        reference = encode_reference(incident.id)
        logger.info("Created incident %s in %s", reference, _category_name(categories, parsed))
        return True, CaretakerResponse.REPORT_CREATED.format(
            reference=reference,
            subcategory=incident.subcategory,
            location=incident.location,
            category=_category_name(categories, parsed),
            name=display_name or user.name,
        )

    async def parse(self, text: str, categories: list[CategoryChoice]) -> ParsedIncident:
        """Classify a message, never failing."""
        prompt = build_parse_prompt(text, categories)
        backend = await self._selector.get_working_provider()

        try:
            output = await self._generate(backend, prompt)
        except Exception as e:
            replacement = await self._selector.get_fallback_for(backend.name, e)
            await backend.close()
            if replacement is None:
                logger.warning("Parsing with %s failed, using keyword rules: %s", backend.name, e)
                return keyword_parse(text, categories)
            backend = replacement
            try:
                output = await self._generate(backend, prompt)
            except Exception as retry_error:
                logger.warning(
                    "Retry with %s failed, using keyword rules: %s", backend.name, retry_error
                )
                await backend.close()
                return keyword_parse(text, categories)

        await backend.close()
        parsed = parse_model_output(output, categories)
        if parsed is None:
            logger.info("Backend %s gave unusable output, using keyword rules", backend.name)
            return keyword_parse(text, categories)
        return parsed

    @staticmethod
    async def _generate(backend: GenerativeBackend, prompt: str) -> str:
        result = await backend.generate_content(
            prompt,
            max_tokens=CaretakerConstants.PARSE_MAX_TOKENS,
            temperature=CaretakerConstants.PARSE_TEMPERATURE,
        )
        return result.text


def _category_name(categories: list[Category], parsed: ParsedIncident) -> str:
    for category in categories:
        if category.id == parsed.category_id:
            return category.name
    return parsed.category_id
