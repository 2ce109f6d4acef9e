"""Gemini-backed classifier for allergen and category suggestions.

The classifier never raises. Missing configuration, empty input,
timeouts, transport errors and malformed output all collapse into the
low-confidence empty result, which callers treat as "no enrichment".
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar

import google.generativeai as genai
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from product_catalog.domain.entities import (
    AllergenIdentification,
    CategorySuggestion,
    Confidence,
)
from product_catalog.domain.exceptions import ClassifierError
from product_catalog.infrastructure.config import settings

logger = structlog.get_logger()


# ============================================================================
# Response Payloads
# ============================================================================


class ClassifierPayload(BaseModel, ABC):
    """Structured model output, decoded strictly."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @abstractmethod
    def to_result(self) -> Any:
        """Convert the payload into a classifier result."""

    @classmethod
    @abstractmethod
    def degraded(cls, reason: str) -> Any:
        """Empty low-confidence result for this payload type."""


class AllergenPayload(ClassifierPayload):
    """JSON shape returned for allergen identification."""

    allergen_codes: list[str] = Field(alias="allergenCodes")
    confidence: Confidence
    reasoning: str = ""

    def to_result(self) -> AllergenIdentification:
        codes = tuple(dict.fromkeys(c.strip().upper() for c in self.allergen_codes if c.strip()))
        return AllergenIdentification(
            codes=codes,
            confidence=self.confidence,
            reasoning=self.reasoning,
        )

    @classmethod
    def degraded(cls, reason: str) -> AllergenIdentification:
        return AllergenIdentification.empty(reason)


class CategoryPayload(ClassifierPayload):
    """JSON shape returned for category suggestion."""

    category: str
    confidence: Confidence
    reasoning: str = ""

    def to_result(self) -> CategorySuggestion:
        return CategorySuggestion(
            category=self.category.strip(),
            confidence=self.confidence,
            reasoning=self.reasoning,
        )

    @classmethod
    def degraded(cls, reason: str) -> CategorySuggestion:
        return CategorySuggestion.empty(reason)


def decode_or_degrade(raw: str | None, payload_type: type[ClassifierPayload]) -> Any:
    """Decode model output into a classifier result.

    Args:
        raw: Raw JSON text produced by the model.
        payload_type: Expected payload schema.

    Returns:
        The decoded result, or the payload's degraded result when the
        text is missing, not JSON, or does not match the schema.
    """
    try:
        payload = payload_type.model_validate_json(raw or "")
    except ValidationError as exc:
        logger.warning(
            "Unparseable classifier response",
            payload=payload_type.__name__,
            errors=exc.error_count(),
        )
        return payload_type.degraded("Failed to parse classifier response")
    return payload.to_result()


# ============================================================================
# Prompts
# ============================================================================


ALLERGEN_PROMPT = """You are a food-safety expert. Identify EVERY allergen present in the \
product below, using the 14 allergen codes of EU Regulation 1169/2011.

PRODUCT: "{description}"

CODES:
- GLU: cereals containing gluten (wheat, rye, barley, oats, spelt, kamut)
- CRU: crustaceans (prawns, shrimps, crabs, lobsters)
- EGG: eggs
- FISH: fish
- PEA: peanuts
- SOY: soybeans
- MILK: milk and dairy (including lactose)
- NUTS: tree nuts (almonds, hazelnuts, walnuts, cashews, pecans, pistachios, macadamias)
- CEL: celery
- MUS: mustard
- SES: sesame seeds
- SUL: sulphur dioxide and sulphites (>10 mg/kg or 10 mg/l)
- LUP: lupin
- MOL: molluscs (mussels, clams, oysters, snails, squid, octopus)

Consider obvious ingredients and derivatives ("mantequilla" contains MILK, "pan" \
contains GLU). Return an empty list when the product clearly has no allergens.

EXAMPLES:
- "Aceite de oliva virgen extra" -> []
- "Leche entera pasteurizada" -> ["MILK"]
- "Yogur natural con nueces" -> ["MILK", "NUTS"]
- "Salsa de soja" -> ["SOY", "GLU"]
- "Mayonesa" -> ["EGG", "MUS"]

Reply with JSON only:
{{"allergenCodes": [codes], "confidence": "high" | "medium" | "low", \
"reasoning": "<= 100 chars"}}"""


CATEGORY_PROMPT = """You classify products. Pick the most suitable category for the \
product from the list of available categories.

PRODUCT: "{product_name}"
CATEGORIES: {categories}

Reply with JSON only:
{{"category": "<exact name from the list>", "confidence": "high" | "medium" | "low", \
"reasoning": "<= 100 chars"}}"""


# ============================================================================
# Classifier Client
# ============================================================================


class GeminiClassifier:
    """Classifier backed by a Gemini generative model.

    Example usage:
        classifier = GeminiClassifier(api_key="...", model_name="gemini-1.5-flash")
        result = await classifier.identify_allergens("Leche entera")
        # result.codes == ("MILK",)
    """

    GENERATION_CONFIG: ClassVar[dict[str, Any]] = {
        "response_mime_type": "application/json",
        "temperature": 0.0,
        "max_output_tokens": 500,
    }

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str = "gemini-1.5-flash",
        timeout_seconds: float = 30.0,
        model: Any | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            api_key: Gemini API key; without it (and without ``model``)
                the classifier is unconfigured and always degrades.
            model_name: Gemini model name.
            timeout_seconds: Upper bound for a single model call.
            model: Pre-built model object exposing ``generate_content_async``.
        """
        self.timeout_seconds = timeout_seconds
        self._model = model

        if self._model is None and api_key:
            genai.configure(api_key=api_key)
            self._model = genai.GenerativeModel(
                model_name=model_name,
                generation_config=self.GENERATION_CONFIG,
            )
            logger.info("Classifier initialized", model=model_name)
        elif self._model is None:
            logger.warning("Classifier API key not provided, enrichment disabled")

    @property
    def configured(self) -> bool:
        """Whether a model is available."""
        return self._model is not None

    async def _generate(self, prompt: str) -> str | None:
        """Run one bounded model call and return its text.

        Raises:
            asyncio.TimeoutError: If the call exceeds the timeout.
            ClassifierError: If the response carries no text (e.g. blocked).
        """
        response = await asyncio.wait_for(
            self._model.generate_content_async(prompt),
            timeout=self.timeout_seconds,
        )
        try:
            return response.text
        except ValueError as exc:
            raise ClassifierError("Model returned no text") from exc

    async def identify_allergens(self, text: str) -> AllergenIdentification:
        """Identify allergen codes in a product description.

        Args:
            text: Product name or description.

        Returns:
            Identified codes with confidence; empty and low-confidence
            on any failure.
        """
        if not self.configured:
            return AllergenIdentification.empty("Classifier not configured")

        if not text or not text.strip():
            return AllergenIdentification.empty("Empty product description")

        try:
            raw = await self._generate(ALLERGEN_PROMPT.format(description=text.strip()))
        except asyncio.TimeoutError:
            logger.warning("Allergen identification timed out", text=text[:50])
            return AllergenIdentification.empty("Classifier timed out")
        except Exception as e:
            logger.error("Allergen identification failed", text=text[:50], error=str(e))
            return AllergenIdentification.empty(f"Error: {e}")

        result = decode_or_degrade(raw, AllergenPayload)
        logger.info(
            "Allergens identified",
            text=text[:50],
            codes=list(result.codes),
            confidence=result.confidence.value,
        )
        return result

    async def suggest_category(
        self, product_name: str, candidates: Sequence[str]
    ) -> CategorySuggestion:
        """Suggest one of ``candidates`` as the product's category.

        Args:
            product_name: Product name.
            candidates: Existing category names.

        Returns:
            Suggested category name with confidence; blank and
            low-confidence on any failure.
        """
        if not self.configured:
            return CategorySuggestion.empty("Classifier not configured")

        if not product_name or not candidates:
            return CategorySuggestion.empty("No product name or categories")

        prompt = CATEGORY_PROMPT.format(
            product_name=product_name.strip(),
            categories=", ".join(f'"{c}"' for c in candidates),
        )
        try:
            raw = await self._generate(prompt)
        except asyncio.TimeoutError:
            logger.warning("Category suggestion timed out", product_name=product_name)
            return CategorySuggestion.empty("Classifier timed out")
        except Exception as e:
            logger.error("Category suggestion failed", product_name=product_name, error=str(e))
            return CategorySuggestion.empty(f"Error: {e}")

        return decode_or_degrade(raw, CategoryPayload)


def build_classifier() -> GeminiClassifier:
    """Create the classifier from settings."""
    return GeminiClassifier(
        api_key=settings.gemini_api_key,
        model_name=settings.gemini_model,
        timeout_seconds=settings.classifier_timeout_seconds,
    )
