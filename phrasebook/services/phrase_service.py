"""
Phrase Service

The write-side workflow for phrases: submit, background categorization,
manual edits, deletion and AI-generated suggestions.

Ingestion Flow:
---------------
    submit(text, source)
        │  INSERT phrase (Processing) + COMMIT
        ▼
    enqueue(phrase_id)  ──►  Celery: phrases.categorize_phrase
                                   │
                                   ▼
                             categorize(phrase_id)
                                   │  settings → AI provider (or default)
                                   ▼
                             UPDATE ... WHERE id = ? AND is_processing

The settle step is a single conditional UPDATE. A phrase that was deleted,
already settled by an earlier run, or given a category by hand in the
meantime simply matches no row, so replays and races never overwrite
anything.
"""

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from phrasebook.core.logging import get_logger
from phrasebook.models.phrase import (
    DEFAULT_CATEGORY,
    Phrase,
    PhraseCategory,
)
from phrasebook.schemas.phrase import PhraseSuggestion
from phrasebook.services.ai import (
    AIProviderError,
    OpenRouterClient,
    PhraseCategorizer,
    PhraseSuggester,
    SuggestionParseError,
)
from phrasebook.services.settings_service import SettingsService

logger = get_logger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate phrase. Please try again."


# ========================================
# Exceptions
# ========================================

class PhraseServiceError(Exception):
    """Base exception for phrase workflow errors."""
    pass


class InvalidPhraseError(PhraseServiceError):
    """Phrase text is empty after trimming."""
    pass


class PhraseNotFoundError(PhraseServiceError):
    """No phrase with the given id."""

    def __init__(self, phrase_id: int):
        self.phrase_id = phrase_id
        super().__init__(f"Phrase {phrase_id} not found")


class ConfigurationError(PhraseServiceError):
    """An operation needs an API key and none is configured."""
    pass


class GenerationError(PhraseServiceError):
    """The AI provider could not produce a usable suggestion."""
    pass


class EnrichmentScheduleError(PhraseServiceError):
    """The categorization job could not be handed to the queue."""
    pass


# ========================================
# Outcome
# ========================================

OUTCOME_SETTLED = "settled"
OUTCOME_MISSING = "missing"
OUTCOME_ALREADY_SETTLED = "already_settled"

FALLBACK_NO_API_KEY = "no_api_key"
FALLBACK_PROVIDER_ERROR = "provider_error"
FALLBACK_INVALID_LABEL = "invalid_label"


@dataclass
class CategorizationOutcome:
    """
    Result of one categorization run.

    outcome is one of "settled", "missing", "already_settled".
    fallback_reason is set when the default category was used.
    """

    phrase_id: int
    outcome: str
    category: Optional[str] = None
    fallback_reason: Optional[str] = None

    @property
    def settled(self) -> bool:
        return self.outcome == OUTCOME_SETTLED

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _clean_text(text: Optional[str]) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise InvalidPhraseError("Phrase text cannot be empty")
    return cleaned


def _clean_source(source: Optional[str]) -> Optional[str]:
    if source is None:
        return None
    source = source.strip()
    return source or None


# ========================================
# Service
# ========================================

class PhraseService:
    """
    Service for the phrase ingestion and categorization workflow.

    Usage:
    ------
    service = PhraseService(db, enqueue=enqueue_categorization)
    phrase = await service.submit("Stay hungry, stay foolish.", source="Steve Jobs")
    # ... later, inside the Celery job:
    outcome = await service.categorize(phrase.id)
    """

    def __init__(
        self,
        db: AsyncSession,
        enqueue: Optional[Callable[[int], Any]] = None,
        client_factory: Callable[..., OpenRouterClient] = OpenRouterClient,
    ):
        """
        Args:
            db: Database session
            enqueue: Hands a phrase id to the categorization queue
            client_factory: Builds the AI client from (api_key, model)
        """
        self.db = db
        self.enqueue = enqueue
        self.client_factory = client_factory
        self.settings_service = SettingsService(db)

    # ----------------------------------------
    # Ingestion
    # ----------------------------------------

    async def submit(self, text: str, source: Optional[str] = None) -> Phrase:
        """
        Save a new phrase and schedule its categorization.

        The phrase is committed before the job is enqueued, so the worker
        always finds it.

        Raises:
            InvalidPhraseError: text is empty after trimming
            EnrichmentScheduleError: the queue rejected the job (the phrase
                stays saved in the Processing state)
        """
        phrase = Phrase.create_processing(_clean_text(text), _clean_source(source))
        self.db.add(phrase)
        await self.db.commit()
        await self.db.refresh(phrase)

        logger.info("phrase_submitted", phrase_id=phrase.id)

        if self.enqueue is not None:
            try:
                self.enqueue(phrase.id)
            except Exception as e:
                logger.error(
                    "categorization_enqueue_failed",
                    phrase_id=phrase.id,
                    error=str(e),
                )
                raise EnrichmentScheduleError(
                    f"Phrase {phrase.id} was saved but categorization could not be scheduled"
                ) from e

        return phrase

    # ----------------------------------------
    # Categorization
    # ----------------------------------------

    async def _choose_category(self, text: str):
        """Return (category, fallback_reason)."""
        app_settings = await self.settings_service.get()

        if app_settings is None or not app_settings.has_api_key:
            return DEFAULT_CATEGORY, FALLBACK_NO_API_KEY

        client = self.client_factory(
            api_key=app_settings.api_key,
            model=SettingsService.resolve_model(app_settings),
        )
        try:
            category = await PhraseCategorizer(client).categorize(text)
        except AIProviderError:
            return DEFAULT_CATEGORY, FALLBACK_PROVIDER_ERROR

        if category is None:
            return DEFAULT_CATEGORY, FALLBACK_INVALID_LABEL

        return category, None

    async def categorize(self, phrase_id: int) -> CategorizationOutcome:
        """
        Assign a category to a Processing phrase.

        Safe to run any number of times: a missing or already settled phrase
        is left alone and no AI call is made for it.

        Args:
            phrase_id: Phrase to categorize

        Returns:
            CategorizationOutcome describing what happened
        """
        phrase = await self.db.get(Phrase, phrase_id, populate_existing=True)

        if phrase is None:
            logger.info("categorization_skipped", phrase_id=phrase_id, reason=OUTCOME_MISSING)
            return CategorizationOutcome(phrase_id=phrase_id, outcome=OUTCOME_MISSING)

        if not phrase.is_processing:
            logger.info(
                "categorization_skipped",
                phrase_id=phrase_id,
                reason=OUTCOME_ALREADY_SETTLED,
            )
            return CategorizationOutcome(
                phrase_id=phrase_id,
                outcome=OUTCOME_ALREADY_SETTLED,
                category=phrase.category,
            )

        text = phrase.text
        category, fallback_reason = await self._choose_category(text)

        if fallback_reason is not None:
            logger.warning(
                "categorization_fallback",
                phrase_id=phrase_id,
                reason=fallback_reason,
                category=category.value,
            )

        result = await self.db.execute(
            update(Phrase)
            .where(Phrase.id == phrase_id, Phrase.is_processing.is_(True))
            .values(category=category.value, is_processing=False)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.commit()

        if result.rowcount == 0:
            # Deleted or settled while the provider call was in flight
            current = await self.db.scalar(select(Phrase.category).where(Phrase.id == phrase_id))
            outcome = OUTCOME_MISSING if current is None else OUTCOME_ALREADY_SETTLED
            logger.info("categorization_skipped", phrase_id=phrase_id, reason=outcome)
            return CategorizationOutcome(phrase_id=phrase_id, outcome=outcome, category=current)

        logger.info("phrase_categorized", phrase_id=phrase_id, category=category.value)
        return CategorizationOutcome(
            phrase_id=phrase_id,
            outcome=OUTCOME_SETTLED,
            category=category.value,
            fallback_reason=fallback_reason,
        )

    # ----------------------------------------
    # CRUD
    # ----------------------------------------

    async def get(self, phrase_id: int) -> Phrase:
        """
        Raises:
            PhraseNotFoundError: no such phrase
        """
        phrase = await self.db.get(Phrase, phrase_id)
        if phrase is None:
            raise PhraseNotFoundError(phrase_id)
        return phrase

    async def update(
        self,
        phrase_id: int,
        text: str,
        category: Optional[PhraseCategory] = None,
        source: Optional[str] = None,
    ) -> Phrase:
        """
        Edit a phrase.

        ``source`` always replaces the stored value (None clears it). A
        supplied ``category`` settles the phrase, so a categorization job
        still pending for it will no longer change it.

        Raises:
            InvalidPhraseError: text is empty after trimming
            PhraseNotFoundError: no such phrase
        """
        text = _clean_text(text)
        phrase = await self.get(phrase_id)

        phrase.text = text
        phrase.source = _clean_source(source)
        if category is not None:
            phrase.settle(PhraseCategory(category))

        await self.db.commit()
        await self.db.refresh(phrase)

        logger.info(
            "phrase_updated",
            phrase_id=phrase_id,
            category=phrase.category,
            is_processing=phrase.is_processing,
        )
        return phrase

    async def delete(self, phrase_id: int) -> None:
        """
        Raises:
            PhraseNotFoundError: no such phrase
        """
        phrase = await self.get(phrase_id)
        await self.db.delete(phrase)
        await self.db.commit()
        logger.info("phrase_deleted", phrase_id=phrase_id)

    # ----------------------------------------
    # Suggestions
    # ----------------------------------------

    async def generate_suggestion(self) -> PhraseSuggestion:
        """
        Ask the AI provider for a new phrase. Nothing is saved.

        Raises:
            ConfigurationError: no API key configured (no request is made)
            GenerationError: the provider failed or replied with something unusable
        """
        app_settings = await self.settings_service.get()
        if app_settings is None or not app_settings.has_api_key:
            raise ConfigurationError("API key not configured. Please add it in settings.")

        client = self.client_factory(
            api_key=app_settings.api_key,
            model=SettingsService.resolve_model(app_settings),
        )

        try:
            suggestion = await PhraseSuggester(client).suggest()
        except (AIProviderError, SuggestionParseError) as e:
            logger.warning("suggestion_failed", model=client.model, error=str(e))
            raise GenerationError(GENERATION_FAILED_MESSAGE) from e

        logger.info("suggestion_generated", model=client.model)
        return suggestion


def create_phrase_service(db: AsyncSession) -> PhraseService:
    """Factory function wiring the service to the Celery queue."""
    from phrasebook.tasks.phrase_tasks import enqueue_categorization

    return PhraseService(db, enqueue=enqueue_categorization)
