"""
Tests for PhraseService.

This test module verifies:
1. submit: Processing state, commit before hand-off, enqueue failures
2. categorize: AI result, every fallback branch, idempotent replays
3. update / delete / get, including manual edits racing a pending job
4. generate_suggestion: configuration, success and failure mapping
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest
from sqlalchemy import select

from phrasebook.models import PROCESSING_CATEGORY, Phrase, PhraseCategory, Processing, Settled
from phrasebook.services.phrase_service import (
    ConfigurationError,
    EnrichmentScheduleError,
    GenerationError,
    InvalidPhraseError,
    PhraseNotFoundError,
    PhraseService,
    PhraseServiceError,
)
from phrasebook.services.settings_service import SettingsService


def completion(content: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={"choices": [{"message": {"role": "assistant", "content": content}}]},
    )


# ========================================
# submit
# ========================================

@pytest.mark.asyncio
class TestSubmit:
    """Saving new phrases."""

    async def test_submit_saves_processing_phrase(self, db_session):
        enqueue = MagicMock()
        service = PhraseService(db_session, enqueue=enqueue)

        phrase = await service.submit("  Know thyself  ", source="  Socrates ")

        assert phrase.id is not None
        assert phrase.text == "Know thyself"
        assert phrase.source == "Socrates"
        assert phrase.category == PROCESSING_CATEGORY
        assert phrase.state == Processing()

    async def test_submit_enqueues_new_id_once(self, db_session):
        enqueue = MagicMock()
        service = PhraseService(db_session, enqueue=enqueue)

        phrase = await service.submit("Ship it")

        enqueue.assert_called_once_with(phrase.id)

    async def test_submit_blank_source_becomes_none(self, db_session):
        service = PhraseService(db_session, enqueue=MagicMock())

        phrase = await service.submit("Ship it", source="   ")

        assert phrase.source is None

    async def test_submit_rejects_blank_text(self, db_session):
        enqueue = MagicMock()
        service = PhraseService(db_session, enqueue=enqueue)

        with pytest.raises(InvalidPhraseError):
            await service.submit("   ")

        enqueue.assert_not_called()
        phrases = (await db_session.execute(select(Phrase))).scalars().all()
        assert phrases == []

    async def test_enqueue_failure_keeps_phrase_processing(self, db_session):
        enqueue = MagicMock(side_effect=ConnectionError("broker down"))
        service = PhraseService(db_session, enqueue=enqueue)

        with pytest.raises(EnrichmentScheduleError):
            await service.submit("Ship it")

        phrases = (await db_session.execute(select(Phrase))).scalars().all()
        assert len(phrases) == 1
        assert phrases[0].is_processing is True

    async def test_errors_share_a_base_class(self):
        for error in (
            InvalidPhraseError,
            PhraseNotFoundError,
            ConfigurationError,
            GenerationError,
            EnrichmentScheduleError,
        ):
            assert issubclass(error, PhraseServiceError)


# ========================================
# categorize
# ========================================

@pytest.mark.asyncio
class TestCategorize:
    """The background categorization workflow."""

    async def test_uses_ai_category(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        transport = ai_transport(reply="Technical")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("Premature optimization is the root of all evil")

        outcome = await service.categorize(phrase.id)

        assert outcome.outcome == "settled"
        assert outcome.category == "Technical"
        assert outcome.fallback_reason is None

        await db_session.refresh(phrase)
        assert phrase.state == Settled(PhraseCategory.TECHNICAL)

    async def test_request_shape(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        transport = ai_transport(reply="Humorous")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("I put the 'pro' in procrastinate")

        await service.categorize(phrase.id)

        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.headers["Authorization"] == "Bearer sk-or-test-1234"
        body = json.loads(request.content)
        assert body["model"] == SettingsService.resolve_model(None)
        assert body["max_tokens"] == 20
        assert body["messages"][0]["role"] == "system"
        assert "Life Wisdom" in body["messages"][0]["content"]
        assert body["messages"][1] == {
            "role": "user",
            "content": "I put the 'pro' in procrastinate",
        }

    async def test_uses_preferred_model(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        api_key_settings.preferred_model = "moonshotai/kimi-k2:free"
        await db_session.commit()

        transport = ai_transport(reply="Creative")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("Paint with all the colors")

        await service.categorize(phrase.id)

        body = json.loads(transport.requests[0].content)
        assert body["model"] == "moonshotai/kimi-k2:free"

    async def test_reply_whitespace_is_trimmed(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        transport = ai_transport(reply="  Motivational\n")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("You can do it")

        outcome = await service.categorize(phrase.id)

        assert outcome.category == "Motivational"

    async def test_no_api_key_falls_back_without_network(
        self, db_session, make_phrase, ai_transport, client_factory_for
    ):
        transport = ai_transport(reply="Technical")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("Carpe diem")

        outcome = await service.categorize(phrase.id)

        assert outcome.outcome == "settled"
        assert outcome.category == "Life Wisdom"
        assert outcome.fallback_reason == "no_api_key"
        assert transport.requests == []

    async def test_invalid_label_falls_back(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        transport = ai_transport(reply="technical.")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("Carpe diem")

        outcome = await service.categorize(phrase.id)

        assert outcome.category == "Life Wisdom"
        assert outcome.fallback_reason == "invalid_label"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, json={"error": "boom"}),
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"choices": []}),
            httpx.Response(200, json={"choices": [{"message": {"content": "   "}}]}),
        ],
    )
    async def test_provider_failure_falls_back(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for, response
    ):
        transport = ai_transport(handler=lambda request: response)
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("Carpe diem")

        outcome = await service.categorize(phrase.id)

        assert outcome.category == "Life Wisdom"
        assert outcome.fallback_reason == "provider_error"

    async def test_transport_error_falls_back(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = PhraseService(db_session, client_factory=client_factory_for(ai_transport(handler=handler)))
        phrase = await make_phrase("Carpe diem")

        outcome = await service.categorize(phrase.id)

        assert outcome.category == "Life Wisdom"
        assert outcome.fallback_reason == "provider_error"

    async def test_missing_phrase_is_noop(self, db_session, ai_transport, client_factory_for):
        transport = ai_transport(reply="Technical")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))

        outcome = await service.categorize(9999)

        assert outcome.outcome == "missing"
        assert transport.requests == []

    async def test_replay_is_idempotent(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        transport = ai_transport(reply="Technical")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("Ship it")

        first = await service.categorize(phrase.id)
        second = await service.categorize(phrase.id)

        assert first.outcome == "settled"
        assert second.outcome == "already_settled"
        assert second.category == "Technical"
        assert len(transport.requests) == 1

    async def test_manual_category_wins_over_pending_job(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        transport = ai_transport(reply="Technical")
        service = PhraseService(db_session, client_factory=client_factory_for(transport))
        phrase = await make_phrase("Ship it")

        await service.update(phrase.id, text="Ship it", category=PhraseCategory.HUMOROUS)
        outcome = await service.categorize(phrase.id)

        assert outcome.outcome == "already_settled"
        await db_session.refresh(phrase)
        assert phrase.category == "Humorous"
        assert transport.requests == []

    async def test_phrase_deleted_during_ai_call(
        self, db_session, make_phrase, api_key_settings, ai_transport, client_factory_for
    ):
        phrase = await make_phrase("Ship it")
        phrase_id = phrase.id

        async def delete_then_reply(request):
            await db_session.delete(phrase)
            await db_session.flush()
            return completion("Technical")

        transport = httpx.MockTransport(delete_then_reply)
        service = PhraseService(db_session, client_factory=client_factory_for(transport))

        outcome = await service.categorize(phrase_id)

        assert outcome.outcome == "missing"
        assert await db_session.get(Phrase, phrase_id) is None


# ========================================
# get / update / delete
# ========================================

@pytest.mark.asyncio
class TestEditing:
    """Manual edits and deletion."""

    async def test_get_missing_raises(self, db_session):
        with pytest.raises(PhraseNotFoundError):
            await PhraseService(db_session).get(42)

    async def test_update_replaces_text_and_source(self, db_session, make_phrase):
        phrase = await make_phrase("Old text", category="Creative", source="Someone")
        service = PhraseService(db_session)

        updated = await service.update(phrase.id, text="  New text ")

        assert updated.text == "New text"
        assert updated.source is None
        assert updated.category == "Creative"

    async def test_update_category_settles_processing_phrase(self, db_session, make_phrase):
        phrase = await make_phrase("Pending")
        service = PhraseService(db_session)

        updated = await service.update(phrase.id, text="Pending", category=PhraseCategory.PROFESSIONAL, source="Me")

        assert updated.state == Settled(PhraseCategory.PROFESSIONAL)
        assert updated.source == "Me"

    async def test_update_without_category_keeps_processing(self, db_session, make_phrase):
        phrase = await make_phrase("Pending")
        service = PhraseService(db_session)

        updated = await service.update(phrase.id, text="Still pending")

        assert updated.is_processing is True
        assert updated.category == PROCESSING_CATEGORY

    async def test_update_rejects_blank_text(self, db_session, make_phrase):
        phrase = await make_phrase("Keep me", category="Creative")

        with pytest.raises(InvalidPhraseError):
            await PhraseService(db_session).update(phrase.id, text="  ")

    async def test_update_missing_raises(self, db_session):
        with pytest.raises(PhraseNotFoundError):
            await PhraseService(db_session).update(42, text="Anything")

    async def test_delete(self, db_session, make_phrase):
        phrase = await make_phrase("Bye", category="Humorous")
        service = PhraseService(db_session)

        await service.delete(phrase.id)

        with pytest.raises(PhraseNotFoundError):
            await service.get(phrase.id)

    async def test_delete_missing_raises(self, db_session):
        with pytest.raises(PhraseNotFoundError):
            await PhraseService(db_session).delete(42)


# ========================================
# generate_suggestion
# ========================================

@pytest.mark.asyncio
class TestGenerateSuggestion:
    """AI-generated phrase suggestions."""

    async def test_requires_api_key_before_any_request(self, db_session, ai_transport, client_factory_for):
        transport = ai_transport(reply='{"text": "x"}')
        service = PhraseService(db_session, client_factory=client_factory_for(transport))

        with pytest.raises(ConfigurationError):
            await service.generate_suggestion()

        assert transport.requests == []

    async def test_returns_suggestion(self, db_session, api_key_settings, ai_transport, client_factory_for):
        transport = ai_transport(reply='{"text": "The obstacle is the way.", "source": "Marcus Aurelius"}')
        service = PhraseService(db_session, client_factory=client_factory_for(transport))

        suggestion = await service.generate_suggestion()

        assert suggestion.text == "The obstacle is the way."
        assert suggestion.source == "Marcus Aurelius"

        body = json.loads(transport.requests[0].content)
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"][1]["content"] == "Generate a phrase."

    async def test_missing_source_defaults(self, db_session, api_key_settings, ai_transport, client_factory_for):
        transport = ai_transport(reply='```json\n{"text": "Less is more."}\n```')
        service = PhraseService(db_session, client_factory=client_factory_for(transport))

        suggestion = await service.generate_suggestion()

        assert suggestion.text == "Less is more."
        assert suggestion.source == "AI Generated"

    async def test_nothing_is_saved(self, db_session, api_key_settings, ai_transport, client_factory_for):
        transport = ai_transport(reply='{"text": "Less is more."}')
        service = PhraseService(db_session, client_factory=client_factory_for(transport))

        await service.generate_suggestion()

        phrases = (await db_session.execute(select(Phrase))).scalars().all()
        assert phrases == []

    @pytest.mark.parametrize(
        "reply",
        ["not json at all", '{"source": "Nobody"}', '{"text": "   "}', '["a", "list"]'],
    )
    async def test_malformed_reply_raises_generation_error(
        self, db_session, api_key_settings, ai_transport, client_factory_for, reply
    ):
        service = PhraseService(db_session, client_factory=client_factory_for(ai_transport(reply=reply)))

        with pytest.raises(GenerationError, match="Failed to generate phrase"):
            await service.generate_suggestion()

    async def test_provider_error_raises_generation_error(
        self, db_session, api_key_settings, ai_transport, client_factory_for
    ):
        transport = ai_transport(handler=lambda request: httpx.Response(503))
        service = PhraseService(db_session, client_factory=client_factory_for(transport))

        with pytest.raises(GenerationError):
            await service.generate_suggestion()
