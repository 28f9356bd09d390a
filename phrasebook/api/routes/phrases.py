"""
Phrase API endpoints.

This module provides REST API endpoints for saving, browsing, searching,
editing and deleting phrases, plus AI-generated phrase suggestions.

New phrases are returned immediately in the "Processing..." state; their
category is filled in by a background Celery job.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from phrasebook.db.deps import DBSession
from phrasebook.schemas.phrase import (
    PhraseCreate,
    PhraseListResponse,
    PhraseResponse,
    PhraseSuggestion,
    PhraseUpdate,
    RandomPhraseResponse,
)
from phrasebook.services.phrase_queries import PhraseQueryService
from phrasebook.services.phrase_service import (
    ConfigurationError,
    EnrichmentScheduleError,
    GenerationError,
    InvalidPhraseError,
    PhraseNotFoundError,
    PhraseService,
    create_phrase_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/phrases", tags=["Phrases"])


# ========================================
# Dependencies
# ========================================

def get_phrase_service(db: DBSession) -> PhraseService:
    return create_phrase_service(db)


def get_phrase_queries(db: DBSession) -> PhraseQueryService:
    return PhraseQueryService(db)


def _not_found(e: PhraseNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# ========================================
# Collection Endpoints
# ========================================

@router.post(
    "",
    response_model=PhraseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a phrase",
    description="Save a phrase. It is categorized in the background."
)
async def create_phrase(
    payload: PhraseCreate,
    service: PhraseService = Depends(get_phrase_service),
) -> PhraseResponse:
    try:
        phrase = await service.submit(payload.text, payload.source)
    except InvalidPhraseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except EnrichmentScheduleError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    return PhraseResponse.model_validate(phrase)


@router.get(
    "",
    response_model=PhraseListResponse,
    summary="List phrases",
    description="List all phrases, filter by category, or full-text search"
)
async def list_phrases(
    category: Optional[str] = Query(None, max_length=50, description="Category label"),
    search: Optional[str] = Query(None, max_length=200, description="Full-text query"),
    queries: PhraseQueryService = Depends(get_phrase_queries),
) -> PhraseListResponse:
    phrases = await queries.list_phrases(category=category, search=search)
    return PhraseListResponse(
        phrases=[PhraseResponse.model_validate(p) for p in phrases],
        total=len(phrases),
    )


@router.get(
    "/random",
    response_model=RandomPhraseResponse,
    summary="Random phrase",
    description="A random categorized phrase (phrases still processing are skipped)"
)
async def random_phrase(
    queries: PhraseQueryService = Depends(get_phrase_queries),
) -> RandomPhraseResponse:
    phrase = await queries.random_phrase()
    if phrase is None:
        return RandomPhraseResponse(phrase=None)
    return RandomPhraseResponse(phrase=PhraseResponse.model_validate(phrase))


@router.post(
    "/suggestions",
    response_model=PhraseSuggestion,
    summary="Generate a phrase",
    description="Ask the AI provider for a new phrase. Nothing is saved."
)
async def generate_suggestion(
    service: PhraseService = Depends(get_phrase_service),
) -> PhraseSuggestion:
    try:
        return await service.generate_suggestion()
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GenerationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


# ========================================
# Item Endpoints
# ========================================

@router.get(
    "/{phrase_id}",
    response_model=PhraseResponse,
    summary="Get a phrase"
)
async def get_phrase(
    phrase_id: int,
    service: PhraseService = Depends(get_phrase_service),
) -> PhraseResponse:
    try:
        phrase = await service.get(phrase_id)
    except PhraseNotFoundError as e:
        raise _not_found(e)
    return PhraseResponse.model_validate(phrase)


@router.put(
    "/{phrase_id}",
    response_model=PhraseResponse,
    summary="Edit a phrase",
    description="Replace text and source; a supplied category settles the phrase"
)
async def update_phrase(
    phrase_id: int,
    payload: PhraseUpdate,
    service: PhraseService = Depends(get_phrase_service),
) -> PhraseResponse:
    try:
        phrase = await service.update(
            phrase_id,
            text=payload.text,
            category=payload.category,
            source=payload.source,
        )
    except PhraseNotFoundError as e:
        raise _not_found(e)
    except InvalidPhraseError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return PhraseResponse.model_validate(phrase)


@router.delete(
    "/{phrase_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a phrase"
)
async def delete_phrase(
    phrase_id: int,
    service: PhraseService = Depends(get_phrase_service),
) -> Response:
    try:
        await service.delete(phrase_id)
    except PhraseNotFoundError as e:
        raise _not_found(e)

    logger.info(f"Deleted phrase {phrase_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
