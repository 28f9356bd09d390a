"""
Versioned HTTP API.

``api_router`` is mounted under ``API_V1_PREFIX`` by ``phrasebook.main``:

    /phrases   submit, browse, edit, delete, random pick, AI suggestions
    /stats     dashboard aggregations
    /settings  provider key and model preference
"""

from fastapi import APIRouter

from phrasebook.api.routes import phrases, settings, stats

api_router = APIRouter()

for module in (phrases, stats, settings):
    api_router.include_router(module.router)
