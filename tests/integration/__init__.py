"""
Integration tests: the FastAPI app driven end to end over ASGI.

They use the same in-memory SQLite database as the unit tests, with the
Celery hand-off mocked and the AI provider patched, so no external
services are needed.

Run only these:
    pytest -m integration

Skip them:
    pytest -m "not integration"
"""
