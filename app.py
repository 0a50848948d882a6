"""
App assembly entry point.

Re-exports the FastAPI `app` from `timeline.api.main` so ASGI servers can load `app:app`.
"""

from timeline.api.main import app  # noqa: F401
