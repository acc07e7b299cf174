"""
api
---
FastAPI application that serves every registered flow over HTTP.

Re-exports ``app`` so that ``uvicorn api:app`` works.
"""

from api.app import app, create_app

__all__ = ["app", "create_app"]
