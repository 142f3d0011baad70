"""
asgi.py -- ASGI entry point for the PRG site.

Run with:  uvicorn asgi:app --reload

api/main.py builds the application; this module is the stable import path
deployment configs point at, so the app can be assembled differently later
without touching them.
"""

from api.main import app

__all__ = ["app"]
