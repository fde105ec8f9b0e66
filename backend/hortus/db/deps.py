from __future__ import annotations

from fastapi import Request

from .port import PlantStore


def get_store(request: Request) -> PlantStore:
    """
    FastAPI dependency that provides the PlantStore bound to the application.
    Easy to override in tests to supply an in-memory store.
    """
    return request.app.state.store
