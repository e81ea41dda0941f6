"""
FastAPI dependencies.

The HistoryStore is built once during the lifespan and kept on `app.state`;
routes receive it through `get_history_store` so tests can swap it with
`app.dependency_overrides`.
"""

from fastapi import HTTPException, Request

from aiguard.history.store import HistoryStore


def get_history_store(request: Request) -> HistoryStore:
    store = getattr(request.app.state, "history_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="History service unavailable.")
    return store
