"""
Firebase integration for the Firestore history backend.

`db` starts as None and is only set when HISTORY_BACKEND=firestore, by
`initialize()` inside the FastAPI lifespan. Callers go through `collection()`
so they read `db` at call time and get a PersistenceError while it is unset.

FIREBASE_SERVICE_ACCOUNT may hold the service-account JSON itself or a path
to the key file; without it, Application Default Credentials are used.
"""

import os
import json
import logging

import firebase_admin
from firebase_admin import credentials, firestore

from aiguard.errors import PersistenceError

logger = logging.getLogger(__name__)

db = None  # firestore.Client | None


def _load_credentials():
    raw = os.getenv("FIREBASE_SERVICE_ACCOUNT", "").strip()
    if not raw:
        return None
    try:
        if raw.startswith("{"):
            return credentials.Certificate(json.loads(raw))
        return credentials.Certificate(raw)
    except (ValueError, OSError) as e:
        logger.error(f"[FIREBASE] Unusable service account, falling back to default credentials: {e}")
        return None


def initialize() -> None:
    """Initialize the Firebase Admin SDK once and set the module-level `db` client."""
    global db

    if not firebase_admin._apps:
        cred = _load_credentials()
        if cred is not None:
            firebase_admin.initialize_app(cred)
        else:
            firebase_admin.initialize_app()

    db = firestore.client()
    logger.info("[STARTUP] Firebase initialized")


def collection(name: str):
    """Returns a CollectionReference on the initialized client."""
    if db is None:
        raise PersistenceError("Database service unavailable.")
    return db.collection(name)
