"""
Firebase admin initialization and helpers.

The frontend signs practitioners in with Firebase Authentication and sends
the resulting ID token with every request. The backend verifies the token
with the Admin SDK and keeps diet plans and patient records in Firestore.
"""

import os
import firebase_admin
from firebase_admin import credentials, firestore

from app.core.config import settings

# Global references to avoid re-initialization
_firebase_app = None
db = None


def init_firebase():
    """
    Initialize Firebase Admin SDK if not already initialized.

    Priority:
    1. FIREBASE_CREDENTIALS environment variable / .env entry
    2. Fallback to local dev file: app/core/firebase_key.json
    """

    global _firebase_app, db

    # Prevent re-initialization (important for Uvicorn reload)
    if firebase_admin._apps:
        if db is None:
            db = firestore.client()
        return

    cred_path = os.environ.get("FIREBASE_CREDENTIALS", settings.FIREBASE_CREDENTIALS)

    if not os.path.exists(cred_path):
        raise RuntimeError(
            f"Firebase credentials not found at: {cred_path}\n"
            "Set FIREBASE_CREDENTIALS env var or place firebase_key.json correctly."
        )

    cred = credentials.Certificate(cred_path)
    _firebase_app = firebase_admin.initialize_app(cred)

    db = firestore.client()

    print("Firebase Admin initialized successfully.")


def get_db():
    """Return the Firestore client, initializing Firebase on first use."""
    if db is None:
        init_firebase()
    return db
