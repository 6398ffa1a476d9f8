from __future__ import annotations

import firebase_admin
from firebase_admin import credentials, db

from config.settings import settings

APP_NAME = "doctorfinder"


def get_firebase_app() -> firebase_admin.App:
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass
    # If FIREBASE_CREDENTIALS_FILE is empty, the SDK uses application default credentials.
    if settings.FIREBASE_CREDENTIALS_FILE:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)
    else:
        cred = credentials.ApplicationDefault()
    options = {
        "databaseURL": settings.FIREBASE_DATABASE_URL,
        "httpTimeout": settings.RECORD_STORE_TIMEOUT_S,
    }
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID
    return firebase_admin.initialize_app(cred, options, name=APP_NAME)


def get_root_reference() -> db.Reference:
    if not settings.FIREBASE_DATABASE_URL:
        raise RuntimeError("FIREBASE_DATABASE_URL is not configured")
    return db.reference("/", app=get_firebase_app())
