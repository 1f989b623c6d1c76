"""
Firebase Admin initialization.
Single-source-of-truth Firestore client for RoadBlock Alerts.
"""

import json
import logging
import os
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, initialize_app

from roadblock.core.settings import settings

logger = logging.getLogger(__name__)

db: Optional[firestore.Client] = None


def _load_credentials() -> Optional[credentials.Base]:
    """
    Resolve service account credentials.

    Order: FIREBASE_CREDENTIALS_PATH, then the inline FIREBASE_PROJECT_ID /
    FIREBASE_CLIENT_EMAIL / FIREBASE_PRIVATE_KEY triple. None means
    Application Default Credentials.
    """
    if settings.FIREBASE_CREDENTIALS_PATH:
        cred_path = settings.FIREBASE_CREDENTIALS_PATH

        if not os.path.exists(cred_path):
            raise FileNotFoundError(
                f"Firebase credentials file not found: {cred_path}\n"
                f"Please check your .env file and ensure FIREBASE_CREDENTIALS_PATH is correct.\n"
                f"Current working directory: {os.getcwd()}"
            )

        try:
            with open(cred_path, "r") as f:
                cred_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"Firebase credentials file is not valid JSON: {e}\n"
                f"Please check the file at: {cred_path}"
            )

        required_fields = ["type", "project_id", "private_key", "client_email"]
        missing_fields = [field for field in required_fields if field not in cred_data]
        if missing_fields:
            raise ValueError(
                f"Firebase credentials file is missing required fields: {missing_fields}\n"
                f"Please download a fresh service account key from Firebase Console."
            )

        logger.info(f"[FIREBASE] Credentials file validated: {cred_path}")
        return credentials.Certificate(cred_path)

    if settings.FIREBASE_PRIVATE_KEY and settings.FIREBASE_CLIENT_EMAIL:
        if not settings.FIREBASE_PROJECT_ID:
            raise ValueError("FIREBASE_PROJECT_ID is required when using inline credentials")
        logger.info("[FIREBASE] Using inline service account credentials")
        return credentials.Certificate({
            "type": "service_account",
            "project_id": settings.FIREBASE_PROJECT_ID,
            "client_email": settings.FIREBASE_CLIENT_EMAIL,
            "private_key": settings.FIREBASE_PRIVATE_KEY.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        })

    return None


def initialize_firebase_app() -> firebase_admin.App:
    """Initialize the default Firebase Admin app once; shared by Firestore and Auth."""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    try:
        cred = _load_credentials()
    except FileNotFoundError as e:
        raise RuntimeError(
            f"Firebase initialization FAILED - Credentials file not found.\n"
            f"{str(e)}\n"
            f"SOLUTION: Check your .env file and ensure FIREBASE_CREDENTIALS_PATH points to a valid service account JSON file."
        )
    except ValueError as e:
        raise RuntimeError(
            f"Firebase initialization FAILED - Invalid credentials.\n"
            f"{str(e)}"
        )

    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
    if cred is None:
        logger.info("[FIREBASE] No credentials configured, using Application Default Credentials")
        return initialize_app(options=options)

    app = initialize_app(cred, options=options)
    logger.info("[FIREBASE] Firebase Admin SDK initialized with service account")
    return app


def initialize_firestore() -> firestore.Client:
    global db

    if db is not None:
        return db

    initialize_firebase_app()

    try:
        db = firestore.client()
    except Exception as e:
        error_msg = str(e)
        if "Invalid JWT Signature" in error_msg or "invalid_grant" in error_msg:
            raise RuntimeError(
                f"Firestore initialization FAILED - Invalid JWT Signature.\n"
                f"The service account key has been revoked or belongs to a different project.\n"
                f"Generate a new key in Firebase Console > Project Settings > Service Accounts.\n\n"
                f"Original error: {error_msg}"
            )
        raise RuntimeError(
            f"Firestore initialization FAILED. Error: {error_msg}\n"
            f"Please check your Firebase credentials and configuration."
        )

    logger.info(f"[FIRESTORE] Project: {settings.FIREBASE_PROJECT_ID or 'default'}")
    return db


def get_db() -> firestore.Client:
    """
    Get the initialized Firestore client.

    Raises RuntimeError if Firestore has not been initialized.
    """
    if db is None:
        try:
            initialize_firestore()
        except Exception as e:
            raise RuntimeError(
                f"Firestore not initialized and initialization failed: {e}. "
                "Please check your Firebase credentials and configuration."
            )
    return db
