import os
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth, credentials
from fastapi import Header, HTTPException, status

from config import FIREBASE_CREDENTIALS_PATH
from utils.logger import setup_api_logger

logger = setup_api_logger()

# Firebase Admin is initialised once, on first use
_initialized = False


def initialize_firebase_admin() -> bool:
    """Initialise the Firebase Admin SDK from the service account file or,
    failing that, application default credentials."""
    global _initialized
    if _initialized:
        return True
    try:
        if os.path.exists(FIREBASE_CREDENTIALS_PATH):
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
            firebase_admin.initialize_app(cred)
            _initialized = True
            logger.info("Firebase Admin initialised with %s", FIREBASE_CREDENTIALS_PATH)
        elif os.getenv("GOOGLE_APPLICATION_CREDENTIALS"):
            firebase_admin.initialize_app()
            _initialized = True
            logger.info("Firebase Admin initialised from GOOGLE_APPLICATION_CREDENTIALS")
        else:
            logger.error("Firebase credentials not found at %s; token verification disabled", FIREBASE_CREDENTIALS_PATH)
    except ValueError:
        # default app already initialised elsewhere in the process
        _initialized = True
    return _initialized


def verify_token(token: str) -> Optional[str]:
    """Return the Firebase uid for a valid ID token, None otherwise."""
    if not initialize_firebase_admin():
        return None
    try:
        claims = firebase_auth.verify_id_token(token)
    except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError) as e:
        logger.warning("Rejected ID token: %s", e)
        return None
    return claims.get("uid")


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """FastAPI dependency: `Authorization: Bearer <firebase id token>` -> uid."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    uid = verify_token(authorization[len("Bearer "):].strip())
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return uid
