"""
Firebase authentication for FastAPI.

Verifies Firebase ID tokens and resolves the uid to a stored User, which
becomes the Actor every service call runs as.
"""

from pathlib import Path
import firebase_admin
from firebase_admin import auth, credentials
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from taskgate.config import get_settings
from taskgate.database import get_session
from taskgate.models import User
from taskgate.services.authorization import Actor
from taskgate.store import EntityStore
from taskgate.logging_config import get_logger

logger = get_logger(__name__)


def _init_firebase():
    """Initialise the Admin SDK once, on first token verification."""
    try:
        firebase_admin.get_app()
        return  # Already initialized
    except ValueError:
        pass  # Need to initialize

    key_path = get_settings().firebase_credentials
    if key_path and Path(key_path).is_file():
        firebase_admin.initialize_app(credentials.Certificate(key_path))
        logger.info(f"Firebase Admin SDK initialized with: {Path(key_path).name}")
        return

    # Falls back to GOOGLE_APPLICATION_CREDENTIALS / metadata server
    logger.warning("No Firebase service account key configured, using application default credentials")
    firebase_admin.initialize_app()


security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> str:
    """
    Verify the Firebase ID token and return the user's uid.

    Raises:
        HTTPException: If token is invalid or expired.
    """
    _init_firebase()
    try:
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        logger.warning("Expired Firebase token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except (auth.InvalidIdTokenError, ValueError):
        logger.warning("Invalid Firebase token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    uid = decoded_token["uid"]
    logger.debug(f"Authenticated user: {uid} ({decoded_token.get('email')})")
    return uid


async def get_current_actor(
    uid: str = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Actor:
    """Load the authenticated user's roles and department."""
    user = await EntityStore(session).find_by_id(User, uid)
    if not user:
        logger.warning(f"Authenticated uid {uid} has no user record")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not registered",
        )
    return Actor.from_user(user)
