"""
Dependencies for authentication, database sessions, and external clients.
"""
import secrets
from typing import Generator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ajira_admin import config, database
from ajira_admin.integrations.admob import AdMobClient
from ajira_admin.integrations.push import FirebasePushSender, PushSender
from ajira_admin.services.bulk_fetcher import SessionFactory
from ajira_admin.utils import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)

def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.
    Ensures proper session lifecycle management with automatic cleanup.

    Yields:
        Session: SQLAlchemy database session
    """
    db = database.SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error("Database session error", error=str(e), exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()

def get_session_factory() -> SessionFactory:
    """
    Session factory for aggregators that fan out parallel reads.

    Each concurrent branch opens its own session from this factory.
    """
    return database.SessionLocal

def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """
    Dependency that requires the admin bearer token.

    Args:
        credentials: Bearer token credentials from Authorization header

    Returns:
        str: The accepted token

    Raises:
        HTTPException: 503 when no admin token is configured, 401 when the
            header is missing, 403 when the token does not match
    """
    expected = config.ADMIN_API_TOKEN
    if not expected:
        logger.error("Admin access denied: ADMIN_API_TOKEN is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin access is not configured",
        )

    if credentials is None or not credentials.credentials:
        logger.warning("Admin access denied: missing bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = credentials.credentials
    if not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning(
            "Admin access denied: invalid token",
            token_prefix=token[:4] + "..." if len(token) > 4 else token,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    return token

def get_admob_client() -> Optional[AdMobClient]:
    """AdMob client from configured credentials, None when any is missing."""
    client = AdMobClient.from_config()
    if client is None:
        logger.debug("AdMob credentials not configured; using stored earnings only")
    return client

def get_push_sender() -> Optional[PushSender]:
    """Firebase push sender from configured credentials, None when any is missing."""
    sender = FirebasePushSender.from_config()
    if sender is None:
        logger.debug("Firebase credentials not configured; broadcasts disabled")
    return sender

def get_pagination_params(
    limit: int = 50,
    offset: int = 0
) -> dict:
    """
    Validate and return pagination parameters.

    Args:
        limit: Maximum number of items to return (1-500)
        offset: Number of items to skip (>= 0)

    Returns:
        dict: Validated pagination parameters

    Raises:
        HTTPException: If parameters are invalid
    """
    if limit < 1 or limit > 500:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Limit must be between 1 and 500"
        )

    if offset < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Offset must be >= 0"
        )

    return {"limit": limit, "offset": offset}
