import secrets
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mealshare.core.config import settings
from mealshare.core.security import decode_token
from mealshare.services.geocoder import Geocoder, NominatimGeocoder

bearer_scheme = HTTPBearer(auto_error=False)

_geocoder: Optional[Geocoder] = None


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[UUID]:
    """User ID from the bearer token, or None for anonymous viewers."""
    if credentials is None:
        return None
    return decode_token(credentials.credentials)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UUID:
    user_id = decode_token(credentials.credentials) if credentials else None
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def get_current_admin(x_admin_key: Optional[str] = Header(None)) -> bool:
    if not x_admin_key or not secrets.compare_digest(x_admin_key, settings.ADMIN_SECRET_KEY):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return True


def get_geocoder() -> Geocoder:
    global _geocoder
    if _geocoder is None:
        _geocoder = NominatimGeocoder()
    return _geocoder
