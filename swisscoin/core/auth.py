from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from swisscoin.core.config import settings
from swisscoin.db.mongo import get_db
from swisscoin.repositories.profile_repo import ProfileRepository
from swisscoin.models.profile import ProfileInDB

security = HTTPBearer(auto_error=False)

def create_access_token(profile_id: str, expires_delta: timedelta | None = None) -> str:
    """Create JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    payload = {
        "sub": profile_id,
        "exp": int(expire.timestamp()),
        "iat": int(now.timestamp())
    }

    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

async def get_current_profile(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db = Depends(get_db)
) -> ProfileInDB:
    """Get the caller's profile from the bearer JWT."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_aud": False}
        )
        profile_id: str = payload.get("sub")
        if profile_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    profile_repo = ProfileRepository(db)
    profile = await profile_repo.get_profile(profile_id)

    if profile is None:
        raise credentials_exception

    return profile
