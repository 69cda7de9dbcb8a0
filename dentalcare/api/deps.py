from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from ..core.config import settings
from ..core.database import get_db
from ..core.exceptions import RateLimited
from ..core.identity import Identity, identity_from_token
from ..core.rate_limit import RateLimiter, get_rate_limiter
from ..core.security import TokenPayload, security, verify_token
from ..services.identity_store import IdentityStore

def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[TokenPayload]:
    """Verified bearer token payload, or None if absent, invalid or logged out."""
    if credentials is None:
        return None

    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        return None

    if token_payload.jti and IdentityStore(db).is_token_revoked(token_payload.jti):
        return None

    return token_payload

def get_current_identity(
    token_payload: Optional[TokenPayload] = Depends(get_token_payload)
) -> Optional[Identity]:
    """Identity carried by the bearer token, or None for anonymous requests.

    Services decide what an anonymous caller may do, so an absent or
    invalid token is not an error here.
    """
    if token_payload is None:
        return None

    return identity_from_token(token_payload)

def get_limiter() -> RateLimiter:
    return get_rate_limiter()

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    limiter: RateLimiter = Depends(get_limiter)
) -> None:
    """Throttle login and registration attempts per client address."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"{request.url.path}:{client_ip}"

    if not limiter.allow(key, settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SECONDS):
        raise RateLimited()
