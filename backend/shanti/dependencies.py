# fastapi dependency injection
# provides get_current_owner (caller identity) and the subscriber registry handle

import logging
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shanti.services.auth_service import resolve_identity
from shanti.services.broadcaster import SubscriberRegistry

logger = logging.getLogger(__name__)

# auto_error off so a missing header is reported as 401, same as a bad token
security = HTTPBearer(auto_error=False)


async def get_current_owner(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """extract the caller's owner id from the jwt bearer token"""
    token = credentials.credentials if credentials else None
    owner_id = resolve_identity(token)

    if owner_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return owner_id


def get_registry(request: Request) -> SubscriberRegistry:
    """the process-wide subscriber registry owned by the app"""
    return request.app.state.registry
