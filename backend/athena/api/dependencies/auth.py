# backend/athena/api/dependencies/auth.py
"""
Acting-user resolution.

Identity is established upstream (gateway or auth service); this API only
receives the resulting opaque user id in the ``X-User-Id`` header.
"""

import logging

from fastapi import Header, HTTPException, status

logger = logging.getLogger(__name__)


def get_acting_user_id(
    x_user_id: str = Header(..., alias="X-User-Id", description="Authenticated user id"),
) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        logger.warning("Request rejected: empty X-User-Id header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authenticated user",
        )
    return user_id
