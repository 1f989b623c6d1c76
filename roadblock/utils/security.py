"""
Caller identity for request handlers.

AUTH_MODE=firebase: ``Authorization: Bearer <Firebase ID token>``, verified
with the Firebase Admin SDK; the token's ``uid`` is the user identity.
AUTH_MODE=header:   the ``X-User-ID`` header is trusted (dev / tests only) as long as
                    it is a plain id: letters, digits and ``_.:@-``, no ``__``.
"""

import logging
import re
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from starlette.concurrency import run_in_threadpool

from roadblock.config.firebase import initialize_firebase_app
from roadblock.core.errors import UnauthenticatedError
from roadblock.core.settings import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Header-mode ids end up in storage keys and document paths.
HEADER_USER_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.:@-]{0,127}$")


def is_valid_header_user_id(user_id: str) -> bool:
    return bool(HEADER_USER_ID_RE.match(user_id)) and "__" not in user_id


async def verify_id_token(token: str) -> Optional[str]:
    """Return the uid for a valid Firebase ID token, None for an invalid one."""
    initialize_firebase_app()
    try:
        decoded = await run_in_threadpool(firebase_auth.verify_id_token, token)
    except (firebase_auth.InvalidIdTokenError, firebase_auth.RevokedIdTokenError,
            firebase_auth.UserDisabledError, ValueError) as e:
        logger.warning(f"Rejected ID token: {e}")
        return None
    return decoded.get("uid")


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    x_user_id: Optional[str] = Header(None, alias="X-User-ID", description="User ID (AUTH_MODE=header only)"),
) -> Optional[str]:
    if settings.AUTH_MODE.lower() == "header":
        user_id = (x_user_id or "").strip()
        if not user_id:
            return None
        if not is_valid_header_user_id(user_id):
            logger.warning(f"Rejected X-User-ID header: {user_id[:64]!r}")
            return None
        return user_id

    if credentials is None or not credentials.credentials:
        return None
    return await verify_id_token(credentials.credentials)


async def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    """Dependency for routes that require an authenticated caller."""
    if not user_id:
        raise UnauthenticatedError()
    return user_id
