"""
MindVault Backend — FastAPI Dependency Providers
==================================================

What:  Builds the objects route handlers need: the field cipher, the
       services wrapping it, and the caller's user id.
Why:   The cipher is constructed explicitly (not a module global) so its key
       lifetime is visible and tests can swap it via app.dependency_overrides.

Field cipher lifetime:
    get_field_cipher() is cached, so the scrypt derivation runs once per
    process and every request shares the same immutable instance.

Caller identity:
    Authentication happens upstream. The gateway forwards the verified user
    id in the X-User-ID header; this module only checks it is a UUID.
"""

import uuid
from functools import lru_cache

from fastapi import Depends, Header

from mindvault.config import settings
from mindvault.exceptions import AuthenticationError
from mindvault.services.chat_service import ChatService
from mindvault.services.field_cipher import FieldCipher
from mindvault.services.journal_service import JournalService
from mindvault.services.wellness_service import WellnessService

USER_ID_HEADER = "X-User-ID"


@lru_cache(maxsize=1)
def get_field_cipher() -> FieldCipher:
    return FieldCipher.from_settings(settings)


def get_journal_service(cipher: FieldCipher = Depends(get_field_cipher)) -> JournalService:
    return JournalService(cipher)


def get_chat_service(cipher: FieldCipher = Depends(get_field_cipher)) -> ChatService:
    return ChatService(cipher)


def get_wellness_service(cipher: FieldCipher = Depends(get_field_cipher)) -> WellnessService:
    return WellnessService(cipher)


async def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> uuid.UUID:
    """
    Reads the authenticated user id set by the auth gateway.

    Raises:
        AuthenticationError: header missing or not a UUID (→ 401).
    """
    if not x_user_id:
        raise AuthenticationError()
    try:
        return uuid.UUID(x_user_id)
    except ValueError as e:
        raise AuthenticationError(
            message="Invalid user identity",
            context={"header": USER_ID_HEADER},
        ) from e
