"""Resolve the caller's identity and store from a bearer token."""

from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storedash.logger import get_logger
from storedash.security import decode_access_token
from storedash.services.document_store import get_document_store
from storedash.services.query import DocumentStore
from storedash.utils import raise_forbidden, raise_not_found, raise_service_unavailable, raise_unauthorized

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class StoreContext:
    """The tenant a request reads from and the role it reads as."""

    user_id: str
    store_id: str
    role: str


async def get_store_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: DocumentStore = Depends(get_document_store),
) -> StoreContext:
    """Resolve ``(store_id, role)`` for the current user from their JWT."""
    if credentials is None or not credentials.credentials:
        raise_unauthorized("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if not payload:
        raise_forbidden("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise_forbidden("Token missing subject")

    try:
        user = await store.get_user(str(user_id))
    except Exception as exc:
        logger.error(
            "User lookup failed",
            user_id=str(user_id),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise_service_unavailable("User directory unavailable", cause=exc)

    if user is None:
        raise_not_found("User")
    if not user.store_id:
        logger.info("User has no store", user_id=user.id)
        raise_forbidden("User is not associated with a store")

    return StoreContext(user_id=user.id, store_id=user.store_id, role=user.role)
