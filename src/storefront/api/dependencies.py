"""Request dependencies: the authenticated principal.

Session issuance lives outside this service; the gateway in front of it
forwards the authenticated actor in ``X-Actor-Id`` / ``X-Actor-Role``.
"""

from fastapi import Header, HTTPException

from storefront.auth import Principal
from storefront.errors import AuthorizationError
from storefront.utils.logging import add_context


async def get_principal(
    x_actor_id: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Principal:
    try:
        principal = Principal.of(x_actor_id, x_actor_role)
    except AuthorizationError as exc:
        raise HTTPException(status_code=401, detail=exc.message) from exc
    add_context(actor_id=principal.id, actor_role=principal.role.value)
    return principal
