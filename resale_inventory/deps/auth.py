from __future__ import annotations

import hmac

from fastapi import Header, HTTPException, Request, status

from ..core.config import settings
from ..middlewares import principal_ctx_var


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_api_key(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> str:
    """Gate for API routes; returns the principal recorded for request logs.

    With no ``API_KEY`` configured the service is open, which suits a single
    user running it on their own network.
    """

    api_key = settings.API_KEY
    if not api_key:
        _set_principal(request, "anonymous")
        return "anonymous"

    provided_key = (x_api_key or "").strip()
    if provided_key and hmac.compare_digest(api_key, provided_key):
        _set_principal(request, "api-key")
        return "api-key"

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid API key" if provided_key else "Authorization required",
    )
