import hmac
import logging

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security.api_key import APIKeyHeader

from gateway.config import Settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"

api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def verify_access_key(
    request: Request,
    api_key: str = Security(api_key_header),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Shared-secret gate for the /api routes.
    Exact match against PROXY_API_KEY; skipped when REQUIRE_API_KEY is off.
    """
    if not settings.require_api_key:
        return

    if not api_key:
        raise HTTPException(status_code=401, detail=f"{API_KEY_HEADER} header required")

    expected = settings.proxy_api_key or ""
    if not hmac.compare_digest(api_key.encode(), expected.encode()):
        logger.warning(
            "--> [AUTH] Invalid API key from %s on %s",
            client_address(request), request.url.path,
        )
        raise HTTPException(status_code=401, detail="Invalid API key")
