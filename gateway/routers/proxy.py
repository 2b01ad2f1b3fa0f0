from fastapi import APIRouter, Depends, HTTPException, Request, Response
import logging

from gateway.auth import get_settings, verify_access_key
from gateway.config import Settings
from gateway.services.upstream import UpstreamClient, UpstreamError
from gateway.vendors import CLAUDE, OPENAI, Vendor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Proxy"], dependencies=[Depends(verify_access_key)])


def get_upstream(request: Request) -> UpstreamClient:
    return request.app.state.upstream


async def _read_body(request: Request, limit: int) -> bytes:
    """Raw request body, rejected with 413 above `limit` bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise HTTPException(status_code=413, detail="Request body too large")

    # Chunked uploads carry no length; stop as soon as the limit is crossed.
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise HTTPException(status_code=413, detail="Request body too large")
        chunks.append(chunk)
    return b"".join(chunks)


async def _relay(
    vendor: Vendor,
    request: Request,
    settings: Settings,
    upstream: UpstreamClient,
) -> Response:
    logger.info("--> [ROUTE] %s API request received", vendor.label)

    api_key = vendor.api_key(settings)
    if not api_key:
        logger.error("--> [ROUTE] %s", vendor.missing_key_message)
        raise HTTPException(status_code=500, detail=vendor.missing_key_message)

    body = await _read_body(request, settings.max_body_bytes)

    try:
        result = await upstream.forward(vendor, api_key, body)
    except UpstreamError:
        logger.exception("--> [UPSTREAM] %s proxy error", vendor.label)
        raise HTTPException(status_code=500, detail="Internal server error")

    if result.ok:
        logger.info("--> [UPSTREAM] %s API request successful", vendor.label)
    else:
        logger.error(
            "--> [UPSTREAM] %s API error %d: %s",
            vendor.label, result.status_code, result.content[:500].decode(errors="replace"),
        )

    return Response(
        content=result.content,
        status_code=result.status_code,
        media_type="application/json",
    )


# ---------------------------------------------------------------------------
# POST /api/claude: Anthropic Messages API
# ---------------------------------------------------------------------------

@router.post("/claude")
async def proxy_claude(
    request: Request,
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream),
) -> Response:
    return await _relay(CLAUDE, request, settings, upstream)


# ---------------------------------------------------------------------------
# POST /api/openai: OpenAI Chat Completions API
# ---------------------------------------------------------------------------

@router.post("/openai")
async def proxy_openai(
    request: Request,
    settings: Settings = Depends(get_settings),
    upstream: UpstreamClient = Depends(get_upstream),
) -> Response:
    return await _relay(OPENAI, request, settings, upstream)
