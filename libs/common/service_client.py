"""Authenticated HTTP calls between the GlowMart services.

The store service reaches the communications service only over HTTP. Each
call carries a short-lived service-role JWT, the caller's name and the
current request id, so both sides log under the same ``X-Request-ID``.
"""

from typing import Any, Optional

import httpx
from libs.auth.dependencies import _service_role_jwt
from libs.common.logging import get_logger, get_request_id
from libs.common.middleware import CALLER_SERVICE_HEADER, REQUEST_ID_HEADER

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


def internal_headers(calling_service: str) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {_service_role_jwt(calling_service)}",
        CALLER_SERVICE_HEADER: calling_service,
    }
    request_id = get_request_id()
    if request_id:
        headers[REQUEST_ID_HEADER] = request_id
    return headers


async def internal_request(
    method: str,
    *,
    service_url: str,
    path: str,
    calling_service: str,
    json: Any = None,
    params: Optional[dict] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Response:
    """Call another service as ``calling_service``.

    Raises ``httpx.RequestError`` when the service cannot be reached; HTTP
    error statuses are returned, not raised.
    """
    url = f"{service_url.rstrip('/')}{path}"
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.request(
            method,
            url,
            headers=internal_headers(calling_service),
            json=json,
            params=params,
        )
    logger.debug(f"{calling_service} {method} {url} -> {response.status_code}")
    return response


async def internal_post(
    *,
    service_url: str,
    path: str,
    calling_service: str,
    json: Any = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.Response:
    return await internal_request(
        "POST",
        service_url=service_url,
        path=path,
        calling_service=calling_service,
        json=json,
        timeout=timeout,
    )
