"""
HTTP connector used by the services to call their sibling services.
"""

import logging
import os
from typing import Any, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))


class ServiceCallError(Exception):
    """A sibling service answered with an error or could not be reached."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ServiceConnector:
    """Thin async REST client bound to one downstream base URL."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"}
        )

    async def request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{method} {self.base_url}{path} failed: {e}")
            raise ServiceCallError(f"Connection error: {e}", 503)

        if response.status_code >= 400:
            raise ServiceCallError(_error_message(response), response.status_code)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def get_or_none(self, path: str, **kwargs) -> Any:
        """GET that maps a downstream 404 to None."""
        try:
            return await self.get(path, **kwargs)
        except ServiceCallError as e:
            if e.status_code == 404:
                return None
            raise

    async def close(self):
        await self.client.aclose()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP error: {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or body)
    return str(body)


async def service_call_error_handler(request: Request, exc: ServiceCallError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path} -> downstream {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
