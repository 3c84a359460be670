from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from typing import Any

import httpx

logger = logging.getLogger(__name__)

CMS_API_BASE_URL = os.getenv("CMS_API_BASE_URL", "http://localhost:3000")
CMS_API_TIMEOUT_SECONDS = float(os.getenv("CMS_API_TIMEOUT_SECONDS", "10"))
CMS_API_TOKEN = os.getenv("CMS_API_TOKEN", "")
CMS_API_FAKE = os.getenv("CMS_API_FAKE", "0") == "1"
CMS_API_HEALTH_PATH = os.getenv("CMS_API_HEALTH_PATH", "/api/services")


class ApiError(Exception):
    pass


class ApiTransportError(ApiError):
    pass


class ApiMalformedResponseError(ApiError):
    pass


class ApiResponseError(ApiError):
    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message or f"unexpected status {status_code}")


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return None


class CmsApiClient:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    async def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        try:
            response = await self._http.request(method, path, json=payload)
        except httpx.HTTPError as exc:
            raise ApiTransportError(f"{method} {path} failed: {exc}") from exc

        if not response.is_success:
            raise ApiResponseError(response.status_code, _error_message(response))
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiMalformedResponseError(f"{method} {path} returned a non-JSON body") from exc

    async def get_json(self, path: str) -> Any:
        return await self._request("GET", path)

    async def send_json(self, method: str, path: str, payload: dict[str, Any]) -> Any:
        return await self._request(method, path, payload)


def build_http_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if CMS_API_TOKEN:
        headers["Authorization"] = f"Bearer {CMS_API_TOKEN}"
    if transport is None and CMS_API_FAKE:
        from cms_admin.adapters.fake_api import get_fake_api

        transport = get_fake_api().transport()
    return httpx.AsyncClient(
        base_url=CMS_API_BASE_URL,
        timeout=httpx.Timeout(CMS_API_TIMEOUT_SECONDS),
        headers=headers,
        transport=transport,
    )


async def get_api_client() -> AsyncIterator[CmsApiClient]:
    async with build_http_client() as http:
        yield CmsApiClient(http)


async def check_api_ready() -> bool:
    async with build_http_client() as http:
        try:
            await CmsApiClient(http).get_json(CMS_API_HEALTH_PATH)
        except ApiError as exc:
            logger.warning("website api not ready: %s", exc)
            return False
    return True
