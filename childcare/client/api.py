"""
HTTP plumbing for talking to the assignment service.

`ApiClient.request` performs one round trip and either returns the decoded
JSON body or raises `ApiError` carrying the message the caller should show:
the server's `error` field when there is one, otherwise a generic status
line, or the transport error text. Nothing is retried.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import BaseModel

from childcare.core.config import settings

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApiResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "ApiResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str) -> "ApiResult":
        return cls(success=False, error=error)


def static_token(token: Optional[str]) -> TokenProvider:
    async def provide() -> Optional[str]:
        return token

    return provide


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token_provider = token_provider
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=settings.API_TIMEOUT_SECONDS)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _token(self) -> Optional[str]:
        if self.token_provider is None:
            return None
        try:
            return await self.token_provider()
        except Exception:
            # an unavailable token means an anonymous request; the server decides
            logger.exception("Error getting ID token")
            return None

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> dict:
        url = f"{self.base_url}{endpoint}"
        headers = {"Content-Type": "application/json"}
        token = await self._token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._http.request(method, url, json=json, params=params, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("API request error: %s %s: %s", method, url, e)
            raise ApiError(str(e) or type(e).__name__) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}

        if not response.is_success:
            message = body.get("error") or f"HTTP error! status: {response.status_code}"
            logger.error("API request error: %s %s -> %s: %s", method, url, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)

        return body

    async def call(self, method: str, endpoint: str, json: Any = None, params: Optional[dict] = None) -> ApiResult:
        """`request` wrapped into the success/error envelope."""
        try:
            body = await self.request(method, endpoint, json=json, params=params)
        except ApiError as e:
            return ApiResult.fail(str(e))
        return ApiResult.ok(body.get("data"), message=body.get("message"))

    async def login(self, email: str, password: str) -> ApiResult:
        """Exchange credentials for a bearer token and use it for later requests."""
        result = await self.call("POST", "/auth/login", json={"email": email, "password": password})
        if not result.success:
            return result

        data = result.data if isinstance(result.data, dict) else {}
        token = data.get("access_token")
        if not token:
            return ApiResult.fail("Login response did not include an access token")
        self.token_provider = static_token(token)
        return result
