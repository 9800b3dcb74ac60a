import asyncio
import inspect
import json
import logging
from dataclasses import fields
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import aiohttp

from models.schemas import (
    AuthResponse,
    CallPayload,
    ClearResult,
    CreateCallRequest,
    LoginRequest,
    SyncResult,
)
from models.state import Session

logger = logging.getLogger(__name__)

class CallApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body

class ValidationError(CallApiError):
    """Request rejected locally; nothing was sent."""

class AuthError(CallApiError):
    """Login credentials rejected."""

class AuthExpired(CallApiError):
    """Backend answered 401; the stored token has been purged."""

class RequestError(CallApiError):
    """Non-2xx response, transport failure or unreadable body."""

def _present(value) -> bool:
    return value is not None and value != ""

def normalize_call_request(request: Union[CreateCallRequest, Mapping[str, Any]]) -> CallPayload:
    """Resolve new and legacy fields into the canonical call payload."""
    if not isinstance(request, CreateCallRequest):
        request = CreateCallRequest.from_dict(request)

    phone_number = request.phone_number or request.legacy_phone_number
    task = request.task or request.base_script
    if not phone_number or not task:
        raise ValidationError("Phone number and task/script are required")

    overrides = {}
    for f in fields(CallPayload):
        if f.name in ("phone_number", "task", "from_number"):
            continue
        value = getattr(request, f.name)
        if _present(value):
            overrides[f.name] = value

    return CallPayload(
        phone_number=phone_number,
        task=task,
        from_number=request.from_number,
        **overrides
    )

class CallApiClient:
    """Client of the backend call-management service."""

    def __init__(
        self,
        base_url: str,
        session: Session,
        on_auth_expired: Optional[Callable[[str], Any]] = None,
        login_route: str = "/login",
        http: Optional[aiohttp.ClientSession] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.on_auth_expired = on_auth_expired
        self.login_route = login_route
        self.http = http

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _expire(self):
        logger.warning(f"Token rejected by backend, redirecting to {self.login_route}")
        self.session.clear_token()
        if self.on_auth_expired is not None:
            result = self.on_auth_expired(self.login_route)
            if inspect.isawaitable(result):
                await result

    async def _send(self, http: aiohttp.ClientSession, method: str, url: str, payload, binary: bool):
        async with http.request(method, url, json=payload, headers=self._headers()) as response:
            logger.info(f"{method} {url} -> {response.status}")
            if response.status == 401:
                body = await response.text()
                await self._expire()
                raise AuthExpired("Authentication expired", status=401, body=body)
            if not 200 <= response.status < 300:
                body = await response.text()
                logger.error(f"Backend error on {method} {url}: {response.status} {body[:200]}")
                raise RequestError(
                    f"Request failed with status {response.status}",
                    status=response.status,
                    body=body
                )
            if binary:
                return await response.read()
            text = await response.text()
            if not text:
                return None
            try:
                return json.loads(text)
            except ValueError:
                logger.error(f"Backend returned non-JSON on {method} {url}: {text[:200]}")
                raise RequestError("Malformed response body", status=response.status, body=text)

    async def request(self, method: str, path: str, payload: Any = None, binary: bool = False):
        url = f"{self.base_url}{path}"
        try:
            if self.http is not None:
                return await self._send(self.http, method, url, payload, binary)
            async with aiohttp.ClientSession() as http:
                return await self._send(http, method, url, payload, binary)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Request {method} {url} failed: {str(e)}")
            raise RequestError(f"Request failed: {str(e)}") from e

    async def login(self, username: str, password: str) -> AuthResponse:
        credentials = LoginRequest(username=username, password=password)
        logger.info(f"Logging in as {credentials.username}")
        try:
            data = await self.request(
                "POST", "/auth/login",
                {"username": credentials.username, "password": credentials.password}
            )
        except (AuthExpired, RequestError) as e:
            if e.status is None:
                raise
            raise AuthError("Invalid credentials", status=e.status, body=e.body) from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthError("Login response carried no access token", body=json.dumps(data))
        self.session.set_token(token)
        return AuthResponse(access_token=token)

    async def create_call(self, request: Union[CreateCallRequest, Mapping[str, Any]]) -> Dict[str, Any]:
        payload = normalize_call_request(request)
        logger.info(f"Creating call to {payload.phone_number}")
        return await self.request("POST", "/calls", payload.to_json())

    async def get_calls(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/calls")

    async def get_call_details(self, call_id: int) -> Dict[str, Any]:
        return await self.request("GET", f"/calls/{call_id}/details")

    async def download_pdf(self, call_id: int) -> bytes:
        return await self.request("GET", f"/calls/{call_id}/pdf", binary=True)

    async def clear_all_calls(self) -> ClearResult:
        data = await self.request("POST", "/calls/clear")
        return ClearResult.from_json(data or {})

    async def sync_with_bland_ai(self) -> SyncResult:
        logger.info(f"Syncing calls with Bland.ai via {self.base_url}/calls/sync")
        data = await self.request("POST", "/calls/sync")
        result = SyncResult.from_json(data or {})
        logger.info(
            f"Sync completed: {result.synced_count} synced, "
            f"{result.created_count} created, {result.updated_count} updated"
        )
        return result
