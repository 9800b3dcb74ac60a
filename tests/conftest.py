"""
Shared fixtures: an in-process stand-in for the call-management backend.
"""
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from models.state import MemoryTokenStore, Session
from services.api import CallApiClient


class StubBackend:
    """Call-management backend kept in memory, recording every request."""

    USERNAME = "admin"
    PASSWORD = "secret"
    TOKEN = "stub-token"

    def __init__(self):
        self.calls = []
        self.requests = []
        self.overrides = {}
        self.next_id = 1
        self.url = None

    def override(self, path, status, text='{"message": "forced"}', content_type="application/json"):
        """Answer every request to `path` with a fixed response."""
        self.overrides[path] = (status, text, content_type)

    def make_app(self):
        @web.middleware
        async def record(request, handler):
            body = await request.read()
            self.requests.append({
                "method": request.method,
                "path": request.path,
                "headers": dict(request.headers),
                "json": json.loads(body) if body else None,
            })
            if request.path in self.overrides:
                status, text, content_type = self.overrides[request.path]
                return web.Response(status=status, text=text, content_type=content_type)
            return await handler(request)

        app = web.Application(middlewares=[record])
        app.router.add_post("/auth/login", self.login)
        app.router.add_post("/calls/clear", self.clear)
        app.router.add_post("/calls/sync", self.sync)
        app.router.add_post("/calls", self.create)
        app.router.add_get("/calls", self.list)
        app.router.add_get("/calls/{id}/details", self.details)
        app.router.add_get("/calls/{id}/pdf", self.pdf)
        return app

    def _find(self, request):
        call_id = int(request.match_info["id"])
        for call in self.calls:
            if call["id"] == call_id:
                return call
        raise web.HTTPNotFound(text='{"message": "Call not found"}', content_type="application/json")

    async def login(self, request):
        data = await request.json()
        if data.get("username") == self.USERNAME and data.get("password") == self.PASSWORD:
            return web.json_response({"access_token": self.TOKEN})
        return web.json_response({"message": "Unauthorized"}, status=401)

    async def create(self, request):
        data = await request.json()
        call = {
            "id": self.next_id,
            "phoneNumber": data["phone_number"],
            "fromNumber": data.get("fromNumber"),
            "baseScript": data["task"],
            "status": "In Progress",
            "createdAt": "2024-05-01T10:00:00.000Z",
            "updatedAt": "2024-05-01T10:00:00.000Z",
        }
        self.next_id += 1
        self.calls.append(call)
        return web.json_response(call, status=201)

    async def list(self, request):
        return web.json_response(self.calls)

    async def details(self, request):
        call = self._find(request)
        return web.json_response({
            "localCall": call,
            "blandDetails": {
                "call_id": "bland-123",
                "call_length": 1.5,
                "status": "completed",
                "summary": "Caller confirmed the appointment.",
                "transcripts": [{"id": 1, "user": "assistant", "text": "Hello"}],
            },
            "responses": [],
        })

    async def pdf(self, request):
        self._find(request)
        return web.Response(body=b"%PDF-1.4 stub", content_type="application/pdf")

    async def clear(self, request):
        deleted = len(self.calls)
        self.calls = []
        return web.json_response({"message": "All calls cleared", "deletedCount": deleted})

    async def sync(self, request):
        return web.json_response({
            "message": "Sync completed",
            "syncedCount": 3,
            "createdCount": 1,
            "updatedCount": 2,
        })


@pytest.fixture
async def backend():
    stub = StubBackend()
    server = TestServer(stub.make_app())
    await server.start_server()
    stub.url = f"http://{server.host}:{server.port}"
    yield stub
    await server.close()


@pytest.fixture
def session():
    return Session(MemoryTokenStore())


@pytest.fixture
def api(backend, session):
    return CallApiClient(backend.url, session)
