"""
FastAPI dependencies shared by the routers.

The bearer token lives in each browser's signed cookie session, so every
request gets its own Session and API client.
"""
from fastapi import Request

from models.state import MemoryTokenStore, Session
from services.api import CallApiClient


def get_session(request: Request) -> Session:
    return Session(MemoryTokenStore(request.session), key=request.app.state.token_key)


def get_client(request: Request) -> CallApiClient:
    return request.app.state.client_factory(get_session(request))