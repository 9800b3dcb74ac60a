import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import aiohttp
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from config import resolve_base_url, settings
from dependencies import get_session
from models.state import Session
from routers import auth, calls
from services.api import AuthExpired, CallApiClient

# Logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(settings.LOG_FILE)
    ]
)
logger = logging.getLogger(__name__)

def on_auth_expired(login_route: str):
    logger.warning(f"Session expired, sending user to {login_route}")

def create_app(client_factory: Optional[Callable[[Session], CallApiClient]] = None) -> FastAPI:
    """Dashboard application.

    Every request builds its API client from the browser's own session via
    ``client_factory``; the default factory shares one aiohttp session.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http = None
        if client_factory is None:
            base_url = resolve_base_url(settings)
            logger.info(f"Starting dashboard with backend {base_url}")
            http = aiohttp.ClientSession()

            def default_factory(session: Session) -> CallApiClient:
                return CallApiClient(
                    base_url,
                    session,
                    on_auth_expired=on_auth_expired,
                    login_route=settings.LOGIN_ROUTE,
                    http=http
                )
            app.state.client_factory = default_factory
        else:
            app.state.client_factory = client_factory
        try:
            yield
        finally:
            if http is not None:
                await http.close()

    app = FastAPI(lifespan=lifespan)
    app.state.token_key = settings.TOKEN_STORAGE_KEY
    app.state.login_route = settings.LOGIN_ROUTE
    app.state.poll_interval = settings.POLL_INTERVAL
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE,
        same_site="lax"
    )
    app.include_router(auth.router)
    app.include_router(calls.router)

    @app.exception_handler(AuthExpired)
    async def auth_expired_handler(request: Request, exc: AuthExpired):
        # The client has already dropped the token from this browser's session
        return RedirectResponse(request.app.state.login_route, status_code=303)

    @app.get("/")
    async def root(request: Request):
        if get_session(request).is_authenticated():
            return RedirectResponse("/call-history", status_code=303)
        return RedirectResponse(request.app.state.login_route, status_code=303)

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Uvicorn server")
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)
