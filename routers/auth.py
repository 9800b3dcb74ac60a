import logging
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from dependencies import get_client
from routers.pages import templates
from services.api import AuthError, CallApiClient, RequestError

router = APIRouter()
logger = logging.getLogger(__name__)

def _login_form(request: Request, error=None, username: str = "", status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "login.html",
        {"title": "Sign in", "logged_in": False, "error": error, "username": username},
        status_code=status_code
    )

@router.get("/login")
def show_login(request: Request):
    return _login_form(request)

@router.post("/login")
async def login(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    client: CallApiClient = Depends(get_client)
):
    try:
        await client.login(username, password)
    except AuthError:
        logger.warning(f"Login rejected for {username}")
        return _login_form(request, "Invalid username or password", username, status_code=401)
    except RequestError as e:
        logger.error(f"Login request failed: {str(e)}")
        return _login_form(request, "Login failed. Please try again.", username, status_code=502)

    logger.info(f"User {username} logged in")
    return RedirectResponse("/call-history", status_code=303)

@router.post("/logout")
def logout(client: CallApiClient = Depends(get_client)):
    client.session.clear_token()
    return RedirectResponse(client.login_route, status_code=303)
